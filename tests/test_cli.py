import json
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any, List

import pytest
from PIL import Image

import cli
from cli import _describe_tool, _fields_from_args, _run_redirect, _run_tool, _run_tools
from core.tools import resolve_tool

BASE_URL = "https://api.example.com"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MARKET_SUITE_REDIRECTS_PATH", str(tmp_path / "tool_redirects.json"))
    monkeypatch.setenv("GEMINI_API_KEY", "test_key")
    monkeypatch.setenv("GEMINI_BASE_URL", BASE_URL)
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0")


def _run_args(**overrides: Any) -> Namespace:
    data = {
        "tool": "notification-generator",
        "field": [],
        "fields_json": None,
        "image": None,
        "copy": False,
        "download": None,
        "html": None,
        "quiet": False,
        "output_dir": None,
    }
    data.update(overrides)
    return Namespace(**data)


def _text_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_run_tools_json_output_shape(capsys) -> None:
    _run_tools(Namespace(category="Utilitários", format="json"))
    payload = json.loads(capsys.readouterr().out)
    assert payload["category_filter"] == "Utilitários"
    views = {item["key"]: item["view"] for item in payload["tools"]}
    assert views["translator"] == "redirect"
    assert views["pix-receipt"] == "placeholder"
    assert views["notification-generator"] == "form"


def test_run_tools_text_output(capsys) -> None:
    _run_tools(Namespace(category=None, format="text"))
    out = capsys.readouterr().out
    assert "mockup-3d" in out
    assert "redirect: https://tradutor-nine.vercel.app/" in out


def test_describe_tool_payload() -> None:
    payload = _describe_tool(resolve_tool("ppc-ads"))
    assert payload["view"] == "form"
    assert payload["model"] == "gemini-2.5-flash"
    assert payload["download"] == "anuncio-ppc.txt"
    generated = [spec["name"] for spec in payload["fields"] if spec["generated"]]
    assert generated == ["headline", "description", "call_to_action"]


def test_describe_placeholder_and_redirect() -> None:
    assert "em desenvolvimento" in _describe_tool(resolve_tool("pix-receipt"))["message"]
    assert _describe_tool(resolve_tool("translator"))["redirect"].startswith("https://")


def test_fields_from_args_merges_json_and_flags(tmp_path: Path) -> None:
    fields_path = tmp_path / "campos.json"
    fields_path.write_text(json.dumps({"customer": "Ana", "value": "10"}), encoding="utf-8")
    args = _run_args(fields_json=str(fields_path), field=["value=199,90", "product=Tênis"])
    values = _fields_from_args(args, resolve_tool("notification-generator"))
    assert values == {"customer": "Ana", "value": "199,90", "product": "Tênis"}


def test_fields_from_args_rejects_unknown_field() -> None:
    args = _run_args(field=["cor=azul"])
    with pytest.raises(ValueError, match="unknown field"):
        _fields_from_args(args, resolve_tool("notification-generator"))


def test_fields_from_args_rejects_malformed_field() -> None:
    with pytest.raises(ValueError, match="NAME=VALUE"):
        _fields_from_args(_run_args(field=["customer"]), resolve_tool("notification-generator"))


def test_fields_from_args_loads_image(tmp_path: Path) -> None:
    image_path = tmp_path / "produto.png"
    Image.new("RGB", (2, 2)).save(image_path, format="PNG")
    values = _fields_from_args(
        _run_args(tool="background-remover", image=str(image_path)),
        resolve_tool("background-remover"),
    )
    assert values["image"].mime_type == "image/png"

    with pytest.raises(ValueError, match="does not take an image"):
        _fields_from_args(_run_args(image=str(image_path)), resolve_tool("caption-generator"))


def test_run_tool_text_prints_plain_result(requests_mock, capsys) -> None:
    requests_mock.post(
        f"{BASE_URL}/v1beta/models/gemini-2.5-flash:generateContent",
        json=_text_response("**João**, seu pedido foi aprovado!"),
    )
    _run_tool(_run_args(field=["customer=João", "product=Tênis", "value=199,90"]))
    out = capsys.readouterr().out
    assert "João, seu pedido foi aprovado!" in out
    assert "saved:" not in out


def test_run_tool_validation_error_raises(requests_mock) -> None:
    with pytest.raises(RuntimeError, match="preencha os campos"):
        _run_tool(_run_args(field=["customer=João"]))
    assert requests_mock.call_count == 0


def test_run_tool_download_text(requests_mock, capsys, tmp_path: Path) -> None:
    requests_mock.post(
        f"{BASE_URL}/v1beta/models/gemini-2.5-flash:generateContent",
        json=_text_response("# Legenda\n- Corra!"),
    )
    _run_tool(
        _run_args(
            tool="caption-generator",
            field=["description=Tênis na trilha"],
            download=True,
            output_dir=str(tmp_path / "out"),
        )
    )
    saved = tmp_path / "out" / "legendas.txt"
    assert saved.read_text(encoding="utf-8") == "Legenda\n- Corra!"
    assert f"saved: {saved}" in capsys.readouterr().out


def test_run_tool_writes_html_page(requests_mock, capsys, tmp_path: Path) -> None:
    requests_mock.post(
        f"{BASE_URL}/v1beta/models/gemini-2.5-pro:generateContent",
        json=_text_response("## Copy\n- **Leve** e rápido"),
    )
    target = tmp_path / "html" / "conteudo.html"
    _run_tool(
        _run_args(
            tool="marketing-content",
            field=["url=https://loja.example.com/p/1"],
            html=str(target),
        )
    )
    page = target.read_text(encoding="utf-8")
    assert "<h2>Copy</h2>" in page
    assert "<li><strong>Leve</strong> e rápido</li>" in page
    assert f"html: {target}" in capsys.readouterr().out


def test_run_tool_image_saved_by_default(requests_mock, tmp_path: Path) -> None:
    image_path = tmp_path / "produto.png"
    Image.new("RGB", (2, 2)).save(image_path, format="PNG")
    requests_mock.post(
        f"{BASE_URL}/v1beta/models/gemini-2.5-flash-image:generateContent",
        json={
            "candidates": [
                {
                    "content": {
                        "parts": [{"inlineData": {"mimeType": "image/png", "data": "aGVsbG8="}}]
                    }
                }
            ]
        },
    )
    _run_tool(
        _run_args(tool="background-remover", image=str(image_path), output_dir=str(tmp_path))
    )
    assert (tmp_path / "image-sem-fundo.png").read_bytes() == b"hello"


def test_run_tool_copy(requests_mock, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    requests_mock.post(
        f"{BASE_URL}/v1beta/models/gemini-2.5-flash:generateContent",
        json=_text_response("**Oi**"),
    )
    copied: List[str] = []
    monkeypatch.setattr("core.controller.copy_to_clipboard", copied.append)
    _run_tool(_run_args(field=["customer=João", "product=Tênis", "value=1"], copy=True))
    assert copied == ["Oi"]
    assert "copied to clipboard" in capsys.readouterr().out


def test_run_tool_placeholder_raises() -> None:
    with pytest.raises(ValueError, match="em desenvolvimento"):
        _run_tool(_run_args(tool="faq-generator"))


def test_run_tool_redirect_opens_browser(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    opened: List[str] = []
    monkeypatch.setattr(cli.webbrowser, "open", lambda url, new=0: opened.append(url))
    _run_tool(_run_args(tool="translator"))
    assert opened == ["https://tradutor-nine.vercel.app/"]
    assert "redirect: https://tradutor-nine.vercel.app/" in capsys.readouterr().out


def test_run_redirect_set_list_clear(capsys) -> None:
    _run_redirect(
        Namespace(
            redirect_command="set",
            tool="watermark-remover",
            url="https://example.com/marca",
            quiet=False,
        )
    )
    _run_redirect(Namespace(redirect_command="list", quiet=False))
    out = capsys.readouterr().out
    assert "ok tool=watermark-remover redirect=https://example.com/marca" in out
    assert "translator" in out
    assert any(
        line.startswith("watermark-remover") and line.endswith("https://example.com/marca")
        for line in out.splitlines()
    )

    _run_redirect(Namespace(redirect_command="clear", tool="watermark-remover", quiet=False))
    _run_redirect(Namespace(redirect_command="clear", tool="watermark-remover", quiet=False))
    out = capsys.readouterr().out
    assert "ok tool=watermark-remover opens inline" in out
    assert "tool=watermark-remover has no redirect" in out


def test_main_returns_error_code(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["market-suite", "describe", "--tool", "nope"])
    assert cli.main() == 1
    assert "error: unknown tool: nope" in capsys.readouterr().err


def test_main_tools_json(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["market-suite", "--quiet", "tools", "--format", "json"])
    assert cli.main() == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["tools"]) == 24
