import json
from pathlib import Path

import pytest

from core.services.catalog import (
    CATEGORIES,
    CATEGORY_CONTENT,
    TOOL_CATALOG,
    clear_redirect_override,
    get_tool,
    list_redirects,
    list_tool_entries,
    list_tools,
    set_redirect_override,
)


@pytest.fixture(autouse=True)
def redirects_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "tool_redirects.json"
    monkeypatch.setenv("MARKET_SUITE_REDIRECTS_PATH", str(path))
    return path


def test_catalog_keys_are_unique() -> None:
    keys = [tool.key for tool in TOOL_CATALOG]
    assert len(keys) == len(set(keys)) == 24


def test_catalog_categories_are_known() -> None:
    assert {tool.category for tool in TOOL_CATALOG} == set(CATEGORIES)


def test_list_tools_keeps_catalog_order_within_category() -> None:
    tools = list_tools(CATEGORY_CONTENT)
    assert tools
    assert all(tool.category == CATEGORY_CONTENT for tool in tools)
    expected = [tool.key for tool in TOOL_CATALOG if tool.category == CATEGORY_CONTENT]
    assert [tool.key for tool in tools] == expected


def test_list_tools_unknown_category_raises() -> None:
    with pytest.raises(ValueError, match="unknown category"):
        list_tools("Jogos")


def test_list_tool_entries_shape() -> None:
    entries = list_tool_entries()
    translator = next(item for item in entries if item["key"] == "translator")
    assert translator["redirect"] == "https://tradutor-nine.vercel.app/"
    assert all(set(item) == {"key", "title", "category", "redirect", "description"}
               for item in entries)


def test_get_tool_unknown_raises() -> None:
    with pytest.raises(ValueError, match="unknown tool: nope"):
        get_tool("nope")


def test_list_redirects_builtin() -> None:
    assert list_redirects() == {"translator": "https://tradutor-nine.vercel.app/"}


def test_set_redirect_override_persists(redirects_path: Path) -> None:
    tool = set_redirect_override("watermark-remover", "https://example.com/marca")
    assert tool.redirect_url == "https://example.com/marca"
    assert get_tool("watermark-remover").redirect_url == "https://example.com/marca"
    stored = json.loads(redirects_path.read_text(encoding="utf-8"))
    assert stored == {"watermark-remover": "https://example.com/marca"}


def test_set_redirect_override_validates(redirects_path: Path) -> None:
    with pytest.raises(ValueError, match="http"):
        set_redirect_override("watermark-remover", "example.com")
    with pytest.raises(ValueError, match="unknown tool"):
        set_redirect_override("nope", "https://example.com")
    assert not redirects_path.exists()


def test_clear_redirect_override_masks_builtin(redirects_path: Path) -> None:
    assert clear_redirect_override("translator") is True
    assert get_tool("translator").redirect_url is None
    assert json.loads(redirects_path.read_text(encoding="utf-8")) == {"translator": None}
    assert clear_redirect_override("translator") is False


def test_clear_redirect_override_removes_custom(redirects_path: Path) -> None:
    set_redirect_override("pix-receipt", "https://example.com/pix")
    assert clear_redirect_override("pix-receipt") is True
    assert get_tool("pix-receipt").redirect_url is None
    assert json.loads(redirects_path.read_text(encoding="utf-8")) == {}


def test_clear_redirect_override_without_redirect() -> None:
    assert clear_redirect_override("caption-generator") is False


def test_invalid_override_entries_are_ignored(redirects_path: Path) -> None:
    redirects_path.write_text(
        json.dumps({"nope": "https://x.com", "ppc-ads": "not-a-url", "faq-generator": 3}),
        encoding="utf-8",
    )
    assert list_redirects() == {"translator": "https://tradutor-nine.vercel.app/"}


def test_broken_override_file_is_ignored(redirects_path: Path) -> None:
    redirects_path.write_text("{not json", encoding="utf-8")
    assert get_tool("translator").redirect_url == "https://tradutor-nine.vercel.app/"
