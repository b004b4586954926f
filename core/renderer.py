import html
import os
import shutil
import subprocess
from pathlib import Path

from core.io_utils import describe_image, ensure_dir, human_size
from core.markdown import markdown_to_html, strip_markdown
from core.models import MODALITY_IMAGE, MODALITY_TEXT, MODALITY_VIDEO, GenerationResult

RAW_TEXT_SUFFIXES = {".md", ".markdown"}
HTML_PAGE = """<!DOCTYPE html>
<html lang="pt-BR">
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
{body}
</body>
</html>
"""


def copy_text(result: GenerationResult) -> str:
    if result.kind != MODALITY_TEXT or not result.text:
        return ""
    return strip_markdown(result.text)


def render_html(result: GenerationResult) -> str:
    if result.kind == MODALITY_TEXT:
        return markdown_to_html(result.text or "")
    if result.kind == MODALITY_IMAGE:
        return f'<img src="{result.data_url()}" alt="resultado" />'
    return f'<video controls src="{result.data_url()}"></video>'


def save_html(result: GenerationResult, path: Path, title: str = "Market Suite") -> Path:
    """Write the result as a standalone page; media is embedded as a data: URL."""
    ensure_dir(path.parent)
    page = HTML_PAGE.format(title=html.escape(title), body=render_html(result))
    path.write_text(page, encoding="utf-8")
    return path


def describe_result(result: GenerationResult) -> str:
    if result.kind == MODALITY_IMAGE:
        return f"Imagem {describe_image(result.data or b'')}"
    if result.kind == MODALITY_VIDEO:
        mime = result.mime_type or "video/mp4"
        return f"Vídeo {mime}, {human_size(len(result.data or b''))}"
    lines = (result.text or "").count("\n") + 1
    return f"Texto, {lines} linha(s)"


def render_plain(result: GenerationResult) -> str:
    if result.kind == MODALITY_TEXT:
        return copy_text(result)
    return describe_result(result)


def save_download(result: GenerationResult, filename: str, output_dir: Path) -> Path:
    ensure_dir(output_dir)
    path = output_dir / filename
    if result.kind == MODALITY_TEXT:
        text = result.text or ""
        if path.suffix.lower() not in RAW_TEXT_SUFFIXES:
            text = strip_markdown(text)
        path.write_text(text, encoding="utf-8")
    else:
        path.write_bytes(result.data or b"")
    return path


def copy_to_clipboard(text: str) -> None:
    if os.name == "nt":
        subprocess.run(["clip"], input=text.encode("utf-16le"), check=True)
        return
    if shutil.which("pbcopy"):
        subprocess.run(["pbcopy"], input=text.encode("utf-8"), check=True)
        return
    if shutil.which("xclip"):
        subprocess.run(
            ["xclip", "-selection", "clipboard"],
            input=text.encode("utf-8"),
            check=True,
        )
        return
    if shutil.which("xsel"):
        subprocess.run(
            ["xsel", "--clipboard", "--input"],
            input=text.encode("utf-8"),
            check=True,
        )
        return
    raise RuntimeError("No clipboard command found (clip/pbcopy/xclip/xsel).")
