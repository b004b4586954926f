import io
import json
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from core.models import Attachment

ACCEPTED_IMAGE_MIME_TYPES = ("image/png", "image/jpeg", "image/webp")
_PIL_FORMAT_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
}


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_json_file(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def json_dump(path: Path, payload: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def normalize_dropped_path(value: str) -> str:
    # Terminals paste dropped files quoted, escaped, or as file:// URIs.
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"'}:
        text = text[1:-1]
    if text.startswith("file://"):
        text = text[len("file://") :]
    return text.replace("\\ ", " ")


def sniff_image_mime(data: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format or ""
    except (UnidentifiedImageError, OSError):
        return None
    return _PIL_FORMAT_MIME.get(image_format.upper())


def describe_image(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            image_format = image.format or "?"
    except (UnidentifiedImageError, OSError):
        return f"{len(data)} bytes"
    return f"{image_format} {width}x{height}, {human_size(len(data))}"


def load_image_attachment(value: str) -> Attachment:
    path = Path(normalize_dropped_path(value)).expanduser()
    if not path.exists() or not path.is_file():
        raise ValueError(f"image file not found: {path}")
    data = path.read_bytes()
    mime = sniff_image_mime(data)
    if mime not in ACCEPTED_IMAGE_MIME_TYPES:
        guessed = mimetypes.guess_type(path.name)[0] or "unknown"
        raise ValueError(
            f"unsupported file type: {mime or guessed} "
            f"(accepted: {', '.join(ACCEPTED_IMAGE_MIME_TYPES)})"
        )
    return Attachment(data=data, mime_type=mime, filename=path.name)


def accept_dropped_image(value: str) -> Optional[Attachment]:
    """Return an attachment for a dropped file, or None when it is not an accepted image."""
    try:
        return load_image_attachment(value)
    except ValueError:
        return None


def human_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.0f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
