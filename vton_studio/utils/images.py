"""Helpers for moving images around as bytes and base64 data URLs."""

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError

DEFAULT_MIME_TYPE = "image/jpeg"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64,", re.IGNORECASE)


def detect_mime_type(image_bytes: bytes, default: str = DEFAULT_MIME_TYPE) -> str:
    """Detect an image's mime type from its content.

    Magic bytes cover the formats browsers upload; anything else is handed to
    Pillow. Unrecognised content falls back to ``default``.
    """
    if image_bytes[:3] == b'\xff\xd8\xff':
        return "image/jpeg"
    if image_bytes[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"
    if image_bytes[:4] == b'RIFF' and image_bytes[8:12] == b'WEBP':
        return "image/webp"
    if image_bytes[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return default
    return Image.MIME.get(fmt or "", default)


def decode_data_url(data: str) -> tuple[str | None, bytes]:
    """Decode a base64 data URL (or bare base64) into ``(mime_type, bytes)``.

    The mime type is None when the input carried no data URL header.

    Raises:
        ValueError: if the payload is not valid base64.
    """
    data = data.strip()
    mime_type = None
    match = _DATA_URL_RE.match(data)
    if match:
        mime_type = match.group("mime")
        data = data[match.end():]
    elif data.startswith("data:"):
        raise ValueError("Unsupported data URL: only base64 payloads are accepted")

    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e
    return mime_type, raw


def encode_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Encode bytes as a ``data:<mime>;base64,...`` URL."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
