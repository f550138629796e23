"""Reference image helpers.

Uploaded photos arrive either as bare base64 or as ``data:`` URIs.  The
Gemini requests label every reference as ``image/jpeg``, so payloads are
re-encoded to JPEG with Pillow before they are attached.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from brandstudio.core.errors import ValidationError

logger = logging.getLogger(__name__)

JPEG_MIME_TYPE = "image/jpeg"
PNG_DATA_URI_PREFIX = "data:image/png;base64,"


def strip_data_uri(value: str) -> str:
    """Return the base64 body of a ``data:`` URI, or *value* unchanged.

    Anything after the first comma is treated as the payload, matching how
    browsers serialise file uploads.
    """
    if "," in value:
        return value.split(",", 1)[1]
    return value


def decode_image(value: str) -> bytes:
    """Decode a base64 image (bare or ``data:`` URI) to raw bytes.

    Raises:
        ValidationError: If the payload is not valid base64.
    """
    try:
        return base64.b64decode(strip_data_uri(value), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid image payload: {e}") from e


def to_jpeg_bytes(value: str, quality: int = 90) -> bytes:
    """Return JPEG bytes for a base64 reference image.

    JPEG input is passed through untouched.  Anything else Pillow can open
    (PNG, WebP, ...) is flattened to RGB and re-encoded.

    Raises:
        ValidationError: If the payload is not a readable image.
    """
    raw = decode_image(value)
    try:
        with Image.open(io.BytesIO(raw)) as image:
            if image.format == "JPEG":
                return raw
            logger.debug(f"Re-encoding {image.format} reference image as JPEG")
            buffer = io.BytesIO()
            image.convert("RGB").save(buffer, format="JPEG", quality=quality)
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Unreadable image payload: {e}") from e


def to_png_data_uri(data: bytes | str) -> str:
    """Wrap an inline image payload as a PNG data URI.

    The SDK hands back decoded bytes; a string is assumed to already be
    base64.
    """
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"{PNG_DATA_URI_PREFIX}{data}"
