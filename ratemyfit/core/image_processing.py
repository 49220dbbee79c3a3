"""
Image validation and preparation for outfit uploads.
Rejects bad input before any network call and shrinks large photos.
"""

import base64
import io
from typing import Optional, Tuple

from PIL import Image

from ratemyfit.config import (
    COMPRESS_THRESHOLD_BYTES,
    MAX_IMAGE_BYTES,
    MAX_IMAGE_MB,
    logger,
)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png"}
MAX_DIMENSION = 1920
COMPRESSION_QUALITY = 80


class ImageValidationError(ValueError):
    """Raised when an uploaded image is rejected before analysis."""


def validate_image(file_bytes: bytes, content_type: Optional[str]) -> None:
    """
    Check type, size and decodability of an uploaded outfit photo.

    Raises:
        ImageValidationError: with a message suitable for the user
    """
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ImageValidationError("Please upload a JPG or PNG image")

    if not file_bytes:
        raise ImageValidationError("Image file cannot be empty")

    if len(file_bytes) > MAX_IMAGE_BYTES:
        raise ImageValidationError(f"Image size should be less than {MAX_IMAGE_MB}MB")

    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            img.verify()
    except Exception as exc:
        logger.warning(f"Rejected unreadable image upload: {exc}")
        raise ImageValidationError("Image file is corrupted or unreadable") from exc


def compress_image(
    file_bytes: bytes,
    content_type: str,
    threshold_bytes: int = COMPRESS_THRESHOLD_BYTES,
) -> Tuple[bytes, str, bool]:
    """
    Downscale and re-encode images larger than ``threshold_bytes``.

    Returns:
        (bytes, content_type, compressed). On any failure the original bytes
        are returned with ``compressed=False``.
    """
    if len(file_bytes) <= threshold_bytes:
        logger.debug("Image is already small enough, skipping compression")
        return file_bytes, content_type, False

    original_mb = len(file_bytes) / 1024 / 1024
    try:
        img = Image.open(io.BytesIO(file_bytes))
        img.thumbnail((MAX_DIMENSION, MAX_DIMENSION), Image.LANCZOS)

        buf = io.BytesIO()
        if content_type == "image/png":
            img.save(buf, format="PNG", optimize=True)
            out_type = "image/png"
        else:
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.save(buf, format="JPEG", quality=COMPRESSION_QUALITY)
            out_type = "image/jpeg"
    except Exception as exc:
        logger.warning(f"Compression failed, using original file: {exc}")
        return file_bytes, content_type, False

    compressed = buf.getvalue()
    if len(compressed) >= len(file_bytes):
        logger.debug("Compressed image is not smaller, keeping original")
        return file_bytes, content_type, False

    logger.info(
        f"Compressed image from {original_mb:.2f}MB "
        f"to {len(compressed) / 1024 / 1024:.2f}MB"
    )
    return compressed, out_type, True


def to_data_uri(file_bytes: bytes, content_type: str) -> str:
    encoded = base64.b64encode(file_bytes).decode("utf-8")
    return f"data:{content_type};base64,{encoded}"


def from_data_uri(data_uri: str) -> Tuple[bytes, str]:
    """Decode a base64 data URI back into (bytes, content_type)."""
    header, sep, encoded = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ImageValidationError("Image data is not a base64 data URI")

    content_type = header[len("data:") : -len(";base64")] or "image/jpeg"
    try:
        return base64.b64decode(encoded, validate=True), content_type
    except ValueError as exc:
        raise ImageValidationError("Image data is not valid base64") from exc
