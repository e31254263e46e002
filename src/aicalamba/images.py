"""
Image integrity checks.

Screenshots must come back as JPEG. Uploaded images may be any format Pillow
can read; they are converted to JPEG so the data URI sent to the model always
says image/jpeg and means it.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

from aicalamba.errors import InvalidImageError

logger = logging.getLogger(__name__)

JPEG_QUALITY = 90


def _open_verified(data: bytes) -> str:
    """Fully decode the image and return its Pillow format name."""
    if not data:
        raise InvalidImageError("Image is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
        # verify() only checks structure; load() decodes the pixel data too
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.format or ""
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as e:
        raise InvalidImageError(f"Image could not be decoded: {e}") from e


def verify_jpeg(data: bytes) -> None:
    image_format = _open_verified(data)
    if image_format != "JPEG":
        raise InvalidImageError(f"Expected JPEG image, got {image_format or 'unknown'}")
    logger.debug(f"Verified JPEG image ({len(data)} bytes)")


def ensure_jpeg(data: bytes) -> bytes:
    image_format = _open_verified(data)
    if image_format == "JPEG":
        return data

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode != "RGB":
                img = img.convert("RGB")
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except OSError as e:
        raise InvalidImageError(f"Image could not be converted to JPEG: {e}") from e

    converted = buffer.getvalue()
    logger.info(
        f"Converted {image_format} image to JPEG ({len(data)} -> {len(converted)} bytes)"
    )
    return converted
