"""PNG validation and PNG to WebP conversion."""
import io
import logging

from PIL import Image

from media_converter.config import WEBP_QUALITY
from media_converter.errors import ProcessingError

logger = logging.getLogger("converter.image")

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
WEBP_EFFORT = 4


def is_valid_png(data: bytes) -> bool:
    """Signature check only; chunk structure is left to the decoder."""
    return len(data) >= len(PNG_SIGNATURE) and data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE


def convert_png_to_webp(png_data: bytes, quality: int = WEBP_QUALITY) -> bytes:
    """
    Decode PNG bytes and re-encode them as lossy WebP.

    The image is flattened to 8-bit RGB first, so any alpha channel is dropped
    rather than composited. Blocking and CPU bound: call it from a worker thread.
    """
    logger.info("Starting PNG to WebP conversion (%s bytes)", len(png_data))
    try:
        with Image.open(io.BytesIO(png_data), formats=["PNG"]) as img:
            img.load()
            logger.info("Image dimensions: %sx%s (mode %s)", img.width, img.height, img.mode)
            rgb_img = img.convert("RGB")
    except Exception as e:
        logger.error("Failed to decode PNG image: %s", e)
        raise ProcessingError(f"Failed to decode PNG: {e}") from e

    out = io.BytesIO()
    try:
        rgb_img.save(out, format="WEBP", quality=quality, method=WEBP_EFFORT)
    except Exception as e:
        logger.error("Failed to encode WebP image: %s", e)
        raise ProcessingError(f"Failed to encode WebP: {e}") from e

    webp_data = out.getvalue()
    logger.info("WebP conversion completed, output size: %s bytes", len(webp_data))
    return webp_data
