"""
Image preparation for the vision request.

Validate, orient, convert, downscale and re-encode a captured photo so
the request stays small and every model accepts it.
"""

from __future__ import annotations
import base64
import logging
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ..engine_core.errors import ExtractionFailure

logger = logging.getLogger(__name__)


def prepare_image(data: bytes, max_size: int = 1536, quality: int = 90) -> tuple[str, str]:
    """
    Prepare image bytes for the model.

    Returns:
        Tuple of (base64_string, mime_type)
    """
    try:
        pil_img = Image.open(BytesIO(data))
        pil_img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ExtractionFailure(f"The captured image could not be decoded: {e}")

    # Photos from phones carry their rotation in EXIF
    pil_img = ImageOps.exif_transpose(pil_img)

    if pil_img.mode != "RGB":
        pil_img = pil_img.convert("RGB")

    w, h = pil_img.size
    if max(w, h) > max_size:
        scale = max_size / max(w, h)
        new_w, new_h = int(w * scale), int(h * scale)
        pil_img = pil_img.resize((new_w, new_h), Image.LANCZOS)
        logger.info("Resized image from %dx%d to %dx%d", w, h, new_w, new_h)

    buffer = BytesIO()
    pil_img.save(buffer, format="JPEG", quality=quality)
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")

    logger.info(
        "Prepared image: %dx%d, JPEG, %s bytes",
        pil_img.size[0], pil_img.size[1], f"{len(buffer.getvalue()):,}",
    )
    return encoded, "image/jpeg"
