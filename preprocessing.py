"""
preprocessing.py — decode and enhance photos before recognition.

The enhancement chain (contrast/brightness/saturation, unsharp mask, exposure)
makes printed text and product edges easier to pick up for every signal.
Any filter that fails leaves the image as it was.
"""
from __future__ import annotations

import io
import logging

from PIL import Image, ImageEnhance, ImageFilter, UnidentifiedImageError

logger = logging.getLogger(__name__)

CONTRAST     = 1.2
BRIGHTNESS   = 1.1      # +0.1
SATURATION   = 1.1
SHARPEN_RADIUS  = 2.0
SHARPEN_PERCENT = 80    # 0.8 intensity
EXPOSURE_EV  = 0.5

JPEG_QUALITY = 80


def decode_image(data: bytes) -> Image.Image:
    """Decode raw photo bytes into an RGB image. Raises ValueError if undecodable."""
    if not data:
        raise ValueError("Empty image data")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Cannot decode image: {exc}") from exc
    return image.convert("RGB")


def _color_controls(image: Image.Image) -> Image.Image:
    image = ImageEnhance.Contrast(image).enhance(CONTRAST)
    image = ImageEnhance.Brightness(image).enhance(BRIGHTNESS)
    return ImageEnhance.Color(image).enhance(SATURATION)


def _sharpen(image: Image.Image) -> Image.Image:
    return image.filter(ImageFilter.UnsharpMask(
        radius=SHARPEN_RADIUS, percent=SHARPEN_PERCENT, threshold=0,
    ))


def _exposure(image: Image.Image) -> Image.Image:
    # +1 EV doubles the light
    return ImageEnhance.Brightness(image).enhance(2 ** EXPOSURE_EV)


_FILTERS = [
    ("enhance",  _color_controls),
    ("sharpen",  _sharpen),
    ("exposure", _exposure),
]


def enhance(image: Image.Image) -> Image.Image:
    """Run the enhancement chain; a failing step is skipped, not fatal."""
    processed = image
    for name, step in _FILTERS:
        try:
            processed = step(processed)
        except (OSError, ValueError) as exc:
            logger.warning("Preprocessing step '%s' failed: %s", name, exc)
    return processed


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    buf = io.BytesIO()
    image.convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()
