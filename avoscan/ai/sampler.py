"""Centre-region colour sampling for avocado photos.

The subject is assumed to sit in the middle of the frame, so only the central
50% x 50% of the image contributes to the statistics. Images are resized so
that the longest side is ``MAX_SIDE`` pixels before sampling; this keeps the
work bounded without changing colour ratios.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Union

from PIL import Image, ImageStat

try:
    _RESAMPLE = Image.Resampling.BILINEAR  # type: ignore[attr-defined]
except AttributeError:  # pragma: no cover - Pillow < 9 fallback
    _RESAMPLE = Image.BILINEAR  # type: ignore[attr-defined]

from .types import DEFAULT_SAMPLE, Sample

logger = logging.getLogger(__name__)

ImageSource = Union[Image.Image, bytes, str, Path]

MAX_SIDE = 200
CENTER_START = 0.25
CENTER_END = 0.75

# ITU-R BT.601 luma weights.
LUMA_RED = 0.299
LUMA_GREEN = 0.587
LUMA_BLUE = 0.114


def load_image(source: ImageSource) -> Image.Image:
    """Return an RGB Pillow image for any supported source."""
    if isinstance(source, Image.Image):
        image = source
    elif isinstance(source, (bytes, bytearray)):
        image = Image.open(io.BytesIO(source))
    else:
        image = Image.open(Path(source))
    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def encode_jpeg(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    buffer = io.BytesIO()
    load_image(source).save(buffer, format="JPEG")
    return buffer.getvalue()


def sample_image(source: ImageSource) -> Sample:
    """Compute the centre-region :class:`Sample` of ``source``.

    Never raises: unreadable sources or empty regions yield
    :data:`DEFAULT_SAMPLE` so classification can always proceed.
    """
    try:
        return _sample(load_image(source))
    except Exception as exc:
        logger.warning("Image sampling failed, using neutral sample: %s", exc)
        return DEFAULT_SAMPLE


def _sample(image: Image.Image) -> Sample:
    width, height = image.size
    if width <= 0 or height <= 0:
        raise ValueError(f"image has no pixels ({width}x{height})")

    scale = min(MAX_SIDE / width, MAX_SIDE / height)
    scaled_width = int(width * scale)
    scaled_height = int(height * scale)
    if scaled_width <= 0 or scaled_height <= 0:
        raise ValueError(f"image {width}x{height} is too narrow to sample")
    if (scaled_width, scaled_height) != (width, height):
        image = image.resize((scaled_width, scaled_height), _RESAMPLE)

    left = int(scaled_width * CENTER_START)
    right = int(scaled_width * CENTER_END)
    top = int(scaled_height * CENTER_START)
    bottom = int(scaled_height * CENTER_END)
    if right <= left or bottom <= top:
        raise ValueError(
            f"centre region is empty for {scaled_width}x{scaled_height} image"
        )

    region = image.crop((left, top, right, bottom))
    avg_red, avg_green, avg_blue = ImageStat.Stat(region).mean[:3]

    brightness = LUMA_RED * avg_red + LUMA_GREEN * avg_green + LUMA_BLUE * avg_blue
    channel_total = avg_red + avg_green + avg_blue
    green_ratio = avg_green / channel_total if channel_total > 0 else 0.0

    sample = Sample(
        brightness=brightness,
        darkness=1 - brightness / 255,
        green_ratio=green_ratio,
        avg_red=avg_red,
        avg_green=avg_green,
        avg_blue=avg_blue,
    )
    logger.debug(
        "Sampled region=%dx%d brightness=%.1f darkness=%.2f green_ratio=%.2f",
        right - left,
        bottom - top,
        sample.brightness,
        sample.darkness,
        sample.green_ratio,
    )
    return sample


__all__ = ["ImageSource", "MAX_SIDE", "encode_jpeg", "load_image", "sample_image"]
