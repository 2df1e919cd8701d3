"""Per-side trimmability test."""

from __future__ import annotations

import logging

from PIL import Image

from niceframe.core import raster
from niceframe.core.geometry import Side

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def _filler(color, image: Image.Image):
    return color[: len(image.getbands())]


def is_trimmable(image: Image.Image, side: Side) -> bool:
    """Return True when an exact-match trim removes a border on ``side``.

    A white and then a black strip are spliced onto the opposite side first.
    The two colors keep every strip perpendicular to them non-uniform, so only
    the tested side (and the outer filler strip) can be trimmed; the filler is
    chopped back afterwards before the size comparison.
    """
    original = raster.dimensions(image)
    avoid = side.opposite

    padded = raster.splice(image, avoid, 1, _filler(WHITE, image))
    padded = raster.splice(padded, avoid, 1, _filler(BLACK, image))
    trimmed = raster.chop(raster.auto_trim(padded), avoid, 1)

    size = raster.dimensions(trimmed)
    logger.debug("Probe %s: %sx%s -> %sx%s", side.value, *original, *size)
    return size != original
