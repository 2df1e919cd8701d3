"""Resolution normalization before border detection."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from PIL import Image

from niceframe.utils.units import dpi_of, scaled_size

logger = logging.getLogger(__name__)


def downsample(image: Image.Image, dpi: Optional[Sequence[float]], cfg: Dict[str, Any]) -> Tuple[Image.Image, bool]:
    """Shrink high-density screenshots to the target density.

    Only images whose recorded density matches ``downsample.source_dpi`` are
    scaled, with a box filter, by ``target_dpi / source_dpi``.
    """
    settings = cfg.get("downsample", {})
    if not settings.get("enabled", True):
        return image, False

    source_dpi = int(settings.get("source_dpi", 144))
    target_dpi = int(settings.get("target_dpi", 72))
    if dpi_of(dpi) != source_dpi or target_dpi >= source_dpi:
        return image, False

    size = scaled_size(image.size, target_dpi / source_dpi)
    logger.info("Downsampling %sx%s at %d dpi to %sx%s at %d dpi", *image.size, source_dpi, *size, target_dpi)
    scaled = image.resize(size, resample=Image.Resampling.BOX)
    scaled.info.update(image.info)
    scaled.info["dpi"] = (target_dpi, target_dpi)
    return scaled, True
