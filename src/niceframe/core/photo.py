"""Re-encode photographic PNGs as JPEG."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image

from niceframe.core import raster
from niceframe.utils.io import replace_atomically

logger = logging.getLogger(__name__)


def is_photograph(image: Image.Image, source_format: Optional[str], cfg: Dict[str, Any]) -> bool:
    """An opaque PNG with more unique colors than ``color_threshold``."""
    if not cfg.get("photo", {}).get("enabled", True) or source_format != "PNG":
        return False
    if not raster.is_opaque(image):
        return False
    colors = raster.count_colors(image)
    logger.debug("%d unique colors (threshold %d)", colors, cfg["color_threshold"])
    return colors > int(cfg["color_threshold"])


def convert_to_jpeg(image: Image.Image, path: Path, cfg: Dict[str, Any]) -> Path:
    """Write ``image`` next to ``path`` as JPEG and remove ``path`` afterwards.

    A file that already carries the ``.jpg`` suffix is replaced in place.
    """
    target = path.with_suffix(".jpg")
    quality = int(cfg.get("photo", {}).get("quality", 90))
    replace_atomically(target, lambda temp: raster.encode(image, temp, fmt="JPEG", quality=quality))
    if target.resolve() != path.resolve():
        path.unlink()
    logger.info("Converted %s to %s", path.name, target.name)
    return target
