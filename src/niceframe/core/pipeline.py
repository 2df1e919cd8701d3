"""Orchestrator for normalizing one image file."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from niceframe.core import density, frame, photo, raster
from niceframe.core.classify import classify
from niceframe.utils.io import replace_atomically

logger = logging.getLogger(__name__)


def inspect_image(path: Path) -> Dict[str, Any]:
    """Classify the border of ``path`` without changing anything."""
    path = Path(path)
    image = raster.decode(path)
    state = classify(image)
    width, height = raster.dimensions(image)
    return {"path": str(path), "size": [width, height], "border": state.to_dict()}


def run_pipeline(path: Path, cfg: Dict[str, Any], dry_run: bool = False) -> Dict[str, Any]:
    """Normalize the border of the image at ``path`` in place.

    Every stage works on an in-memory copy; the file is replaced in one
    atomic rename at the end, or left untouched when any stage fails or
    nothing changed.
    """
    path = Path(path)
    header = raster.describe(path)
    source = raster.decode(path)

    image, downsampled = density.downsample(source, header["dpi"], cfg)
    state = classify(image)
    composed = frame.compose(
        image,
        state,
        frame_width=int(cfg["frame_width"]),
        strategy=cfg["scan"]["strategy"],
        tmpdir=cfg["scan"].get("tmpdir"),
    )
    is_photo = photo.is_photograph(image, header["format"], cfg)
    changed = downsampled or composed.changed

    output = path
    written = False
    if dry_run:
        logger.info("Dry run, not writing %s", path)
    elif is_photo:
        output = photo.convert_to_jpeg(composed.image, path, cfg)
        written = True
    elif changed:
        params = {"quality": int(cfg["photo"]["quality"])} if header["format"] == "JPEG" else {}
        replace_atomically(
            path,
            lambda temp: raster.encode(
                composed.image, temp, fmt=header["format"], source_mode=header["mode"], **params
            ),
        )
        written = True
        logger.info("Wrote %s", path)

    width, height = raster.dimensions(composed.image)
    return {
        "path": str(path),
        "output": str(output),
        "time": datetime.now().isoformat(timespec="seconds"),
        "size": [width, height],
        "border": state.to_dict(),
        "frame": composed.to_dict(),
        "downsampled": downsampled,
        "photo": is_photo,
        "written": written,
    }
