"""Raster primitives backed by Pillow and numpy.

Every operation returns a new image; the decoded image acts as the working
copy and nothing here touches the file on disk except :func:`encode`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
from PIL import Image

from niceframe.core.errors import EngineFailure
from niceframe.core.geometry import SIDES, Color, FrameInstruction, Side

logger = logging.getLogger(__name__)

WORKING_MODES = ("RGB", "RGBA")
Box = Tuple[int, int, int, int]
EMPTY_BOX: Box = (0, 0, 0, 0)


def describe(path: Path) -> Dict[str, Any]:
    """Read header information without decoding the pixel data."""
    try:
        with Image.open(path) as handle:
            dpi = handle.info.get("dpi")
            return {
                "format": handle.format,
                "mode": handle.mode,
                "size": handle.size,
                "dpi": tuple(float(v) for v in dpi) if dpi else None,
                "frames": getattr(handle, "n_frames", 1),
            }
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise EngineFailure(f"Cannot read image header of {path}: {exc}") from exc


def decode(path: Path) -> Image.Image:
    """Load ``path`` as an ``RGB``/``RGBA`` working copy.

    Multi-frame files are reduced to their first frame.
    """
    try:
        with Image.open(path) as handle:
            if getattr(handle, "n_frames", 1) > 1:
                logger.warning("%s has %d frames, using the first one", path, handle.n_frames)
            handle.load()
            if handle.mode in WORKING_MODES:
                image = handle.copy()
            else:
                has_alpha = "A" in handle.getbands() or "transparency" in handle.info
                image = handle.convert("RGBA" if has_alpha else "RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise EngineFailure(f"Cannot decode {path}: {exc}") from exc
    return image


def encode(image: Image.Image, path: Path, fmt: Optional[str] = None, source_mode: Optional[str] = None, **params: Any) -> None:
    """Write ``image`` to ``path``, restoring a grayscale source mode when given."""
    out = image
    if source_mode in ("L", "LA") and image.mode != source_mode:
        out = image.convert(source_mode)
    if fmt and fmt.upper() in ("JPEG", "JPG") and out.mode not in ("RGB", "L"):
        out = out.convert("RGB")
    dpi = image.info.get("dpi")
    if dpi:
        params.setdefault("dpi", dpi)
    try:
        out.save(path, format=fmt, **params)
    except (OSError, ValueError, KeyError) as exc:
        raise EngineFailure(f"Cannot encode {path}: {exc}") from exc


def dimensions(image: Image.Image) -> Tuple[int, int]:
    return image.size


def sample(image: Image.Image, x: int, y: int) -> Color:
    """Return the pixel at ``(x, y)`` as a tuple in the image mode."""
    value = image.getpixel((x, y))
    if isinstance(value, tuple):
        return tuple(int(v) for v in value)
    return (int(value),)


def is_transparent(color: Color) -> bool:
    return len(color) in (2, 4) and color[-1] == 0


def pixels(image: Image.Image) -> np.ndarray:
    """Pixel data as a ``(height, width, bands)`` array."""
    width, height = image.size
    bands = len(image.getbands())
    if width == 0 or height == 0:
        return np.zeros((height, width, bands), dtype=np.uint8)
    data = np.asarray(image)
    if data.ndim == 2:
        data = data[:, :, np.newaxis]
    return data


def _from_pixels(data: np.ndarray, template: Image.Image) -> Image.Image:
    height, width = data.shape[:2]
    if width == 0 or height == 0:
        result = Image.new(template.mode, (width, height))
    else:
        if data.shape[2] == 1:
            data = data[:, :, 0]
        result = Image.fromarray(np.ascontiguousarray(data))
    result.info.update(template.info)
    return result


def _differs(data: np.ndarray, target: np.ndarray) -> np.ndarray:
    return np.any(data != target, axis=-1)


def trim_box(image: Image.Image) -> Box:
    """Bounding box left after an exact-color auto-trim.

    Left and top bounds are measured against the top-left pixel, the right
    bound against the top-right pixel and the bottom bound against the
    bottom-left pixel. A fully uniform image yields an empty box.
    """
    width, height = image.size
    if width == 0 or height == 0:
        return EMPTY_BOX

    data = pixels(image)
    against_nw = _differs(data, data[0, 0])
    cols = np.flatnonzero(against_nw.any(axis=0))
    rows = np.flatnonzero(against_nw.any(axis=1))
    if cols.size == 0:
        return EMPTY_BOX

    right_cols = np.flatnonzero(_differs(data, data[0, -1]).any(axis=0))
    bottom_rows = np.flatnonzero(_differs(data, data[-1, 0]).any(axis=1))
    left, top = int(cols[0]), int(rows[0])
    right = int(right_cols[-1]) + 1 if right_cols.size else 0
    bottom = int(bottom_rows[-1]) + 1 if bottom_rows.size else 0
    if right <= left or bottom <= top:
        return EMPTY_BOX
    return left, top, right, bottom


def auto_trim(image: Image.Image) -> Image.Image:
    """Remove the uniform border by exact color match."""
    left, top, right, bottom = trim_box(image)
    return _from_pixels(pixels(image)[top:bottom, left:right], image)


def _strip_shape(data: np.ndarray, side: Side, thickness: int) -> Tuple[int, int, int]:
    height, width, bands = data.shape
    if side.axis == "row":
        return thickness, width, bands
    return height, thickness, bands


def _extend(data: np.ndarray, instruction: FrameInstruction) -> np.ndarray:
    side = instruction.side
    axis = 0 if side.axis == "row" else 1
    if instruction.color is None:
        if data.shape[axis] == 0:
            raise EngineFailure(f"Cannot replicate the {side.value} edge of an empty image")
        edge = data.take([-1 if side.from_end else 0], axis=axis)
        strip = np.repeat(edge, instruction.thickness, axis=axis)
    else:
        strip = np.empty(_strip_shape(data, side, instruction.thickness), dtype=data.dtype)
        strip[...] = np.asarray(instruction.color, dtype=data.dtype)
    parts = (data, strip) if side.from_end else (strip, data)
    return np.concatenate(parts, axis=axis)


def apply_instructions(image: Image.Image, instructions: Iterable[FrameInstruction]) -> Image.Image:
    """Apply a batch of per-side instructions as one geometry transform.

    All chops are folded into a single crop, then extensions are appended in
    instruction order, so later strips span the corners of earlier ones. The
    whole batch is validated before any pixels are produced.
    """
    instructions = [item for item in instructions if not item.is_noop]
    width, height = image.size
    chopped = {side: 0 for side in SIDES}
    for instruction in instructions:
        if instruction.thickness < 0:
            chopped[instruction.side] += -instruction.thickness

    left, top = chopped[Side.WEST], chopped[Side.NORTH]
    right, bottom = width - chopped[Side.EAST], height - chopped[Side.SOUTH]
    if right < left or bottom < top:
        raise EngineFailure(
            f"Chops {', '.join(f'{s.value}={n}' for s, n in chopped.items() if n)} "
            f"exceed the {width}x{height} image"
        )

    data = pixels(image)[top:bottom, left:right]
    for instruction in instructions:
        if instruction.thickness > 0:
            data = _extend(data, instruction)
    return _from_pixels(data, image)


def splice(image: Image.Image, side: Side, thickness: int, color: Optional[Color]) -> Image.Image:
    """Add a ``thickness`` pixel strip of ``color`` on ``side``."""
    return apply_instructions(image, [FrameInstruction(side, thickness, color)])


def chop(image: Image.Image, side: Side, thickness: int) -> Image.Image:
    """Remove up to ``thickness`` pixels from ``side``."""
    width, height = image.size
    extent = height if side.axis == "row" else width
    return apply_instructions(image, [FrameInstruction(side, -min(thickness, extent))])


def crop_slice(image: Image.Image, axis: str, index: int) -> Image.Image:
    """Extract row or column ``index`` as a 1 pixel thick image."""
    width, height = image.size
    if axis == "row":
        return image.crop((0, index, width, index + 1))
    return image.crop((index, 0, index + 1, height))


def append(slices: List[Image.Image], axis: str) -> Image.Image:
    """Join slices back into one raster, rows top to bottom or columns left to right."""
    if not slices:
        raise EngineFailure("Nothing to append")
    data = np.concatenate([pixels(item) for item in slices], axis=0 if axis == "row" else 1)
    return _from_pixels(data, slices[0])


def compare_exact(first: Image.Image, second: Image.Image) -> bool:
    """Pixel-identical test with zero tolerance."""
    if first.size != second.size or first.mode != second.mode:
        return False
    return bool(np.array_equal(pixels(first), pixels(second)))


def count_colors(image: Image.Image) -> int:
    """Number of unique colors in the image."""
    data = pixels(image).astype(np.uint32)
    if data.size == 0:
        return 0
    packed = np.zeros(data.shape[:2], dtype=np.uint32)
    for band in range(data.shape[2]):
        packed = (packed << 8) | data[:, :, band]
    return int(np.unique(packed).size)


def is_opaque(image: Image.Image) -> bool:
    if "A" not in image.getbands():
        return True
    low, _ = image.getchannel("A").getextrema()
    return low == 255
