"""Residual border measurement by comparing consecutive 1 px slices.

Sides that an exact trim cannot remove may still carry a repetitive border,
e.g. a thin pattern repeated row after row. Counting how many slices from the
edge are identical gives the thickness of that border.

The ``spool`` strategy materializes every row as a file in a scratch
directory, rejoins the rows and re-splits them into column files, so the same
"compare consecutive slices" loop serves both axes. The ``memory`` strategy
indexes the pixel array directly and yields the same counts.
"""

from __future__ import annotations

import logging
import shutil
import signal
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, TypeVar

import numpy as np
from PIL import Image

from niceframe.core import raster
from niceframe.core.errors import ConfigError, InterruptedOperation, ResourceAcquisitionFailure
from niceframe.core.geometry import Side

logger = logging.getLogger(__name__)

STRATEGIES = ("spool", "memory")
TERMINATING_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP", "SIGINT", "SIGQUIT") if hasattr(signal, name)
)

T = TypeVar("T")


def count_identical(slices: Iterable[T], same: Callable[[T, T], bool] = raster.compare_exact) -> int:
    """Count identical slices from the edge.

    Each slice is compared with its predecessor and the scan stops at the
    first difference. The result is the length of the leading identical run,
    or 0 when the edge slice already differs from its neighbour.
    """
    previous: Optional[T] = None
    repeats = 0
    for current in slices:
        if previous is not None:
            if not same(previous, current):
                break
            repeats += 1
        previous = current
    return repeats + 1 if repeats else 0


def residual(count: int, frame_width: int) -> int:
    """Pixels to chop (positive) or add (negative) to reach ``frame_width``."""
    return count - frame_width


@contextmanager
def interrupt_guard() -> Iterator[None]:
    """Turn termination signals into :class:`InterruptedOperation`."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _interrupt(signum, frame):
        raise InterruptedOperation(signum)

    previous = {signum: signal.signal(signum, _interrupt) for signum in TERMINATING_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@contextmanager
def scratch_dir(base: Optional[str] = None) -> Iterator[Path]:
    """Private temporary directory, removed recursively on every exit path."""
    try:
        path = Path(tempfile.mkdtemp(prefix="niceframe.", dir=base))
    except OSError as exc:
        raise ResourceAcquisitionFailure(f"Unable to create scratch directory: {exc}") from exc
    logger.debug("Scratch directory %s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


class SliceSpool:
    """Row and column slices stored as PNG files."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.rows: List[Path] = []
        self.columns: List[Path] = []

    def _write(self, image: Image.Image, axis: str, prefix: str) -> List[Path]:
        width, height = raster.dimensions(image)
        paths = []
        for index in range(height if axis == "row" else width):
            path = self.directory / f"{prefix}_{index:06d}.png"
            raster.encode(raster.crop_slice(image, axis, index), path, fmt="PNG")
            paths.append(path)
        return paths

    def write_rows(self, image: Image.Image) -> None:
        self.rows = self._write(image, "row", "rows")

    def rejoin_as_columns(self) -> None:
        """Stack the row files into one raster, split it into columns, drop the rows."""
        joined = raster.append([raster.decode(path) for path in self.rows], "row")
        self.columns = self._write(joined, "column", "cols")
        for path in self.rows:
            path.unlink()
        self.rows = []

    @staticmethod
    def _iter(paths: List[Path], from_end: bool) -> Iterator[Image.Image]:
        for path in reversed(paths) if from_end else paths:
            yield raster.decode(path)

    def count(self, side: Side) -> int:
        paths = self.rows if side.axis == "row" else self.columns
        return count_identical(self._iter(paths, side.from_end))


def split_shared_runs(counts: Dict[Side, int], size: Tuple[int, int]) -> None:
    """Share a run that spans the whole axis between both of its sides.

    When opposite sides both count the same identical slices (every row or
    every column of the image is identical), chopping each side by its own
    count would remove more than the image holds. The run is split in half
    instead, rounding the odd slice towards North/West.
    """
    width, height = size
    for first, second, extent in ((Side.NORTH, Side.SOUTH, height), (Side.WEST, Side.EAST, width)):
        if first in counts and second in counts and counts[first] + counts[second] > extent:
            counts[second] = extent // 2
            counts[first] = extent - counts[second]


def _memory_count(pixels: np.ndarray, side: Side) -> int:
    slices = pixels if side.axis == "row" else pixels.transpose(1, 0, 2)
    if side.from_end:
        slices = slices[::-1]
    return count_identical(slices, np.array_equal)


def scan_sides(
    image: Image.Image,
    sides: Iterable[Side],
    frame_width: int,
    strategy: str = "spool",
    tmpdir: Optional[str] = None,
) -> Dict[Side, int]:
    """Measure the residual of every side in ``sides`` with one slicing pass."""
    sides = list(sides)
    if not sides:
        return {}
    if strategy not in STRATEGIES:
        raise ConfigError(f"Unknown scan strategy {strategy!r}, expected one of {STRATEGIES}")

    counts: Dict[Side, int] = {}
    if strategy == "memory":
        pixels = raster.pixels(image)
        for side in sides:
            counts[side] = _memory_count(pixels, side)
    else:
        with interrupt_guard(), scratch_dir(tmpdir) as directory:
            spool = SliceSpool(directory)
            spool.write_rows(image)
            for side in sides:
                if side.axis == "row":
                    counts[side] = spool.count(side)
            if any(side.axis == "column" for side in sides):
                spool.rejoin_as_columns()
                for side in sides:
                    if side.axis == "column":
                        counts[side] = spool.count(side)

    split_shared_runs(counts, raster.dimensions(image))
    residuals = {side: residual(counts[side], frame_width) for side in sides}
    for side in sides:
        logger.debug("Scan %s: %d identical slices, residual %+d", side.value, counts[side], residuals[side])
    return residuals


def measure_residual(
    image: Image.Image,
    side: Side,
    frame_width: int,
    strategy: str = "spool",
    tmpdir: Optional[str] = None,
) -> int:
    """Residual border thickness of one side relative to ``frame_width``."""
    return scan_sides(image, [side], frame_width, strategy=strategy, tmpdir=tmpdir)[side]
