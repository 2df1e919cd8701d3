"""Resolution helpers."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


def dpi_of(dpi: Optional[Sequence[float]]) -> Optional[int]:
    """Horizontal resolution rounded to whole dots per inch."""
    if not dpi:
        return None
    return int(round(float(dpi[0])))


def scaled_size(size: Tuple[int, int], factor: float) -> Tuple[int, int]:
    """Scale a pixel size, never dropping below one pixel."""
    width, height = size
    return max(1, int(round(width * factor))), max(1, int(round(height * factor)))
