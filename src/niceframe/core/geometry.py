"""Image sides and per-side frame instructions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

Color = Tuple[int, ...]


class Side(Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def opposite(self) -> "Side":
        return _OPPOSITES[self]

    @property
    def axis(self) -> str:
        """``"row"`` for North/South strips, ``"column"`` for East/West."""
        return "row" if self in (Side.NORTH, Side.SOUTH) else "column"

    @property
    def from_end(self) -> bool:
        """True when the side's edge is the last row/column of the raster."""
        return self in (Side.SOUTH, Side.EAST)


_OPPOSITES = {
    Side.NORTH: Side.SOUTH,
    Side.SOUTH: Side.NORTH,
    Side.EAST: Side.WEST,
    Side.WEST: Side.EAST,
}

# Probe and reporting order.
SIDES: Tuple[Side, ...] = (Side.NORTH, Side.SOUTH, Side.EAST, Side.WEST)


@dataclass(frozen=True)
class FrameInstruction:
    """One geometry change on one side.

    ``thickness`` is signed: positive values extend the side, negative values
    chop it. Extensions are filled with ``color``, or with copies of the
    current edge slice when ``color`` is ``None``.
    """

    side: Side
    thickness: int
    color: Optional[Color] = None

    @property
    def is_noop(self) -> bool:
        return self.thickness == 0
