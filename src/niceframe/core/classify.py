"""Classify an image's border as none, partial or full."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from PIL import Image

from niceframe.core import raster
from niceframe.core.geometry import SIDES, Color, Side
from niceframe.core.probe import is_trimmable

logger = logging.getLogger(__name__)


class BorderKind(Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


@dataclass
class SideVerdict:
    side: Side
    trimmable: bool
    color: Optional[Color] = None
    residual: Optional[int] = None


@dataclass
class BorderState:
    verdicts: Dict[Side, SideVerdict]
    nw_color: Color
    se_color: Optional[Color] = None

    @property
    def full(self) -> bool:
        return all(v.trimmable for v in self.verdicts.values())

    @property
    def any(self) -> bool:
        return any(v.trimmable for v in self.verdicts.values())

    @property
    def kind(self) -> BorderKind:
        if self.full:
            return BorderKind.FULL
        if self.any:
            return BorderKind.PARTIAL
        return BorderKind.NONE

    @property
    def transparent(self) -> bool:
        return raster.is_transparent(self.nw_color)

    def trimmable(self, side: Side) -> bool:
        return self.verdicts[side].trimmable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "transparent": self.transparent,
            "nw_color": list(self.nw_color),
            "se_color": list(self.se_color) if self.se_color else None,
            "sides": {
                side.value: {
                    "trimmable": verdict.trimmable,
                    "residual": verdict.residual,
                }
                for side, verdict in self.verdicts.items()
            },
        }


def side_color(state: BorderState, side: Side) -> Optional[Color]:
    """Fill color for ``side``: top-left for North/West, bottom-right for South/East."""
    return state.se_color if side.from_end else state.nw_color


def classify(image: Image.Image) -> BorderState:
    """Probe all four sides and sample the corner colors."""
    width, height = raster.dimensions(image)
    verdicts = {side: SideVerdict(side, is_trimmable(image, side)) for side in SIDES}
    nw_color = raster.sample(image, 0, 0)
    state = BorderState(verdicts=verdicts, nw_color=nw_color)

    if state.trimmable(Side.SOUTH) or state.trimmable(Side.EAST):
        state.se_color = raster.sample(image, width - 1, height - 1)

    for side, verdict in verdicts.items():
        if verdict.trimmable:
            verdict.color = side_color(state, side)

    logger.info(
        "Border %s (%s)%s",
        state.kind.value,
        ", ".join(f"{s.value}={'y' if v.trimmable else 'n'}" for s, v in verdicts.items()),
        " transparent" if state.transparent else "",
    )
    return state
