"""Turn a border classification into the final framed image."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from PIL import Image

from niceframe.core import raster, slices
from niceframe.core.classify import BorderKind, BorderState, side_color
from niceframe.core.geometry import SIDES, FrameInstruction, Side

logger = logging.getLogger(__name__)

DEFAULT_FRAME_WIDTH = 20


@dataclass
class ComposeResult:
    image: Image.Image
    path: str
    changed: bool
    instructions: List[FrameInstruction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "changed": self.changed,
            "instructions": [
                {"side": item.side.value, "thickness": item.thickness}
                for item in self.instructions
            ],
        }


def uniform_frame(image: Image.Image, state: BorderState, frame_width: int) -> ComposeResult:
    """Trim to the content and add a ``frame_width`` frame in the top-left color."""
    instructions = [FrameInstruction(side, frame_width, state.nw_color) for side in SIDES]
    framed = raster.apply_instructions(raster.auto_trim(image), instructions)
    return ComposeResult(framed, "full", True, instructions)


def splice_instructions(state: BorderState, frame_width: int) -> List[FrameInstruction]:
    """One ``frame_width`` strip per trimmable side, North/West colors first."""
    order = (Side.NORTH, Side.WEST, Side.SOUTH, Side.EAST)
    return [
        FrameInstruction(side, frame_width, side_color(state, side))
        for side in order
        if state.trimmable(side)
    ]


def corrective_instructions(residuals: Dict[Side, int], frame_width: int) -> List[FrameInstruction]:
    """Chop positive residuals, grow negative ones by repeating the edge slice.

    A residual of ``-frame_width`` means the edge slice has no identical
    neighbour. That slice stays and counts towards the frame, so it only
    gets ``frame_width - 1`` copies.
    """
    instructions = []
    for side in SIDES:
        if side not in residuals:
            continue
        thickness = -residuals[side]
        if thickness > 0 and thickness == frame_width:
            thickness -= 1
        if thickness:
            instructions.append(FrameInstruction(side, thickness))
    return instructions


def per_side_frame(
    image: Image.Image,
    state: BorderState,
    frame_width: int,
    strategy: str = "spool",
    tmpdir: Optional[str] = None,
) -> ComposeResult:
    """Frame trimmable sides directly and correct the others from slice scans."""
    spliced_with = splice_instructions(state, frame_width)
    spliced = raster.apply_instructions(raster.auto_trim(image), spliced_with)

    untrimmed = [side for side in SIDES if not state.trimmable(side)]
    residuals = slices.scan_sides(spliced, untrimmed, frame_width, strategy=strategy, tmpdir=tmpdir)
    for side, value in residuals.items():
        state.verdicts[side].residual = value

    corrections = corrective_instructions(residuals, frame_width)
    framed = raster.apply_instructions(spliced, corrections)
    return ComposeResult(framed, "per-side", True, spliced_with + corrections)


def compose(
    image: Image.Image,
    state: BorderState,
    frame_width: int = DEFAULT_FRAME_WIDTH,
    strategy: str = "spool",
    tmpdir: Optional[str] = None,
) -> ComposeResult:
    """Normalize the border of ``image`` according to ``state``.

    The input image is never modified; callers commit ``result.image`` only
    when the whole computation succeeded.
    """
    if state.transparent:
        logger.info("Top-left pixel is transparent, leaving the border alone")
        return ComposeResult(image, "transparent", False)

    if state.kind is BorderKind.FULL:
        result = uniform_frame(image, state, frame_width)
    elif state.kind is BorderKind.PARTIAL:
        result = per_side_frame(image, state, frame_width, strategy=strategy, tmpdir=tmpdir)
    else:
        return ComposeResult(image, "none", False)

    result.changed = not raster.compare_exact(result.image, image)
    logger.info(
        "Framed %s: %sx%s -> %sx%s%s",
        result.path,
        *raster.dimensions(image),
        *raster.dimensions(result.image),
        "" if result.changed else " (already normalized)",
    )
    return result
