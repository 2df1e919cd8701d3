"""Shared image builders for the test-suite."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

WHITE = (255, 255, 255)
RED = (200, 30, 30)
BLUE = (30, 30, 200)
GRAY = (90, 90, 90)


def noise(width: int, height: int) -> np.ndarray:
    """Deterministic pattern with no uniform row or column and no white pixel."""
    ys, xs = np.mgrid[0:height, 0:width]
    return np.stack(
        [(xs * 7 + ys * 13) % 200, (xs * 3 + 11) % 200, (ys * 5 + xs) % 200],
        axis=-1,
    ).astype(np.uint8)


def bordered(content: np.ndarray, border: int, color=WHITE) -> Image.Image:
    height, width = content.shape[:2]
    canvas = np.empty((height + 2 * border, width + 2 * border, 3), dtype=np.uint8)
    canvas[...] = color
    canvas[border:border + height, border:border + width] = content
    return Image.fromarray(canvas)


def north_west_with_striped_south() -> Image.Image:
    """60x50 image: 10 px white border on North/West only.

    A gray block reaches the East edge and the bottom 5 rows carry a
    red/blue stripe pattern (white under the West border).
    """
    canvas = np.empty((50, 60, 3), dtype=np.uint8)
    canvas[...] = WHITE
    canvas[10:45, 10:] = GRAY
    for x in range(10, 60):
        canvas[45:, x] = RED if x % 2 == 0 else BLUE
    return Image.fromarray(canvas)


@pytest.fixture
def framed_content():
    """40x30 noise surrounded by a uniform 10 px white border."""
    content = noise(40, 30)
    return content, bordered(content, 10)


@pytest.fixture
def partial_image():
    return north_west_with_striped_south()


@pytest.fixture
def save_png(tmp_path):
    def _save(image: Image.Image, name: str = "image.png", **params) -> Path:
        path = tmp_path / name
        image.save(path, format="PNG", **params)
        return path

    return _save
