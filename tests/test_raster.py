import numpy as np
import pytest
from PIL import Image

from conftest import WHITE, bordered, noise
from niceframe.core import raster
from niceframe.core.errors import EngineFailure
from niceframe.core.geometry import FrameInstruction, Side


def test_trim_box_finds_content(framed_content):
    _, image = framed_content
    assert raster.trim_box(image) == (10, 10, 50, 40)


def test_trim_box_of_uniform_image_is_empty():
    image = Image.new("RGB", (7, 4), (10, 120, 200))
    assert raster.trim_box(image) == raster.EMPTY_BOX
    assert raster.dimensions(raster.auto_trim(image)) == (0, 0)


def test_trim_uses_bottom_left_for_the_bottom_edge():
    data = np.full((6, 6, 3), 255, dtype=np.uint8)
    data[2:4, 2:4] = (0, 0, 0)
    data[4:, :] = (0, 255, 0)
    image = Image.fromarray(data)
    # The green rows match the bottom-left pixel, so they are trimmed too.
    assert raster.trim_box(image) == (0, 2, 6, 4)


def test_apply_instructions_chops_and_extends_in_one_pass():
    image = Image.fromarray(noise(10, 8))
    result = raster.apply_instructions(
        image,
        [
            FrameInstruction(Side.NORTH, -2),
            FrameInstruction(Side.EAST, 3, WHITE),
            FrameInstruction(Side.WEST, -1),
        ],
    )
    assert result.size == (12, 6)
    data = raster.pixels(result)
    assert (data[:, -3:] == WHITE).all()
    assert np.array_equal(data[:, :9], noise(10, 8)[2:, 1:])


def test_apply_instructions_replicates_edge_slice():
    image = Image.fromarray(noise(5, 4))
    result = raster.apply_instructions(image, [FrameInstruction(Side.SOUTH, 3)])
    data = raster.pixels(result)
    assert result.size == (5, 7)
    for row in range(3, 7):
        assert np.array_equal(data[row], noise(5, 4)[3])


def test_later_extensions_span_earlier_corners():
    image = Image.new("RGB", (2, 2), (1, 2, 3))
    result = raster.apply_instructions(
        image,
        [FrameInstruction(Side.NORTH, 1, (9, 9, 9)), FrameInstruction(Side.WEST, 1, (7, 7, 7))],
    )
    assert raster.sample(result, 0, 0) == (7, 7, 7)
    assert raster.sample(result, 1, 0) == (9, 9, 9)


def test_over_chop_is_rejected():
    image = Image.new("RGB", (4, 4))
    with pytest.raises(EngineFailure):
        raster.apply_instructions(image, [FrameInstruction(Side.NORTH, -3), FrameInstruction(Side.SOUTH, -2)])


def test_chop_clamps_to_the_image():
    image = Image.new("RGB", (4, 1))
    assert raster.chop(image, Side.SOUTH, 1).size == (4, 0)
    assert raster.chop(raster.chop(image, Side.SOUTH, 1), Side.SOUTH, 1).size == (4, 0)


def test_frame_around_empty_core():
    empty = raster.auto_trim(Image.new("RGB", (3, 3), (5, 5, 5)))
    framed = raster.apply_instructions(empty, [FrameInstruction(side, 4, (5, 5, 5)) for side in Side])
    assert framed.size == (8, 8)


def test_crop_slice_and_compare_exact():
    image = bordered(noise(4, 4), 2)
    first = raster.crop_slice(image, "row", 0)
    second = raster.crop_slice(image, "row", 1)
    third = raster.crop_slice(image, "row", 2)
    assert first.size == (8, 1)
    assert raster.crop_slice(image, "column", 3).size == (1, 8)
    assert raster.compare_exact(first, second)
    assert not raster.compare_exact(second, third)
    assert not raster.compare_exact(first, raster.crop_slice(image, "column", 0))


def test_append_rejoins_rows():
    image = Image.fromarray(noise(6, 5))
    rows = [raster.crop_slice(image, "row", index) for index in range(5)]
    assert raster.compare_exact(raster.append(rows, "row"), image)


def test_sample_and_transparency():
    image = Image.new("RGBA", (2, 2), (10, 20, 30, 0))
    color = raster.sample(image, 1, 1)
    assert color == (10, 20, 30, 0)
    assert raster.is_transparent(color)
    assert not raster.is_transparent((10, 20, 30))


def test_count_colors_and_opacity():
    image = Image.new("RGBA", (3, 1), (0, 0, 0, 255))
    image.putpixel((1, 0), (255, 0, 0, 255))
    assert raster.count_colors(image) == 2
    assert raster.is_opaque(image)
    image.putpixel((2, 0), (255, 0, 0, 128))
    assert not raster.is_opaque(image)
    assert raster.is_opaque(image.convert("RGB"))


def test_decode_normalizes_modes(tmp_path):
    gray = tmp_path / "gray.png"
    Image.new("L", (3, 3), 128).save(gray)
    palette = tmp_path / "palette.png"
    Image.new("P", (3, 3), 0).save(palette, transparency=0)

    assert raster.decode(gray).mode == "RGB"
    assert raster.decode(palette).mode == "RGBA"
    assert raster.describe(gray)["mode"] == "L"


def test_encode_restores_grayscale(tmp_path):
    path = tmp_path / "out.png"
    raster.encode(Image.new("RGB", (2, 2), (40, 40, 40)), path, fmt="PNG", source_mode="L")
    with Image.open(path) as handle:
        assert handle.mode == "L"


def test_decode_failure_is_engine_failure(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    with pytest.raises(EngineFailure):
        raster.decode(path)


def test_decompression_bomb_is_engine_failure(tmp_path, monkeypatch):
    path = tmp_path / "big.png"
    Image.new("RGB", (120, 100)).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 5000)
    with pytest.raises(EngineFailure):
        raster.describe(path)
    with pytest.raises(EngineFailure):
        raster.decode(path)
