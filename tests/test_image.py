import pytest
from PIL import Image

from conftest import make_tile

from lztilemap.image import ImageFormatError, default_palette, grid_to_image, image_to_grid, load_grid, save_grid


def _grid():
    tile = make_tile(7)
    return [list(row) + [p + 32 for p in row] for row in tile]


def test_save_and_load_keeps_indices(tmp_path) -> None:
    grid = _grid()
    path = save_grid(tmp_path / "out" / "tiles.png", grid)
    assert path.exists()
    assert load_grid(path) == grid


def test_image_is_indexed_with_default_palette() -> None:
    image = grid_to_image(_grid())
    assert image.mode == "P"
    assert image.size == (16, 8)
    assert image.getpalette()[: 3 * 16] == [c for rgb in default_palette()[:16] for c in rgb]


def test_custom_palette() -> None:
    image = grid_to_image([[0, 1]], palette=[(255, 0, 0), (0, 0, 255)])
    assert image.getpalette()[:6] == [255, 0, 0, 0, 0, 255]


def test_too_many_colors() -> None:
    with pytest.raises(ImageFormatError):
        grid_to_image([[0]], palette=[(0, 0, 0)] * 257)


def test_pixel_out_of_range() -> None:
    with pytest.raises(ImageFormatError):
        grid_to_image([[0, 256]])


def test_rgb_image_rejected() -> None:
    with pytest.raises(ImageFormatError, match="mode RGB"):
        image_to_grid(Image.new("RGB", (8, 8)))


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(ImageFormatError, match="not found"):
        load_grid(tmp_path / "missing.png")


def test_load_unreadable_file(tmp_path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    with pytest.raises(ImageFormatError, match="Failed to read"):
        load_grid(path)
