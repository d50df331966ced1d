"""Indexed PNG import/export for pixel grids."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

from PIL import Image

from .compositor import Grid

Color = Tuple[int, int, int]

MAX_COLORS = 256


class ImageFormatError(ValueError):
    """Raised when an image cannot be used as a palette-indexed pixel grid."""


def default_palette() -> List[Color]:
    """16 grayscale ramps, one per 4bpp palette row."""
    ramp = [(v * 17, v * 17, v * 17) for v in range(16)]
    return ramp * 16


def _flatten_palette(palette: Sequence[Color]) -> List[int]:
    if len(palette) > MAX_COLORS:
        raise ImageFormatError(f"Palette has {len(palette)} colors; at most {MAX_COLORS} are allowed")
    flat: List[int] = []
    for r, g, b in palette:
        flat.extend((r, g, b))
    flat.extend([0] * (MAX_COLORS * 3 - len(flat)))
    return flat


def grid_to_image(grid: Grid, palette: Sequence[Color] | None = None) -> Image.Image:
    """
    Convert a pixel grid to a mode ``P`` image.

    Pixel values must fit in one byte; 8bpp grids using palettes other than 0
    cannot be represented.
    """
    height = len(grid)
    width = len(grid[0]) if height else 0
    flat = [pixel for row in grid for pixel in row]
    if any(not 0 <= pixel < MAX_COLORS for pixel in flat):
        raise ImageFormatError("Pixel values must be between 0 and 255 to store in an indexed image")
    image = Image.new("P", (width, height))
    image.putpalette(_flatten_palette(palette if palette is not None else default_palette()))
    image.putdata(flat)
    return image


def image_to_grid(image: Image.Image) -> Grid:
    if image.mode != "P":
        raise ImageFormatError(f"Expected an indexed (mode P) image, got mode {image.mode}")
    width, height = image.size
    data = list(image.getdata())
    return [data[y * width : (y + 1) * width] for y in range(height)]


def load_grid(path: str | Path) -> Grid:
    path = Path(path)
    try:
        with Image.open(path) as img:
            return image_to_grid(img)
    except FileNotFoundError as exc:
        raise ImageFormatError(f"Input file not found: {path}") from exc
    except OSError as exc:
        raise ImageFormatError(f"Failed to read image: {path}") from exc


def save_grid(path: str | Path, grid: Grid, palette: Sequence[Color] | None = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    grid_to_image(grid, palette).save(path)
    return path
