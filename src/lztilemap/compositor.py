"""Rendering tilemaps to pixel grids and cutting pixel grids back into tiles.

Pixel grids are lists of rows (``grid[y][x]``). A pixel value carries its
palette in the bits above ``bits_per_pixel``: with 4bpp tiles, pixel ``0x23``
is color 3 of palette 2.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from .cells import TileCell
from .formats import TilemapFormat
from .tiles import TILE_SIZE, Tile, TileBlock, decode_tile, tile_byte_size

Grid = List[List[int]]


class MixedPaletteError(ValueError):
    """Raised when one 8x8 block uses pixels from more than one palette."""


def palette_divisor(bits_per_pixel: int) -> int:
    if bits_per_pixel not in (4, 8):
        raise ValueError(f"Unsupported bits per pixel: {bits_per_pixel}")
    return 1 << bits_per_pixel


def blank_grid(fmt: TilemapFormat) -> Grid:
    """Placeholder grid for a tilemap whose tileset cannot be found."""
    return [[0] * (fmt.tile_width * TILE_SIZE) for _ in range(fmt.tile_height * TILE_SIZE)]


def check_grid_size(grid: Sequence[Sequence[int]], fmt: TilemapFormat) -> None:
    """Raise ``ValueError`` unless ``grid`` covers exactly the tiles of ``fmt``."""
    expected = (fmt.tile_width * TILE_SIZE, fmt.tile_height * TILE_SIZE)
    actual = (len(grid[0]) if grid else 0, len(grid))
    if actual != expected:
        raise ValueError(
            f"Pixel grid is {actual[0]}x{actual[1]}, format {fmt.tag} needs {expected[0]}x{expected[1]}"
        )


def composite(
    cells: Sequence[Sequence[TileCell]], tile_pixels: bytes, bits_per_pixel: int
) -> Grid:
    """
    Render rows of cells against flat tileset data.

    :param cells:          Rows of tilemap cells
    :param tile_pixels:    Decompressed tileset data
    :param bits_per_pixel: 4 or 8
    :return:               Pixel grid of 8 * rows by 8 * columns
    """
    size = tile_byte_size(bits_per_pixel)
    height = len(cells)
    width = len(cells[0]) if height else 0
    result = [[0] * (width * TILE_SIZE) for _ in range(height * TILE_SIZE)]
    decoded: Dict[int, Tile] = {}
    last = TILE_SIZE - 1

    for ty, row in enumerate(cells):
        y_start = ty * TILE_SIZE
        for tx, cell in enumerate(row):
            tile = decoded.get(cell.tile_index)
            if tile is None:
                tile = decode_tile(tile_pixels, cell.tile_index * size, bits_per_pixel)
                decoded[cell.tile_index] = tile
            palette_offset = cell.palette_index << bits_per_pixel
            x_start = tx * TILE_SIZE
            for yy in range(TILE_SIZE):
                source = tile[last - yy if cell.v_flip else yy]
                target = result[y_start + yy]
                for xx in range(TILE_SIZE):
                    target[x_start + xx] = source[last - xx if cell.h_flip else xx] + palette_offset
    return result


def tilize(grid: Sequence[Sequence[int]], bits_per_pixel: int) -> List[List[TileBlock]]:
    """
    Cut a pixel grid into rows of 8x8 blocks.

    Each block takes its palette from its top-left pixel and keeps every
    pixel modulo the palette size. All pixels of a block must share that
    palette; this is checked unless Python runs with ``-O``.
    """
    divisor = palette_divisor(bits_per_pixel)
    height = len(grid)
    width = len(grid[0]) if height else 0
    if width % TILE_SIZE or height % TILE_SIZE:
        raise ValueError(f"Grid size {width}x{height} is not a multiple of {TILE_SIZE}")

    blocks: List[List[TileBlock]] = []
    for y_start in range(0, height, TILE_SIZE):
        row_blocks = []
        for x_start in range(0, width, TILE_SIZE):
            palette = grid[y_start][x_start] // divisor
            rows = []
            for yy in range(TILE_SIZE):
                source = grid[y_start + yy][x_start : x_start + TILE_SIZE]
                if __debug__:
                    for xx, pixel in enumerate(source):
                        if pixel // divisor != palette:
                            raise MixedPaletteError(
                                f"Pixel ({x_start + xx},{y_start + yy}) uses palette {pixel // divisor}, "
                                f"block at ({x_start},{y_start}) uses palette {palette}"
                            )
                rows.append(tuple(pixel % divisor for pixel in source))
            row_blocks.append(TileBlock(pixels=tuple(rows), palette=palette))
        blocks.append(row_blocks)
    return blocks
