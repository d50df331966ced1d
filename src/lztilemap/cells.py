"""Tilemap cell packing.

Two-byte cells are little endian 16-bit values::

    bits  0-9   tile index (0-1023)
    bit   10    horizontal flip
    bit   11    vertical flip
    bits 12-15  palette index (0-15)

One-byte cells hold only the tile index (0-255).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Iterator, List, Sequence

if TYPE_CHECKING:
    from .formats import TilemapFormat

TILE_INDEX_MASK = 0x3FF
H_FLIP_BIT = 10
V_FLIP_BIT = 11
PALETTE_SHIFT = 12


class CellWidth(IntEnum):
    ONE = 1
    TWO = 2

    @classmethod
    def for_format(cls, fmt: "TilemapFormat", decompressed_length: int) -> "CellWidth":
        """Pick the cell width that fits the decompressed tilemap."""
        if fmt.tile_width * fmt.tile_height * 2 > decompressed_length:
            return cls.ONE
        return cls.TWO

    @property
    def allows_flips(self) -> bool:
        return self is CellWidth.TWO

    @property
    def capacity(self) -> int:
        return 0x400 if self is CellWidth.TWO else 0x100


@dataclass(frozen=True)
class TileCell:
    tile_index: int = 0
    palette_index: int = 0
    h_flip: bool = False
    v_flip: bool = False


def decode_cell(data: bytes, cell_width: CellWidth) -> TileCell:
    if cell_width is CellWidth.ONE:
        return TileCell(tile_index=data[0])
    value = int.from_bytes(data[:2], "little")
    return TileCell(
        tile_index=value & TILE_INDEX_MASK,
        palette_index=(value >> PALETTE_SHIFT) & 0xF,
        h_flip=bool((value >> H_FLIP_BIT) & 1),
        v_flip=bool((value >> V_FLIP_BIT) & 1),
    )


def encode_cell(cell: TileCell, cell_width: CellWidth) -> bytes:
    """Pack ``cell``; one-byte cells drop flip and palette information."""
    if cell_width is CellWidth.ONE:
        if not 0 <= cell.tile_index <= 0xFF:
            raise ValueError(f"Tile index out of range for one-byte cells: {cell.tile_index}")
        return bytes([cell.tile_index])
    if not 0 <= cell.tile_index <= TILE_INDEX_MASK:
        raise ValueError(f"Tile index out of range: {cell.tile_index}")
    if not 0 <= cell.palette_index <= 0xF:
        raise ValueError(f"Palette index out of range: {cell.palette_index}")
    value = cell.tile_index
    if cell.h_flip:
        value |= 1 << H_FLIP_BIT
    if cell.v_flip:
        value |= 1 << V_FLIP_BIT
    value |= cell.palette_index << PALETTE_SHIFT
    return value.to_bytes(2, "little")


def _check_length(map_data: bytes, fmt: "TilemapFormat", cell_width: CellWidth) -> None:
    needed = fmt.tile_width * fmt.tile_height * int(cell_width)
    if len(map_data) < needed:
        raise ValueError(
            f"Tilemap data too short: {len(map_data)} bytes, expected at least {needed}"
        )


def decode_cells(
    map_data: bytes, fmt: "TilemapFormat", cell_width: CellWidth
) -> List[List[TileCell]]:
    """Decode a decompressed tilemap into rows of cells."""
    _check_length(map_data, fmt, cell_width)
    step = int(cell_width)
    rows: List[List[TileCell]] = []
    for y in range(fmt.tile_height):
        row = []
        for x in range(fmt.tile_width):
            offset = (y * fmt.tile_width + x) * step
            row.append(decode_cell(map_data[offset : offset + step], cell_width))
        rows.append(row)
    return rows


def encode_cells(rows: Sequence[Sequence[TileCell]], cell_width: CellWidth) -> bytes:
    return b"".join(encode_cell(cell, cell_width) for row in rows for cell in row)


def used_tiles(map_data: bytes, fmt: "TilemapFormat", cell_width: CellWidth) -> Iterator[int]:
    """Yield the tile index of every cell in row-major order."""
    _check_length(map_data, fmt, cell_width)
    step = int(cell_width)
    for i in range(fmt.tile_width * fmt.tile_height):
        value = int.from_bytes(map_data[i * step : (i + 1) * step], "little")
        yield value & TILE_INDEX_MASK
