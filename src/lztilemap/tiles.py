"""8x8 tile data and symmetry-aware tile matching."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

TILE_SIZE = 8

# Tile[y][x], palette-local pixel values
Tile = Tuple[Tuple[int, ...], ...]

EMPTY_TILE: Tile = tuple((0,) * TILE_SIZE for _ in range(TILE_SIZE))


@dataclass(frozen=True)
class TileBlock:
    """One 8x8 block cut from a pixel grid, with the palette it was drawn in."""

    pixels: Tile
    palette: int = 0


class MatchKind(Enum):
    NONE = 0
    NORMAL = 1
    HFLIP = 2
    VFLIP = 3
    BFLIP = 4

    @property
    def h_flip(self) -> bool:
        return self in (MatchKind.HFLIP, MatchKind.BFLIP)

    @property
    def v_flip(self) -> bool:
        return self in (MatchKind.VFLIP, MatchKind.BFLIP)


def tile_byte_size(bits_per_pixel: int) -> int:
    if bits_per_pixel not in (4, 8):
        raise ValueError(f"Unsupported bits per pixel: {bits_per_pixel}")
    return TILE_SIZE * bits_per_pixel


def hflip(tile: Tile) -> Tile:
    return tuple(tuple(reversed(row)) for row in tile)


def vflip(tile: Tile) -> Tile:
    return tuple(reversed(tile))


def tiles_match(a: Tile, b: Tile, flip_allowed: bool) -> MatchKind:
    """
    Compare two tiles under identity and the three mirrorings at once.

    A hypothesis is dropped at its first mismatching pixel and the comparison
    ends as soon as every hypothesis is dropped. When several survive, the
    unflipped one wins, then HFLIP, VFLIP and BFLIP.
    """
    normal = True
    h_possible = flip_allowed
    v_possible = flip_allowed
    b_possible = flip_allowed

    last = TILE_SIZE - 1
    for y in range(TILE_SIZE):
        row = a[y]
        same_row = b[y]
        mirror_row = b[last - y]
        for x in range(TILE_SIZE):
            pixel = row[x]
            if normal and pixel != same_row[x]:
                normal = False
            if h_possible and pixel != same_row[last - x]:
                h_possible = False
            if v_possible and pixel != mirror_row[x]:
                v_possible = False
            if b_possible and pixel != mirror_row[last - x]:
                b_possible = False
        if not (normal or h_possible or v_possible or b_possible):
            return MatchKind.NONE

    if normal:
        return MatchKind.NORMAL
    if h_possible:
        return MatchKind.HFLIP
    if v_possible:
        return MatchKind.VFLIP
    if b_possible:
        return MatchKind.BFLIP
    return MatchKind.NONE


def find_match(
    tile: Tile, collection: Sequence[Tile], flip_allowed: bool
) -> Tuple[int, MatchKind]:
    """Return the index and kind of the first entry matching ``tile``, or ``(-1, NONE)``."""
    for index, candidate in enumerate(collection):
        kind = tiles_match(tile, candidate, flip_allowed)
        if kind is not MatchKind.NONE:
            return index, kind
    return -1, MatchKind.NONE


# ---------------------------------------------------------------------------
# Raw tile data
# ---------------------------------------------------------------------------


def decode_tile(data: bytes, offset: int, bits_per_pixel: int) -> Tile:
    """
    Read one tile starting at ``offset``.

    4bpp data packs two pixels per byte with the left pixel in the low
    nibble; 8bpp data is one byte per pixel. Tiles that run past the end of
    ``data`` read as blank.
    """
    size = tile_byte_size(bits_per_pixel)
    if offset < 0 or offset + size > len(data):
        return EMPTY_TILE
    rows = []
    if bits_per_pixel == 4:
        for y in range(TILE_SIZE):
            row: List[int] = []
            for byte in data[offset + y * 4 : offset + y * 4 + 4]:
                row.append(byte & 0xF)
                row.append(byte >> 4)
            rows.append(tuple(row))
    else:
        for y in range(TILE_SIZE):
            start = offset + y * TILE_SIZE
            rows.append(tuple(data[start : start + TILE_SIZE]))
    return tuple(rows)


def encode_tile(tile: Tile, bits_per_pixel: int) -> bytes:
    out = bytearray()
    if bits_per_pixel == 4:
        for row in tile:
            for x in range(0, TILE_SIZE, 2):
                out.append((row[x] & 0xF) | ((row[x + 1] & 0xF) << 4))
    elif bits_per_pixel == 8:
        for row in tile:
            out.extend(pixel & 0xFF for pixel in row)
    else:
        raise ValueError(f"Unsupported bits per pixel: {bits_per_pixel}")
    return bytes(out)


def decode_tileset(data: bytes, bits_per_pixel: int) -> List[Tile]:
    """Split decompressed tileset data into tiles; a trailing partial tile is ignored."""
    size = tile_byte_size(bits_per_pixel)
    return [decode_tile(data, offset, bits_per_pixel) for offset in range(0, len(data) - size + 1, size)]


def encode_tileset(tiles: Sequence[Tile], bits_per_pixel: int) -> bytes:
    return b"".join(encode_tile(tile, bits_per_pixel) for tile in tiles)
