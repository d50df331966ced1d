"""Textual format tags labelling compressed graphics resources.

Tags are wrapped in backticks::

    `lzm4x30x20|data.tileset|gfx`   tilemap, 4bpp, 30x20 cells, tileset hint, table member
    `lzt4|data.palette`             tileset, 4bpp, palette hint
    `lzs4x2x2|data.palette`         plain sprite, 4bpp, 2x2 tiles, palette hint
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

TILEMAP_PREFIX = "`lzm"
TILESET_PREFIX = "`lzt"
SPRITE_PREFIX = "`lzs"
TAG_SUFFIX = "`"
BITS_PER_PIXEL = (4, 8)


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _strip_tag(tag: str, prefix: str) -> Optional[str]:
    if len(tag) < len(prefix) + len(TAG_SUFFIX):
        return None
    if not (tag.startswith(prefix) and tag.endswith(TAG_SUFFIX)):
        return None
    return tag[len(prefix) : -len(TAG_SUFFIX)]


def _parse_dimensions(text: str) -> Optional[List[int]]:
    parts = text.split("x")
    if len(parts) != 3:
        return None
    values = [_parse_int(part) for part in parts]
    if any(value is None for value in values):
        return None
    return values  # type: ignore[return-value]


@dataclass(frozen=True)
class TilemapFormat:
    bits_per_pixel: int
    tile_width: int
    tile_height: int
    matching_tileset: Optional[str] = None
    tileset_table_member: Optional[str] = None

    def __post_init__(self) -> None:
        if self.tile_width <= 0 or self.tile_height <= 0:
            raise ValueError(f"Tilemap dimensions must be positive: {self.tile_width}x{self.tile_height}")

    @property
    def tag(self) -> str:
        text = f"{TILEMAP_PREFIX}{self.bits_per_pixel}x{self.tile_width}x{self.tile_height}"
        if self.matching_tileset is not None or self.tileset_table_member is not None:
            text += f"|{self.matching_tileset or ''}"
        if self.tileset_table_member is not None:
            text += f"|{self.tileset_table_member}"
        return text + TAG_SUFFIX


@dataclass(frozen=True)
class TilesetFormat:
    bits_per_pixel: int
    palette_hint: Optional[str] = None

    @property
    def tag(self) -> str:
        hint = f"|{self.palette_hint}" if self.palette_hint is not None else ""
        return f"{TILESET_PREFIX}{self.bits_per_pixel}{hint}{TAG_SUFFIX}"


@dataclass(frozen=True)
class SpriteFormat:
    bits_per_pixel: int
    tile_width: int
    tile_height: int
    palette_hint: Optional[str] = None

    @property
    def tag(self) -> str:
        hint = f"|{self.palette_hint}" if self.palette_hint is not None else ""
        return f"{SPRITE_PREFIX}{self.bits_per_pixel}x{self.tile_width}x{self.tile_height}{hint}{TAG_SUFFIX}"


def parse_tilemap_format(tag: str) -> Optional[TilemapFormat]:
    """Parse a tilemap tag; ``None`` means the tag describes something else."""
    body = _strip_tag(tag, TILEMAP_PREFIX)
    if body is None:
        return None
    body, _, rest = body.partition("|")
    hint, _, member = rest.partition("|")
    values = _parse_dimensions(body)
    if values is None:
        return None
    bits, width, height = values
    if bits not in BITS_PER_PIXEL or width <= 0 or height <= 0:
        return None
    return TilemapFormat(
        bits_per_pixel=bits,
        tile_width=width,
        tile_height=height,
        matching_tileset=hint or None,
        tileset_table_member=member or None,
    )


def parse_tileset_format(tag: str) -> Optional[TilesetFormat]:
    body = _strip_tag(tag, TILESET_PREFIX)
    if body is None:
        return None
    body, _, hint = body.partition("|")
    bits = _parse_int(body)
    if bits not in BITS_PER_PIXEL:
        return None
    return TilesetFormat(bits_per_pixel=bits, palette_hint=hint or None)


def parse_sprite_format(tag: str) -> Optional[SpriteFormat]:
    body = _strip_tag(tag, SPRITE_PREFIX)
    if body is None:
        return None
    body, _, hint = body.partition("|")
    values = _parse_dimensions(body)
    if values is None:
        return None
    bits, width, height = values
    if bits not in BITS_PER_PIXEL or width <= 0 or height <= 0:
        return None
    return SpriteFormat(bits_per_pixel=bits, tile_width=width, tile_height=height, palette_hint=hint or None)
