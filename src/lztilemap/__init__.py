"""LZ tilemap and tileset codec.

Decodes compressed tilemaps against their tilesets, and turns edited pixels
back into a deduplicated tileset plus tilemap cells while keeping tiles that
sibling tilemaps share in place. It can be invoked through the CLI (``python -m
lztilemap``) or imported and driven by a ROM data model.
"""

from .catalog import (
    TileCapacityWarning,
    TileCatalog,
    deduplicate,
    encode_tilemap,
    merge_tilesets,
)
from .cells import CellWidth, TileCell, decode_cell, decode_cells, encode_cell, encode_cells
from .compositor import MixedPaletteError, blank_grid, check_grid_size, composite, tilize
from .formats import (
    SpriteFormat,
    TilemapFormat,
    TilesetFormat,
    parse_sprite_format,
    parse_tilemap_format,
    parse_tileset_format,
)
from .locator import ModelTilesetResolver, TilesetCache, TilesetResolver, find_matching_tileset
from .model import SpriteResource, TilemapResource, TilesetResource
from .tilemap import MissingTilesetError, composite_tilemap, graphics_pixels, write_pixels
from .tiles import MatchKind, TileBlock, find_match, tiles_match

__all__ = [
    "CellWidth",
    "MatchKind",
    "MissingTilesetError",
    "MixedPaletteError",
    "ModelTilesetResolver",
    "SpriteFormat",
    "SpriteResource",
    "TileBlock",
    "TileCapacityWarning",
    "TileCatalog",
    "TileCell",
    "TilemapFormat",
    "TilemapResource",
    "TilesetCache",
    "TilesetFormat",
    "TilesetResolver",
    "TilesetResource",
    "blank_grid",
    "check_grid_size",
    "composite",
    "composite_tilemap",
    "decode_cell",
    "decode_cells",
    "deduplicate",
    "encode_cell",
    "encode_cells",
    "encode_tilemap",
    "find_match",
    "find_matching_tileset",
    "graphics_pixels",
    "merge_tilesets",
    "parse_sprite_format",
    "parse_tilemap_format",
    "parse_tileset_format",
    "tiles_match",
    "tilize",
    "write_pixels",
]
