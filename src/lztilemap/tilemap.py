"""Reading and rewriting tilemap resources inside a data model.

``write_pixels`` is the full edit path: the edited pixels are tilized and
deduplicated, folded into the shared tileset without moving tiles that
sibling tilemaps still use, and both resources are re-compressed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence

from .catalog import TileCatalog, deduplicate, encode_tilemap, merge_tilesets
from .cells import decode_cells, encode_cells, used_tiles
from .compositor import Grid, blank_grid, check_grid_size, composite, tilize
from .formats import SpriteFormat
from .locator import TilesetCache, TilesetResolver, find_matching_tileset
from .model import (
    ByteStreamCodec,
    DataModel,
    GraphicsResource,
    SpriteResource,
    TilemapResource,
    TilesetResource,
    read_decompressed,
    write_compressed,
)
from .tiles import TILE_SIZE, Tile, decode_tile, decode_tileset, encode_tileset, tile_byte_size

log = logging.getLogger(__name__)

TILESET_COLUMNS = 16


class MissingTilesetError(LookupError):
    """Raised when a tilemap edit needs a tileset that cannot be resolved."""


@dataclass
class EditResult:
    tilemap: TilemapResource
    tileset: TilesetResource
    catalog: TileCatalog


def _tile_source(
    model: DataModel, resolver: TilesetResolver, tilemap: TilemapResource, cache: Optional[TilesetCache]
) -> Optional[GraphicsResource]:
    address = find_matching_tileset(resolver, tilemap, cache)
    if address is None:
        return None
    match model.run_at(address):
        case TilesetResource() | SpriteResource() as run:
            return run
        case _:
            return None


def sprite_format(
    model: DataModel, resolver: TilesetResolver, tilemap: TilemapResource, cache: Optional[TilesetCache] = None
) -> SpriteFormat:
    """Sprite-shaped view of a tilemap, borrowing the palette hint of its tileset."""
    fmt = tilemap.format
    hint = None
    match _tile_source(model, resolver, tilemap, cache):
        case TilesetResource(format=tileset_format) | SpriteResource(format=tileset_format):
            hint = tileset_format.palette_hint
    return SpriteFormat(fmt.bits_per_pixel, fmt.tile_width, fmt.tile_height, hint)


def composite_tilemap(
    model: DataModel,
    codec: ByteStreamCodec,
    resolver: TilesetResolver,
    tilemap: TilemapResource,
    cache: Optional[TilesetCache] = None,
) -> Grid:
    """Render a tilemap, or a blank grid when its tileset is missing."""
    source = _tile_source(model, resolver, tilemap, cache)
    if source is None:
        log.debug("No tileset for tilemap at %#x; rendering blank", tilemap.start)
        return blank_grid(tilemap.format)
    map_data = read_decompressed(model, codec, tilemap)
    cells = decode_cells(map_data, tilemap.format, tilemap.cell_width)
    tiles = read_decompressed(model, codec, source)
    return composite(cells, tiles, tilemap.format.bits_per_pixel)


def tiles_to_grid(tiles: Sequence[Tile], columns: int) -> Grid:
    """Lay tiles out left to right, top to bottom; unused slots stay blank."""
    rows = max(1, -(-len(tiles) // columns))
    grid = [[0] * (columns * TILE_SIZE) for _ in range(rows * TILE_SIZE)]
    for index, tile in enumerate(tiles):
        x_start = (index % columns) * TILE_SIZE
        y_start = (index // columns) * TILE_SIZE
        for yy, row in enumerate(tile):
            grid[y_start + yy][x_start : x_start + TILE_SIZE] = row
    return grid


def graphics_pixels(
    run: GraphicsResource,
    model: DataModel,
    codec: ByteStreamCodec,
    resolver: Optional[TilesetResolver] = None,
    cache: Optional[TilesetCache] = None,
) -> Grid:
    """Pixel grid of any graphics resource."""
    match run:
        case TilemapResource():
            if resolver is None:
                return blank_grid(run.format)
            return composite_tilemap(model, codec, resolver, run, cache)
        case TilesetResource(format=fmt):
            tiles = decode_tileset(read_decompressed(model, codec, run), fmt.bits_per_pixel)
            return tiles_to_grid(tiles, TILESET_COLUMNS)
        case SpriteResource(format=fmt):
            data = read_decompressed(model, codec, run)
            size = tile_byte_size(fmt.bits_per_pixel)
            count = fmt.tile_width * fmt.tile_height
            tiles = [decode_tile(data, i * size, fmt.bits_per_pixel) for i in range(count)]
            return tiles_to_grid(tiles, fmt.tile_width)
    raise TypeError(f"Not a graphics resource: {run!r}")


def get_used_tiles(model: DataModel, codec: ByteStreamCodec, tilemap: TilemapResource) -> Iterator[int]:
    map_data = read_decompressed(model, codec, tilemap)
    return used_tiles(map_data, tilemap.format, tilemap.cell_width)


def find_dependent_tilemaps(
    model: DataModel, resolver: TilesetResolver, tileset: TilesetResource
) -> List[TilemapResource]:
    """Every tilemap in the model that draws from ``tileset``."""
    return [
        run
        for run in model.runs()
        if isinstance(run, TilemapResource) and find_matching_tileset(resolver, run) == tileset.start
    ]


def tiles_to_keep(
    model: DataModel,
    codec: ByteStreamCodec,
    resolver: TilesetResolver,
    tileset: TilesetResource,
    tile_count: int,
    tilemap: TilemapResource,
) -> set:
    """
    Tileset indices an edit of ``tilemap`` must not move.

    Everything is kept except tiles used by ``tilemap`` alone; tiles used by
    sibling tilemaps are kept even when ``tilemap`` uses them too.
    """
    keep = set(range(tile_count))
    keep.difference_update(get_used_tiles(model, codec, tilemap))
    for sibling in find_dependent_tilemaps(model, resolver, tileset):
        if sibling.start == tilemap.start:
            continue
        keep.update(get_used_tiles(model, codec, sibling))
    return keep


def write_tileset(
    model: DataModel,
    codec: ByteStreamCodec,
    token: object,
    tileset: TilesetResource,
    tiles: Sequence[Tile],
) -> TilesetResource:
    raw = encode_tileset(tiles, tileset.format.bits_per_pixel)
    start, length = write_compressed(model, codec, token, tileset, raw)
    written = replace(tileset, start=start, length=length)
    model.observe_run_written(token, written)
    return written


def replace_tilemap_data(
    model: DataModel, codec: ByteStreamCodec, token: object, tilemap: TilemapResource, raw: bytes
) -> TilemapResource:
    start, length = write_compressed(model, codec, token, tilemap, raw)
    written = replace(tilemap, start=start, length=length, decompressed_length=len(raw))
    model.observe_run_written(token, written)
    return written


def write_pixels(
    model: DataModel,
    codec: ByteStreamCodec,
    resolver: TilesetResolver,
    token: object,
    tilemap: TilemapResource,
    grid: Grid,
    cache: Optional[TilesetCache] = None,
) -> EditResult:
    """
    Store edited pixels back into a tilemap and its shared tileset.

    :raises MissingTilesetError: when the tilemap's tileset cannot be resolved
    :raises ValueError:          when ``grid`` does not match the tilemap size or a
                                 cell cannot be encoded; nothing is written then
    """
    fmt = tilemap.format
    cell_width = tilemap.cell_width
    flip_allowed = cell_width.allows_flips

    check_grid_size(grid, fmt)
    blocks = tilize(grid, fmt.bits_per_pixel)
    catalog = deduplicate(blocks, flip_allowed)

    address = find_matching_tileset(resolver, tilemap, cache)
    tileset = model.run_at(address) if address is not None else None
    if not isinstance(tileset, TilesetResource):
        raise MissingTilesetError(f"No tileset found for tilemap at {tilemap.start:#x} ({fmt.tag})")

    previous = decode_tileset(read_decompressed(model, codec, tileset), fmt.bits_per_pixel)
    keep = tiles_to_keep(model, codec, resolver, tileset, len(previous), tilemap)
    merged = merge_tilesets(previous, keep, catalog, flip_allowed, capacity=cell_width.capacity)
    merged.dropped += catalog.dropped
    # every cell must encode before anything is written
    encoded = encode_cells(encode_tilemap(blocks, merged, cell_width), cell_width)

    new_tileset = write_tileset(model, codec, token, tileset, merged)
    if cache is not None and new_tileset.start != tileset.start:
        cache.invalidate()

    map_data = bytearray(read_decompressed(model, codec, tilemap))
    map_data[: len(encoded)] = encoded
    new_tilemap = replace_tilemap_data(model, codec, token, tilemap, bytes(map_data))

    log.debug(
        "Wrote tilemap at %#x (%d tiles in tileset at %#x)",
        new_tilemap.start,
        len(merged),
        new_tileset.start,
    )
    return EditResult(tilemap=new_tilemap, tileset=new_tileset, catalog=merged)
