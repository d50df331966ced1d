"""Building, merging and addressing tile catalogs."""

from __future__ import annotations

import logging
import warnings
from collections import UserList
from typing import AbstractSet, Iterable, List, Optional, Sequence

from .cells import CellWidth, TileCell
from .tiles import EMPTY_TILE, MatchKind, Tile, TileBlock, find_match

log = logging.getLogger(__name__)

MAX_TILES_FLIPPED = 0x400
MAX_TILES_UNFLIPPED = 0x100


class TileCapacityWarning(UserWarning):
    """Emitted when distinct tiles are lost to the catalog's addressable range."""


class TileCatalog(UserList):
    """
    Ordered unique tiles. Entry 0 is the blank tile for freshly built catalogs.

    ``dropped`` counts the distinct tiles that did not fit under ``capacity``.
    """

    def __init__(self, tiles: Iterable[Tile] = (), capacity: Optional[int] = None, dropped: int = 0):
        super().__init__(tiles)
        self.capacity = capacity
        self.dropped = dropped

    def find(self, tile: Tile, flip_allowed: bool):
        return find_match(tile, self.data, flip_allowed)


def catalog_capacity(flip_allowed: bool) -> int:
    return MAX_TILES_FLIPPED if flip_allowed else MAX_TILES_UNFLIPPED


def _iter_blocks(blocks: Iterable) -> Iterable[TileBlock]:
    for row in blocks:
        if isinstance(row, TileBlock):
            yield row
        else:
            yield from row


def deduplicate(blocks: Iterable, flip_allowed: bool) -> TileCatalog:
    """
    Build the unique tile catalog for tilized blocks.

    :param blocks:       Rows of blocks (or a flat sequence) in row-major order
    :param flip_allowed: Treat mirrored tiles as duplicates
    :return:             Catalog starting with the blank tile
    """
    capacity = catalog_capacity(flip_allowed)
    catalog = TileCatalog([EMPTY_TILE], capacity=capacity)
    overflow: List[Tile] = []
    for block in _iter_blocks(blocks):
        tile = block.pixels
        if catalog.find(tile, flip_allowed)[0] != -1:
            continue
        if len(catalog) < capacity:
            catalog.append(tile)
        elif find_match(tile, overflow, flip_allowed)[0] == -1:
            overflow.append(tile)

    catalog.dropped = len(overflow)
    if overflow:
        warnings.warn(
            f"{len(overflow)} distinct tiles dropped; only {capacity} tiles are addressable",
            TileCapacityWarning,
            stacklevel=2,
        )
    log.debug("Deduplicated to %d tiles (%d dropped)", len(catalog), catalog.dropped)
    return catalog


def merge_tilesets(
    previous: Sequence[Tile],
    tiles_to_keep: AbstractSet[int],
    new_tiles: Sequence[Tile],
    flip_allowed: bool,
    capacity: Optional[int] = None,
) -> TileCatalog:
    """
    Fold a freshly deduplicated catalog into a shared tileset.

    Tiles listed in ``tiles_to_keep`` are still used by other tilemaps and
    stay at their index. Every other slot of ``previous`` is reused for the
    next new tile that is not already present; when the new tiles run out,
    the rest of ``previous`` is kept as-is. Remaining new tiles go at the end.

    :param previous:      Current tileset contents
    :param tiles_to_keep: Indices into ``previous`` that must not move
    :param new_tiles:     Tiles the edited tilemap needs
    :param flip_allowed:  Treat mirrored tiles as duplicates
    :param capacity:      Optional limit for tiles appended past ``previous``
    :return:              Merged catalog, never shorter than ``previous``
    """
    merged: List[Tile] = []
    new_index = 0
    for index, tile in enumerate(previous):
        if index in tiles_to_keep:
            merged.append(tile)
            continue
        while new_index < len(new_tiles) and find_match(new_tiles[new_index], merged, flip_allowed)[0] != -1:
            new_index += 1
        if new_index == len(new_tiles):
            break
        merged.append(new_tiles[new_index])
        new_index += 1

    reused = len(merged)
    merged.extend(previous[len(merged):])

    dropped = 0
    for tile in new_tiles[new_index:]:
        if find_match(tile, merged, flip_allowed)[0] != -1:
            continue
        if capacity is not None and len(merged) >= capacity:
            dropped += 1
            continue
        merged.append(tile)

    if dropped:
        warnings.warn(
            f"{dropped} tiles dropped while merging; tileset is limited to {capacity} tiles",
            TileCapacityWarning,
            stacklevel=2,
        )
    log.debug(
        "Merged tileset: %d previous, %d kept, %d walked, %d total",
        len(previous),
        len(tiles_to_keep),
        reused,
        len(merged),
    )
    return TileCatalog(merged, capacity=capacity, dropped=dropped)


def encode_tilemap(
    blocks: Sequence[Sequence[TileBlock]], catalog: TileCatalog, cell_width: CellWidth
) -> List[List[TileCell]]:
    """
    Address every block against ``catalog``; unmatched blocks use tile 0.

    Only the first ``cell_width.capacity`` tiles are addressable. Tiles the
    catalog holds past that range are counted in ``catalog.dropped``.
    """
    flip_allowed = cell_width.allows_flips
    addressable = catalog[: cell_width.capacity]
    beyond = catalog[cell_width.capacity :]
    unaddressable: List[Tile] = []
    rows = []
    for row in blocks:
        cells = []
        for block in row:
            index, kind = find_match(block.pixels, addressable, flip_allowed)
            if index == -1:
                if (
                    find_match(block.pixels, beyond, flip_allowed)[0] != -1
                    and find_match(block.pixels, unaddressable, flip_allowed)[0] == -1
                ):
                    unaddressable.append(block.pixels)
                index, kind = 0, MatchKind.NORMAL
            if cell_width is CellWidth.ONE:
                cells.append(TileCell(tile_index=index))
            else:
                cells.append(
                    TileCell(
                        tile_index=index,
                        palette_index=block.palette,
                        h_flip=kind.h_flip,
                        v_flip=kind.v_flip,
                    )
                )
        rows.append(cells)

    if unaddressable:
        catalog.dropped += len(unaddressable)
        warnings.warn(
            f"{len(unaddressable)} tiles sit past index {cell_width.capacity - 1} "
            f"and cannot be addressed by {int(cell_width)}-byte cells",
            TileCapacityWarning,
            stacklevel=2,
        )
    return rows
