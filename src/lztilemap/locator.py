"""Finding the tileset a tilemap draws from.

A tilemap's format names its tileset indirectly. The hint may be the anchor
of the tileset itself, or of a table whose rows pair each tilemap with its
tileset; in that case the row is found through the tilemap's own pointer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from .formats import parse_tileset_format
from .model import DataModel, TableRun, TilemapResource, TilesetResource

log = logging.getLogger(__name__)


class TilesetResolver(Protocol):
    def resolve(
        self, hint: Optional[str], referrers: Sequence[int], table_member: Optional[str]
    ) -> Optional[int]:
        """Start address of the tileset for a tilemap, or ``None``."""


class ModelTilesetResolver:
    """Resolve tileset hints by walking anchors and tables of a data model."""

    def __init__(self, model: DataModel):
        self.model = model

    def resolve(
        self, hint: Optional[str], referrers: Sequence[int], table_member: Optional[str]
    ) -> Optional[int]:
        if hint is not None:
            address = self.model.address_of_anchor(hint)
            hint_run = self.model.run_at(address) if address is not None else None
        elif referrers:
            hint_run = self.model.run_at(referrers[0])
        else:
            hint_run = None

        if hint_run is None:
            log.debug("Tileset hint %r does not resolve", hint)
            return None

        match hint_run:
            case TilesetResource(start=start):
                return start
            case TableRun() as table:
                found = self._from_table(table, referrers, table_member)
                if found is not None:
                    return found
        return getattr(hint_run, "start", None)

    def _from_table(
        self, table: TableRun, referrers: Sequence[int], table_member: Optional[str]
    ) -> Optional[int]:
        row = self._row_of(referrers)
        if row is None:
            return None

        offset = 0
        for segment in table.segments:
            if segment.inner_format is not None and (table_member is None or segment.name == table_member):
                if parse_tileset_format(segment.inner_format) is not None:
                    source = table.start + table.element_length * row + offset
                    target = self.model.run_at(self.model.read_pointer(source))
                    if isinstance(target, TilesetResource):
                        log.debug("Tileset for row %d found through segment %r", row, segment.name)
                        return target.start
            offset += segment.length
        return None

    def _row_of(self, referrers: Sequence[int]) -> Optional[int]:
        """Row index of the first referrer that lives inside a table."""
        for pointer in referrers:
            match self.model.run_at(pointer):
                case TableRun(start=start, element_length=element_length):
                    return (pointer - start) // element_length
        return None


@dataclass
class TilesetCache:
    """Remembered tileset address for one tilemap; safe to drop at any time."""

    address: Optional[int] = None

    def get_or_resolve(self, resolve: Callable[[], Optional[int]]) -> Optional[int]:
        if self.address is None:
            self.address = resolve()
        return self.address

    def invalidate(self) -> None:
        self.address = None


def find_matching_tileset(
    resolver: TilesetResolver, tilemap: TilemapResource, cache: Optional[TilesetCache] = None
) -> Optional[int]:
    def resolve() -> Optional[int]:
        fmt = tilemap.format
        return resolver.resolve(fmt.matching_tileset, tilemap.pointer_sources, fmt.tileset_table_member)

    if cache is None:
        return resolve()
    return cache.get_or_resolve(resolve)
