"""Interfaces of the collaborators the engine runs against, and the graphics resources it reads.

The addressable data model, its change journal and the byte-stream
compressor live outside this package. Anything that provides the methods
below can be plugged in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from .cells import CellWidth
from .formats import SpriteFormat, TilemapFormat, TilesetFormat


class ByteStreamCodec(Protocol):
    def compress(self, data: bytes) -> bytes:
        ...

    def decompress(self, data: bytes) -> bytes:
        ...


class TableSegment(Protocol):
    name: str
    length: int
    # format tag of the pointed-to data, or None for non-pointer fields
    inner_format: Optional[str]


@runtime_checkable
class TableRun(Protocol):
    start: int
    element_length: int
    element_count: int
    segments: Sequence[TableSegment]


class DataModel(Protocol):
    def address_of_anchor(self, name: str) -> Optional[int]:
        """Start address of a named anchor, or ``None``."""

    def run_at(self, address: int) -> object:
        """The run containing ``address`` (or the next one after it), or ``None``."""

    def runs(self) -> Iterable[object]:
        ...

    def read_bytes(self, start: int, length: int) -> bytes:
        ...

    def read_pointer(self, address: int) -> int:
        ...

    def write_bytes(self, token: object, address: int, data: bytes) -> None:
        ...

    def relocate_for_expansion(self, token: object, run: "GraphicsResource", new_length: int) -> int:
        """Return a start address with room for ``new_length`` bytes (moving the run if needed)."""

    def observe_run_written(self, token: object, run: "GraphicsResource") -> None:
        ...


@dataclass(frozen=True)
class TilesetResource:
    start: int
    length: int
    format: TilesetFormat
    pointer_sources: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SpriteResource:
    start: int
    length: int
    format: SpriteFormat
    pointer_sources: Tuple[int, ...] = ()


@dataclass(frozen=True)
class TilemapResource:
    start: int
    length: int
    format: TilemapFormat
    decompressed_length: int
    pointer_sources: Tuple[int, ...] = ()
    cell_width: CellWidth = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cell_width", CellWidth.for_format(self.format, self.decompressed_length))


GraphicsResource = Union[TilesetResource, TilemapResource, SpriteResource]


def read_decompressed(model: DataModel, codec: ByteStreamCodec, run: GraphicsResource) -> bytes:
    return codec.decompress(model.read_bytes(run.start, run.length))


def write_compressed(
    model: DataModel, codec: ByteStreamCodec, token: object, run: GraphicsResource, raw: bytes
) -> Tuple[int, int]:
    """
    Compress ``raw`` and store it over ``run``, relocating when it grows.

    Bytes of the old footprint past the new data are filled with 0xFF.
    Returns the new start address and compressed length.
    """
    compressed = codec.compress(raw)
    start = model.relocate_for_expansion(token, run, len(compressed))
    padding = b""
    if start == run.start and run.length > len(compressed):
        padding = b"\xFF" * (run.length - len(compressed))
    model.write_bytes(token, start, compressed + padding)
    return start, len(compressed)
