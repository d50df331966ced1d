from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pytest

from lztilemap.tiles import TILE_SIZE, Tile

ROM_BASE = 0x08000000


def make_tile(seed: int, colors: int = 16) -> Tile:
    rng = random.Random(seed)
    return tuple(tuple(rng.randrange(colors) for _ in range(TILE_SIZE)) for _ in range(TILE_SIZE))


def solid_tile(value: int) -> Tile:
    return tuple((value,) * TILE_SIZE for _ in range(TILE_SIZE))


class IdentityCodec:
    """Stands in for the LZ compressor; the engine only needs a lossless round trip."""

    def compress(self, data: bytes) -> bytes:
        return bytes(data)

    def decompress(self, data: bytes) -> bytes:
        return bytes(data)


@dataclass
class FakeSegment:
    name: str
    length: int
    inner_format: Optional[str] = None


@dataclass
class FakeTable:
    start: int
    element_length: int
    element_count: int
    segments: Sequence[FakeSegment]

    @property
    def length(self) -> int:
        return self.element_length * self.element_count


@dataclass
class FakeModel:
    """In-memory data model with anchors, runs and a flat byte buffer."""

    size: int = 0x1000
    anchors: Dict[str, int] = field(default_factory=dict)
    run_list: List[object] = field(default_factory=list)
    observed: List[object] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.memory = bytearray(b"\xFF" * self.size)

    # DataModel -----------------------------------------------------------

    def address_of_anchor(self, name: str) -> Optional[int]:
        return self.anchors.get(name)

    def run_at(self, address: int):
        for run in self.run_list:
            if run.start <= address < run.start + max(1, run.length):
                return run
        return None

    def runs(self):
        return list(self.run_list)

    def read_bytes(self, start: int, length: int) -> bytes:
        return bytes(self.memory[start : start + length])

    def read_pointer(self, address: int) -> int:
        return int.from_bytes(self.memory[address : address + 4], "little") - ROM_BASE

    def write_bytes(self, token, address: int, data: bytes) -> None:
        if address + len(data) > len(self.memory):
            self.memory.extend(b"\xFF" * (address + len(data) - len(self.memory)))
        self.memory[address : address + len(data)] = data
        token.append((address, len(data)))

    def relocate_for_expansion(self, token, run, new_length: int) -> int:
        if new_length <= run.length:
            return run.start
        self.run_list.remove(run)
        start = (len(self.memory) + 3) & ~3
        self.memory.extend(b"\xFF" * (start - len(self.memory)))
        for name, address in self.anchors.items():
            if address == run.start:
                self.anchors[name] = start
        return start

    def observe_run_written(self, token, run) -> None:
        self.run_list = [r for r in self.run_list if r.start != run.start]
        self.run_list.append(run)
        self.observed.append(run)

    # helpers -------------------------------------------------------------

    def add(self, run, data: bytes = b"", anchor: Optional[str] = None):
        self.memory[run.start : run.start + len(data)] = data
        self.run_list.append(run)
        if anchor is not None:
            self.anchors[anchor] = run.start
        return run

    def write_pointer(self, address: int, target: int) -> None:
        self.memory[address : address + 4] = (target + ROM_BASE).to_bytes(4, "little")


@pytest.fixture
def codec() -> IdentityCodec:
    return IdentityCodec()


@pytest.fixture
def model() -> FakeModel:
    return FakeModel()
