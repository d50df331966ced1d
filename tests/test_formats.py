import pytest

from lztilemap.formats import (
    SpriteFormat,
    TilemapFormat,
    TilesetFormat,
    parse_sprite_format,
    parse_tilemap_format,
    parse_tileset_format,
)


def test_parse_tilemap_with_hint() -> None:
    fmt = parse_tilemap_format("`lzm8x4x4|data.tileset`")
    assert fmt == TilemapFormat(
        bits_per_pixel=8,
        tile_width=4,
        tile_height=4,
        matching_tileset="data.tileset",
        tileset_table_member=None,
    )
    assert fmt.tag == "`lzm8x4x4|data.tileset`"


def test_parse_tilemap_with_table_member() -> None:
    fmt = parse_tilemap_format("`lzm4x8x8|data.tileset|gfx`")
    assert fmt.matching_tileset == "data.tileset"
    assert fmt.tileset_table_member == "gfx"
    assert fmt.tag == "`lzm4x8x8|data.tileset|gfx`"


def test_parse_tilemap_without_hint() -> None:
    fmt = parse_tilemap_format("`lzm4x30x20`")
    assert fmt == TilemapFormat(4, 30, 20)
    assert fmt.tag == "`lzm4x30x20`"


def test_member_without_hint_round_trips() -> None:
    fmt = parse_tilemap_format("`lzm4x2x2||gfx`")
    assert fmt.matching_tileset is None
    assert fmt.tileset_table_member == "gfx"
    assert fmt.tag == "`lzm4x2x2||gfx`"


@pytest.mark.parametrize(
    "tag",
    [
        "lzm4x8x8",
        "`lzm4x8x8",
        "`lzt4`",
        "`lzm4x8`",
        "`lzm4x8x8x1`",
        "`lzmAx8x8`",
        "`lzm4x8xB|hint`",
        "`lzm4x0x8`",
        "`",
    ],
)
def test_parse_tilemap_rejects_other_tags(tag: str) -> None:
    assert parse_tilemap_format(tag) is None


def test_tilemap_format_requires_positive_size() -> None:
    with pytest.raises(ValueError):
        TilemapFormat(4, 0, 3)


def test_tileset_format() -> None:
    assert parse_tileset_format("`lzt4`") == TilesetFormat(4)
    fmt = parse_tileset_format("`lzt8|data.pal`")
    assert fmt == TilesetFormat(8, "data.pal")
    assert fmt.tag == "`lzt8|data.pal`"
    assert parse_tileset_format("`lzm4x1x1`") is None
    assert parse_tileset_format("`lztX`") is None


def test_sprite_format() -> None:
    fmt = parse_sprite_format("`lzs4x2x3|data.pal`")
    assert fmt == SpriteFormat(4, 2, 3, "data.pal")
    assert fmt.tag == "`lzs4x2x3|data.pal`"
    assert parse_sprite_format("`lzs4x2`") is None


@pytest.mark.parametrize("tag", ["`lzm5x2x2`", "`lzm2x2x2|data.tileset`", "`lzm16x1x1`"])
def test_tilemap_bit_depth_must_be_4_or_8(tag: str) -> None:
    assert parse_tilemap_format(tag) is None


def test_tileset_and_sprite_bit_depth_must_be_4_or_8() -> None:
    assert parse_tileset_format("`lzt2`") is None
    assert parse_sprite_format("`lzs5x2x2`") is None
    assert parse_sprite_format("`lzs4x0x2`") is None
