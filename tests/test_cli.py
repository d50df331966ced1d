from conftest import make_tile

from lztilemap.cli import main
from lztilemap.image import load_grid, save_grid
from lztilemap.tiles import EMPTY_TILE, decode_tileset, encode_tileset, hflip

A, B, C = (make_tile(seed) for seed in (11, 12, 13))


def _grid_of(*tiles):
    return [[p for tile in tiles for p in tile[y]] for y in range(8)]


def test_info(capsys) -> None:
    assert main(["info", "--format", "lzm4x30x20|data.tileset|gfx"]) == 0
    out = capsys.readouterr().out
    assert "bits per pixel: 4" in out
    assert "size in tiles: 30x20" in out
    assert "tileset hint: data.tileset" in out
    assert "table member: gfx" in out
    assert "tag: `lzm4x30x20|data.tileset|gfx`" in out


def test_info_rejects_bad_format(capsys) -> None:
    assert main(["info", "--format", "lzt4"]) == 1
    assert "Not a tilemap format" in capsys.readouterr().err


def test_info_rejects_bit_depth(capsys) -> None:
    assert main(["info", "--format", "lzm2x1x1"]) == 1
    assert "4 or 8" in capsys.readouterr().err


def test_import_then_render(tmp_path) -> None:
    image = save_grid(tmp_path / "in.png", _grid_of(A, hflip(A)))
    map_path = tmp_path / "data" / "map.bin"
    tiles_path = tmp_path / "data" / "tiles.bin"

    code = main(
        ["import", str(image), "--format", "lzm4x2x1", "-o", str(map_path), "--tileset-out", str(tiles_path)]
    )

    assert code == 0
    assert map_path.read_bytes() == b"\x01\x00\x01\x04"
    assert decode_tileset(tiles_path.read_bytes(), 4) == [EMPTY_TILE, A]

    out_png = tmp_path / "out.png"
    code = main(["render", str(map_path), str(tiles_path), "--format", "lzm4x2x1", "-o", str(out_png)])
    assert code == 0
    assert load_grid(out_png) == _grid_of(A, hflip(A))


def test_import_one_byte_cells(tmp_path) -> None:
    image = save_grid(tmp_path / "in.png", _grid_of(A, hflip(A)))
    map_path = tmp_path / "map.bin"
    tiles_path = tmp_path / "tiles.bin"

    code = main(
        [
            "import", str(image), "--format", "lzm4x2x1", "-o", str(map_path),
            "--tileset-out", str(tiles_path), "--cell-width", "1",
        ]
    )

    assert code == 0
    assert map_path.read_bytes() == b"\x01\x02"
    assert decode_tileset(tiles_path.read_bytes(), 4) == [EMPTY_TILE, A, hflip(A)]


def test_import_merges_previous_tileset(tmp_path) -> None:
    image = save_grid(tmp_path / "in.png", _grid_of(C, C))
    previous = tmp_path / "previous.bin"
    previous.write_bytes(encode_tileset([EMPTY_TILE, A, B], 4))
    map_path = tmp_path / "map.bin"
    tiles_path = tmp_path / "tiles.bin"

    code = main(
        [
            "import", str(image), "--format", "lzm4x2x1", "-o", str(map_path),
            "--tileset-out", str(tiles_path), "--previous-tileset", str(previous), "--keep", "2",
        ]
    )

    assert code == 0
    assert decode_tileset(tiles_path.read_bytes(), 4) == [EMPTY_TILE, C, B]
    assert map_path.read_bytes() == b"\x01\x00\x01\x00"


def test_import_reports_dropped_tiles(tmp_path, capsys) -> None:
    tiles = [make_tile(100 + i) for i in range(260)]
    image = save_grid(tmp_path / "in.png", _grid_of(*tiles))

    code = main(
        [
            "import", str(image), "--format", "lzm4x260x1", "-o", str(tmp_path / "map.bin"),
            "--tileset-out", str(tmp_path / "tiles.bin"), "--cell-width", "1",
        ]
    )

    assert code == 0
    assert "Warning: 5 distinct tiles dropped" in capsys.readouterr().err


def test_import_rejects_wrong_image_size(tmp_path, capsys) -> None:
    image = save_grid(tmp_path / "in.png", _grid_of(A))
    code = main(
        [
            "import", str(image), "--format", "lzm4x2x1", "-o", str(tmp_path / "map.bin"),
            "--tileset-out", str(tmp_path / "tiles.bin"),
        ]
    )
    assert code == 1
    assert "needs 16x8" in capsys.readouterr().err


def test_render_missing_input(tmp_path, capsys) -> None:
    code = main(
        ["render", str(tmp_path / "map.bin"), str(tmp_path / "tiles.bin"), "--format", "lzm4x2x1", "-o", "x.png"]
    )
    assert code == 1
    assert capsys.readouterr().err
