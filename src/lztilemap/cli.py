"""Command line interface working on decompressed tilemap and tileset files."""

from __future__ import annotations

import argparse
import logging
import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .catalog import deduplicate, encode_tilemap, merge_tilesets
from .cells import CellWidth, decode_cells, encode_cells
from .compositor import check_grid_size, composite, tilize
from .formats import TilemapFormat, parse_tilemap_format
from .image import load_grid, save_grid
from .tiles import decode_tileset, encode_tileset


class CommandError(Exception):
    """Raised for invalid command line input."""


@dataclass
class ImportOptions:
    """Options for turning an indexed image into tilemap and tileset data."""

    format: TilemapFormat
    cell_width: CellWidth = CellWidth.TWO
    previous_tileset: Path | None = None
    keep: List[int] = field(default_factory=list)
    enforce_capacity: bool = True


def parse_format_arg(text: str) -> TilemapFormat:
    tag = text if text.startswith("`") else f"`{text}`"
    fmt = parse_tilemap_format(tag)
    if fmt is None:
        raise CommandError(
            f"Not a tilemap format: {text} "
            "(expected lzm<bits>x<width>x<height>[|hint[|member]] with 4 or 8 bits per pixel)"
        )
    return fmt


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render and rebuild LZ tilemap/tileset graphics from decompressed data files."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a tilemap and tileset to an indexed PNG")
    render.add_argument("tilemap", type=Path, help="Decompressed tilemap data")
    render.add_argument("tileset", type=Path, help="Decompressed tileset data")
    render.add_argument("--format", required=True, help="Tilemap format, e.g. lzm4x30x20")
    render.add_argument("-o", "--output", required=True, type=Path, help="PNG file to write")

    imp = sub.add_parser("import", help="Build tilemap and tileset data from an indexed PNG")
    imp.add_argument("image", type=Path, help="Indexed PNG sized 8*width x 8*height")
    imp.add_argument("--format", required=True, help="Tilemap format, e.g. lzm4x30x20")
    imp.add_argument("-o", "--output", required=True, type=Path, help="Tilemap data file to write")
    imp.add_argument("--tileset-out", required=True, type=Path, help="Tileset data file to write")
    imp.add_argument(
        "--cell-width",
        type=int,
        choices=[1, 2],
        default=2,
        help="Bytes per tilemap cell; 1-byte cells cannot flip tiles or select palettes",
    )
    imp.add_argument(
        "--previous-tileset",
        type=Path,
        help="Existing tileset data to merge into instead of starting fresh",
    )
    imp.add_argument(
        "--keep",
        type=int,
        nargs="*",
        default=[],
        help="Indices of the previous tileset that other tilemaps still use",
    )
    imp.add_argument(
        "--no-capacity-limit",
        action="store_true",
        help="Let a merged tileset grow past the addressable tile count",
    )

    info = sub.add_parser("info", help="Show the fields of a tilemap format tag")
    info.add_argument("--format", required=True, help="Tilemap format, e.g. lzm4x30x20|data.tileset")
    return parser


def run_render(args: argparse.Namespace) -> None:
    fmt = parse_format_arg(args.format)
    map_data = args.tilemap.read_bytes()
    tiles = args.tileset.read_bytes()
    cell_width = CellWidth.for_format(fmt, len(map_data))
    cells = decode_cells(map_data, fmt, cell_width)
    grid = composite(cells, tiles, fmt.bits_per_pixel)
    save_grid(args.output, grid)
    print(f"wrote {args.output}")


def import_image(grid: List[List[int]], options: ImportOptions) -> tuple[bytes, bytes]:
    """Return tilemap and tileset data for an edited pixel grid."""
    fmt = options.format
    check_grid_size(grid, fmt)

    cell_width = options.cell_width
    flip_allowed = cell_width.allows_flips
    blocks = tilize(grid, fmt.bits_per_pixel)
    catalog = deduplicate(blocks, flip_allowed)
    if options.previous_tileset is not None:
        previous = decode_tileset(options.previous_tileset.read_bytes(), fmt.bits_per_pixel)
        capacity = cell_width.capacity if options.enforce_capacity else None
        catalog = merge_tilesets(previous, set(options.keep), catalog, flip_allowed, capacity=capacity)

    cells = encode_tilemap(blocks, catalog, cell_width)
    return encode_cells(cells, cell_width), encode_tileset(catalog, fmt.bits_per_pixel)


def run_import(args: argparse.Namespace) -> None:
    options = ImportOptions(
        format=parse_format_arg(args.format),
        cell_width=CellWidth(args.cell_width),
        previous_tileset=args.previous_tileset,
        keep=list(args.keep),
        enforce_capacity=not args.no_capacity_limit,
    )
    grid = load_grid(args.image)
    map_data, tileset_data = import_image(grid, options)
    for target, data in ((args.output, map_data), (args.tileset_out, tileset_data)):
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        print(f"wrote {target}")


def run_info(args: argparse.Namespace) -> None:
    fmt = parse_format_arg(args.format)
    print(f"bits per pixel: {fmt.bits_per_pixel}")
    print(f"size in tiles: {fmt.tile_width}x{fmt.tile_height}")
    print(f"tileset hint: {fmt.matching_tileset or '-'}")
    print(f"table member: {fmt.tileset_table_member or '-'}")
    print(f"tag: {fmt.tag}")


COMMANDS = {
    "render": run_render,
    "import": run_import,
    "info": run_info,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(format="%(levelname)s: %(message)s", level=log_level)

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            COMMANDS[args.command](args)
            for warning in caught:
                print(f"Warning: {warning.message}", file=sys.stderr)
        return 0
    except (CommandError, ValueError, LookupError, OSError) as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
