#!/usr/bin/env python3

"""
TMX Reader - print a summary of a Tiled map, tileset or world file

Usage:
    python -m tmx_reader level1.tmx
    python -m tmx_reader terrain.tsx
    python -m tmx_reader overworld.world -v

The file type is taken from the extension (.tmx, .tsx, .world) unless
--tileset or --world is given.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .document import Map, parse_map, parse_tileset
from .errors import TmxError
from .layers import GroupLayer, ImageLayer, Layer, ObjectGroupLayer, TileLayer
from .logging_config import get_logger, setup_logging
from .tileset import Tileset
from .world import World, parse_world


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tmx_reader",
        description="Print a summary of a Tiled map (.tmx), tileset (.tsx) or world (.world)"
    )
    parser.add_argument("path", help="File to read")
    kind = parser.add_mutually_exclusive_group()
    kind.add_argument("--tileset", action="store_true",
                      help="Treat the file as a tileset regardless of extension")
    kind.add_argument("--world", action="store_true",
                      help="Treat the file as a world regardless of extension")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show detailed progress information")
    parser.add_argument("--debug", "-d", action="store_true",
                        help="Show debug information (implies verbose)")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, debug=args.debug)
    logger = get_logger('cli')

    path = Path(args.path)
    if not path.exists():
        logger.error("File '%s' not found", path)
        return 1

    suffix = path.suffix.lower()
    try:
        if args.world or suffix == '.world':
            logger.info("Reading world file %s", path)
            print_world(parse_world(path.read_text(encoding='utf-8')))
        elif args.tileset or suffix == '.tsx':
            logger.info("Reading tileset %s", path)
            print_tileset(parse_tileset(path.read_bytes()))
        else:
            logger.info("Reading map %s", path)
            print_map(parse_map(path.read_bytes()))
    except TmxError as e:
        logger.error("Could not read %s: %s", path, e)
        logger.debug("Parse failure details", exc_info=True)
        return 1
    return 0


def print_map(tmx_map: Map):
    print(f"Map: {tmx_map.width}x{tmx_map.height} tiles of "
          f"{tmx_map.tile_width}x{tmx_map.tile_height} px "
          f"({tmx_map.orientation.value}, {tmx_map.render_order.value}"
          f"{', infinite' if tmx_map.infinite else ''})")

    print(f"Tilesets: {len(tmx_map.tilesets)}")
    for entry in tmx_map.tilesets:
        if entry.is_external:
            print(f"  - firstgid={entry.first_gid} external: {entry.source}")
        else:
            print(f"  - firstgid={entry.first_gid} {entry.tileset.name} "
                  f"({entry.tileset.tile_count} tiles)")

    print("Layers:")
    for layer in tmx_map.layers:
        _print_layer(layer, depth=1)


def _print_layer(layer: Layer, depth: int):
    indent = "  " * depth
    if isinstance(layer, TileLayer):
        bounds = layer.bounds
        used = sum(1 for _ in layer.iter_tiles(non_empty=True))
        print(f"{indent}- [tiles] {layer.name} {bounds.width}x{bounds.height}, "
              f"{used} non-empty")
    elif isinstance(layer, ObjectGroupLayer):
        print(f"{indent}- [objects] {layer.name} ({len(layer.objects)} objects)")
    elif isinstance(layer, ImageLayer):
        if layer.image is None:
            source = "no image"
        else:
            source = layer.image.source or "embedded"
        print(f"{indent}- [image] {layer.name} ({source})")
    elif isinstance(layer, GroupLayer):
        print(f"{indent}- [group] {layer.name}")
        for child in layer.layers:
            _print_layer(child, depth + 1)


def print_tileset(tileset: Tileset):
    if tileset.is_collection:
        kind = "image collection"
    elif tileset.image.is_embedded:
        kind = f"embedded {tileset.image.format or 'image'} atlas"
    else:
        kind = f"atlas {tileset.image.source}"
    print(f"Tileset: {tileset.name} ({kind})")
    print(f"  Tiles: {tileset.tile_count}, {tileset.tile_width}x{tileset.tile_height} px, "
          f"{tileset.columns} columns")
    print(f"  Declared tiles: {len(tileset.tiles)}")
    animated = sum(1 for tile in tileset.tiles.values() if tile.animation)
    if animated:
        print(f"  Animated tiles: {animated}")


def print_world(world: World):
    print(f"World: {len(world.maps)} maps")
    for world_map in world.maps:
        print(f"  - {world_map.file_name} at ({world_map.x}, {world_map.y})")


if __name__ == "__main__":
    sys.exit(main())
