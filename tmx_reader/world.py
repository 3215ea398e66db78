"""
Tiled world files (.world)

A world is a JSON document placing several maps on one large plane:

    {
        "maps": [
            {"fileName": "map_1.tmx", "x": 0,   "y": 0, "width": 544, "height": 384},
            {"fileName": "map_2.tmx", "x": 544, "y": 0, "width": 640, "height": 384}
        ],
        "onlyShowAdjacentMaps": false,
        "type": "world"
    }

Map files are only referenced, never loaded.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from .errors import InvalidAttributeValue, MalformedMarkup, MissingRequiredAttribute


@dataclass(frozen=True)
class WorldMap:
    file_name: str
    x: int
    y: int
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class World:
    maps: Tuple[WorldMap, ...] = ()
    type: str = "world"
    only_show_adjacent_maps: bool = False


def parse_world(text: Union[str, bytes]) -> World:
    """Parse the JSON content of a .world file."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedMarkup(f"invalid JSON: {e}") from e

    if not isinstance(document, dict):
        raise MalformedMarkup("world file must contain a JSON object")

    maps = document.get('maps', [])
    if not isinstance(maps, list):
        raise InvalidAttributeValue('world', 'maps', repr(maps))

    return World(
        maps=tuple(_parse_world_map(entry) for entry in maps),
        type=str(document.get('type', 'world')),
        only_show_adjacent_maps=bool(document.get('onlyShowAdjacentMaps', False)),
    )


def _parse_world_map(entry: Any) -> WorldMap:
    if not isinstance(entry, dict):
        raise InvalidAttributeValue('world', 'maps', repr(entry))

    file_name = entry.get('fileName')
    if file_name is None:
        raise MissingRequiredAttribute('map', 'fileName')

    return WorldMap(
        file_name=str(file_name),
        x=_int_field(entry, 'x', required=True),
        y=_int_field(entry, 'y', required=True),
        width=_int_field(entry, 'width'),
        height=_int_field(entry, 'height'),
    )


def _int_field(entry: Dict[str, Any], name: str, required: bool = False) -> int:
    value = entry.get(name)
    if value is None:
        if required:
            raise MissingRequiredAttribute('map', name)
        return 0
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAttributeValue('map', name, repr(value))
    return value
