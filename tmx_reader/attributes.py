"""Keyword attributes shared by maps and tilesets."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum

from .markup import get_enum, get_int, get_unsigned


class Orientation(str, Enum):
    ORTHOGONAL = 'orthogonal'
    ISOMETRIC = 'isometric'
    STAGGERED = 'staggered'
    HEXAGONAL = 'hexagonal'


class RenderOrder(str, Enum):
    RIGHT_DOWN = 'right-down'
    RIGHT_UP = 'right-up'
    LEFT_DOWN = 'left-down'
    LEFT_UP = 'left-up'


class StaggerAxis(str, Enum):
    X = 'x'
    Y = 'y'


class StaggerIndex(str, Enum):
    ODD = 'odd'
    EVEN = 'even'


class ObjectAlignment(str, Enum):
    UNSPECIFIED = 'unspecified'
    TOP_LEFT = 'topleft'
    TOP = 'top'
    TOP_RIGHT = 'topright'
    LEFT = 'left'
    CENTER = 'center'
    RIGHT = 'right'
    BOTTOM_LEFT = 'bottomleft'
    BOTTOM = 'bottom'
    BOTTOM_RIGHT = 'bottomright'


class TileRenderSize(str, Enum):
    TILE = 'tile'
    GRID = 'grid'


class FillMode(str, Enum):
    STRETCH = 'stretch'
    PRESERVE_ASPECT_FIT = 'preserve-aspect-fit'


@dataclass(frozen=True)
class TileOffset:
    """Pixel offset applied when drawing tiles from a tileset."""
    x: int = 0
    y: int = 0

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'TileOffset':
        return cls(x=get_int(elem, 'x', 0), y=get_int(elem, 'y', 0))


@dataclass(frozen=True)
class Grid:
    """Grid used for tile objects of isometric tilesets."""
    orientation: Orientation = Orientation.ORTHOGONAL
    width: int = 0
    height: int = 0

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'Grid':
        return cls(
            orientation=get_enum(elem, 'orientation', Orientation, Orientation.ORTHOGONAL),
            width=get_unsigned(elem, 'width', required=True),
            height=get_unsigned(elem, 'height', required=True),
        )
