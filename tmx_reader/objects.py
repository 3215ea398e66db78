"""
Objects placed on object layers (and in tile collision groups)

=============================================================================
OBJECT KINDS
=============================================================================

The shape of an object is given by its (optional) child element:

    <object id="1" x="10" y="20" width="32" height="16"/>      rectangle
    <object id="2" x="10" y="20" width="32" height="16">
        <ellipse/>                                               ellipse
    </object>
    <object id="3" x="10" y="20"><point/></object>               point
    <object id="4" x="10" y="20">
        <polygon points="0,0 32,0 32,16"/>                       polygon
    </object>
    <object id="5" x="10" y="20">
        <polyline points="0,0 32,0 32,16"/>                      polyline
    </object>
    <object id="6" x="10" y="20" width="96" height="16">
        <text wrap="1">Hello</text>                              text
    </object>
    <object id="7" gid="42" x="10" y="20" width="16" height="16"/>  tile

Polygon/polyline points are offsets from the object's (x, y) position.
Tile objects carry a GID with the same flip bits as tile layer cells.

=============================================================================
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .color import Color
from .errors import InvalidAttributeValue
from .gid import GID_MAX, decode_gid
from .markup import get_color, get_enum, get_flag, get_float, get_unsigned, require
from .properties import EMPTY_PROPERTIES, Properties, parse_properties_of


class HorizontalAlignment(str, Enum):
    LEFT = 'left'
    CENTER = 'center'
    RIGHT = 'right'
    JUSTIFY = 'justify'


class VerticalAlignment(str, Enum):
    TOP = 'top'
    CENTER = 'center'
    BOTTOM = 'bottom'


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class MapObject:
    """
    Fields shared by every object kind.

    'class_name' is the object's class (written as 'type' before Tiled 1.9).
    'template' is the unresolved path of an object template, if any.
    """
    id: int = 0                                      # Unique object ID
    name: str = ""                                   # Object name
    class_name: str = ""                             # Object type/class
    x: float = 0                                     # X position
    y: float = 0                                     # Y position
    width: float = 0                                 # Width
    height: float = 0                                # Height
    rotation: float = 0                              # Rotation in degrees (clockwise)
    visible: bool = True                             # Is object visible?
    template: Optional[str] = None                   # Template file (unresolved)
    properties: Properties = EMPTY_PROPERTIES


@dataclass(frozen=True)
class RectangleObject(MapObject):
    pass


@dataclass(frozen=True)
class EllipseObject(MapObject):
    pass


@dataclass(frozen=True)
class PointObject(MapObject):
    pass


@dataclass(frozen=True)
class PolygonObject(MapObject):
    """Closed shape; points are relative to (x, y)."""
    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class PolylineObject(MapObject):
    """Open path; points are relative to (x, y)."""
    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class TextObject(MapObject):
    text: str = ""
    font_family: str = "sans-serif"
    pixel_size: int = 16
    wrap: bool = False
    color: Color = Color(0xFF, 0, 0, 0)
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikeout: bool = False
    kerning: bool = True
    halign: HorizontalAlignment = HorizontalAlignment.LEFT
    valign: VerticalAlignment = VerticalAlignment.TOP


@dataclass(frozen=True)
class TileObject(MapObject):
    """
    An object displaying a tile.

    'gid' is the full 32-bit value from the document; 'tile_gid' is the raw
    id with the flip bits stripped.
    """
    gid: int = 0
    tile_gid: int = 0
    flipped_horizontally: bool = False
    flipped_vertically: bool = False
    flipped_diagonally: bool = False


# =============================================================================
# PARSING
# =============================================================================

def parse_object(elem: ET.Element) -> MapObject:
    """
    Parse an <object> element into the matching MapObject subclass.
    """
    common = dict(
        id=get_unsigned(elem, 'id', 0),
        name=elem.get('name', ''),
        # 'class' since Tiled 1.9, 'type' before
        class_name=elem.get('class', elem.get('type', '')),
        x=get_float(elem, 'x', 0.0),
        y=get_float(elem, 'y', 0.0),
        width=get_float(elem, 'width', 0.0),
        height=get_float(elem, 'height', 0.0),
        rotation=get_float(elem, 'rotation', 0.0),
        visible=get_flag(elem, 'visible', True),
        template=elem.get('template'),
        properties=parse_properties_of(elem),
    )

    if elem.get('gid') is not None:
        gid = get_unsigned(elem, 'gid')
        if gid > GID_MAX:
            raise InvalidAttributeValue('object', 'gid', elem.get('gid'))
        decoded = decode_gid(gid)
        return TileObject(
            gid=gid,
            tile_gid=decoded.raw_id,
            flipped_horizontally=decoded.flipped_horizontally,
            flipped_vertically=decoded.flipped_vertically,
            flipped_diagonally=decoded.flipped_diagonally,
            **common,
        )

    # Dispatch on the shape child; no shape child means a rectangle
    for child in elem:
        if child.tag == 'point':
            return PointObject(**common)
        if child.tag == 'ellipse':
            return EllipseObject(**common)
        if child.tag == 'polygon':
            return PolygonObject(points=parse_points(child), **common)
        if child.tag == 'polyline':
            return PolylineObject(points=parse_points(child), **common)
        if child.tag == 'text':
            return _parse_text(child, common)

    return RectangleObject(**common)


def parse_points(elem: ET.Element) -> Tuple[Point, ...]:
    """
    Parse a points attribute: "x1,y1 x2,y2 ...".
    """
    raw = require(elem, 'points')
    points = []
    for pair in raw.split():
        try:
            x, y = pair.split(',')
            points.append(Point(float(x), float(y)))
        except ValueError as e:
            raise InvalidAttributeValue(elem.tag, 'points', raw) from e
    return tuple(points)


def _parse_text(elem: ET.Element, common: dict) -> TextObject:
    return TextObject(
        text=elem.text or '',
        font_family=elem.get('fontfamily', 'sans-serif'),
        pixel_size=get_unsigned(elem, 'pixelsize', 16),
        wrap=get_flag(elem, 'wrap', False),
        color=get_color(elem, 'color') or Color(0xFF, 0, 0, 0),
        bold=get_flag(elem, 'bold', False),
        italic=get_flag(elem, 'italic', False),
        underline=get_flag(elem, 'underline', False),
        strikeout=get_flag(elem, 'strikeout', False),
        kerning=get_flag(elem, 'kerning', True),
        halign=get_enum(elem, 'halign', HorizontalAlignment, HorizontalAlignment.LEFT),
        valign=get_enum(elem, 'valign', VerticalAlignment, VerticalAlignment.TOP),
        **common,
    )
