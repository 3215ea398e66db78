"""
Layer tree: tile layers, object groups, image layers and groups

=============================================================================
LAYER KINDS
=============================================================================

    <layer>        TileLayer        grid of GIDs (or chunks on infinite maps)
    <objectgroup>  ObjectGroupLayer vector objects
    <imagelayer>   ImageLayer       a single image
    <group>        GroupLayer       folder containing other layers

Groups can be nested (groups within groups):

    Layers:
    ├── Background (group)
    │   ├── Sky
    │   └── Mountains
    ├── Gameplay (group)
    │   ├── Ground
    │   ├── Objects
    │   └── Collisions
    └── Foreground

Document order is drawing order: the first child is drawn first
(back-most). Every layer is parsed from its own XML subtree, so the tree is
a plain ownership tree with no back-references.

=============================================================================
INFINITE MAPS
=============================================================================

On infinite maps a tile layer's <data> holds <chunk> elements instead of
one grid. The layer then covers the bounding box of all its chunks; cells
no chunk covers are empty (GID 0):

    chunk (0,0) 16x16 + chunk (16,0) 16x16  ->  bounds x=0 y=0 w=32 h=16

=============================================================================
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, NamedTuple, Optional, Tuple

import numpy as np

from .color import Color
from .data import Chunk, decode_chunks, decode_tile_data, read_encoding
from .errors import InvalidAttributeValue, UnknownLayerKind
from .image import Image
from .markup import get_color, get_enum, get_flag, get_float, get_unsigned
from .objects import MapObject, parse_object
from .properties import EMPTY_PROPERTIES, Properties, parse_properties_of

# Children of a layer element that are not layers themselves
_NON_LAYER_CHILDREN = frozenset(('properties',))


class DrawOrder(str, Enum):
    INDEX = 'index'
    TOPDOWN = 'topdown'


def compared_fields(obj) -> tuple:
    """Values of the dataclass fields that take part in __eq__ and __hash__."""
    return tuple(getattr(obj, f.name) for f in fields(obj) if f.compare)


class TileRegion(NamedTuple):
    """Rectangle in tile coordinates."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Layer:
    """Fields shared by every layer kind."""
    id: int = 0                                      # Unique layer ID
    name: str = ""                                   # Layer name
    class_name: str = ""                             # Layer class
    visible: bool = True                             # Is layer rendered?
    locked: bool = False                             # Locked in the editor
    opacity: float = 1.0                             # 0.0 (transparent) to 1.0
    offset_x: float = 0                              # X pixel offset
    offset_y: float = 0                              # Y pixel offset
    parallax_x: float = 1.0                          # Parallax X factor
    parallax_y: float = 1.0                          # Parallax Y factor
    tint_color: Optional[Color] = None               # Color tint
    properties: Properties = EMPTY_PROPERTIES


@dataclass(frozen=True)
class TileLayer(Layer):
    """
    Grid of tile references.

    Exactly one of 'grid' (finite maps) and 'chunks' (infinite maps) is set.
    GID 0 = empty cell; other values still carry the flip bits, see gid.py.

    Two layers are equal when their attributes and cells match. Hashing
    only uses the attributes, since numpy arrays are not hashable.
    """
    width: int = 0                                   # Declared width in tiles
    height: int = 0                                  # Declared height in tiles
    encoding: str = "xml"
    compression: str = "none"
    grid: Optional[np.ndarray] = field(default=None, compare=False, repr=False)
    chunks: Optional[Mapping[Tuple[int, int], Chunk]] = field(
        default=None, compare=False, repr=False)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        if compared_fields(self) != compared_fields(other):
            return False
        if self.chunks is not None or other.chunks is not None:
            return (self.chunks is not None and other.chunks is not None and
                    dict(self.chunks) == dict(other.chunks))
        return bool(np.array_equal(self.grid, other.grid))

    @property
    def infinite(self) -> bool:
        return self.chunks is not None

    @property
    def bounds(self) -> TileRegion:
        """
        Region covered by the layer.

        Finite layers: (0, 0, width, height). Infinite layers: bounding box
        of the union of all chunks, (0, 0, 0, 0) when there are none.
        """
        if self.chunks is None:
            return TileRegion(0, 0, self.width, self.height)
        if not self.chunks:
            return TileRegion(0, 0, 0, 0)

        left = min(c.x for c in self.chunks.values())
        top = min(c.y for c in self.chunks.values())
        right = max(c.x + c.width for c in self.chunks.values())
        bottom = max(c.y + c.height for c in self.chunks.values())
        return TileRegion(left, top, right - left, bottom - top)

    def gid_at(self, x: int, y: int) -> int:
        """
        Get the GID of the tile at position (x, y).

        Returns 0 outside the layer (or outside every chunk).
        """
        if self.chunks is None:
            if 0 <= x < self.width and 0 <= y < self.height:
                return int(self.grid[y, x])
            return 0

        for chunk in self.chunks.values():
            if chunk.contains(x, y):
                return int(chunk.gids[y - chunk.y, x - chunk.x])
        return 0

    def iter_tiles(self, non_empty: bool = False) -> Iterator[Tuple[int, int, int]]:
        """
        Iterate (x, y, gid) over the layer bounds, row by row.

        Every call returns a new generator, so iteration can be restarted.
        With non_empty=True cells with GID 0 are skipped.
        """
        cells = self._iter_grid() if self.chunks is None else self._iter_chunks()
        if non_empty:
            return ((x, y, gid) for x, y, gid in cells if gid != 0)
        return cells

    def to_array(self) -> np.ndarray:
        """
        Dense (height, width) array covering bounds.

        For infinite layers the chunks are stitched into a new array;
        index it with [y - bounds.y, x - bounds.x].
        """
        if self.chunks is None:
            return self.grid

        left, top, width, height = self.bounds
        stitched = np.zeros((height, width), dtype=np.uint32)
        for chunk in self.chunks.values():
            stitched[chunk.y - top:chunk.y - top + chunk.height,
                     chunk.x - left:chunk.x - left + chunk.width] = chunk.gids
        stitched.setflags(write=False)
        return stitched

    def _iter_grid(self) -> Iterator[Tuple[int, int, int]]:
        for y in range(self.height):
            row = self.grid[y]
            for x in range(self.width):
                yield x, y, int(row[x])

    def _iter_chunks(self) -> Iterator[Tuple[int, int, int]]:
        left, top, width, height = self.bounds
        right = left + width
        by_x = sorted(self.chunks.values(), key=lambda c: c.x)

        for y in range(top, top + height):
            x = left
            for chunk in by_x:
                if not chunk.y <= y < chunk.y + chunk.height:
                    continue
                # Gap before this chunk
                while x < chunk.x:
                    yield x, y, 0
                    x += 1
                cells = chunk.gids[y - chunk.y]
                for cx in range(x, chunk.x + chunk.width):
                    yield cx, y, int(cells[cx - chunk.x])
                x = max(x, chunk.x + chunk.width)
            while x < right:
                yield x, y, 0
                x += 1


@dataclass(frozen=True)
class ObjectGroupLayer(Layer):
    """
    Object layer - contains vector objects.

    Also used for the collision shapes of a tileset tile.
    """
    draw_order: DrawOrder = DrawOrder.TOPDOWN
    color: Optional[Color] = None                    # Display color in the editor
    objects: Tuple[MapObject, ...] = ()

    def get_object_by_id(self, object_id: int) -> Optional[MapObject]:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None


@dataclass(frozen=True)
class ImageLayer(Layer):
    image: Optional[Image] = None
    repeat_x: bool = False
    repeat_y: bool = False


@dataclass(frozen=True)
class GroupLayer(Layer):
    """Group of layers - a folder containing other layers."""
    layers: Tuple[Layer, ...] = ()

    def iter_layers(self) -> Iterator[Layer]:
        """All descendant layers, depth-first in document order."""
        for layer in self.layers:
            yield layer
            if isinstance(layer, GroupLayer):
                yield from layer.iter_layers()

    def get_layer_by_name(self, name: str) -> Optional[Layer]:
        """
        Find a layer by name (searches recursively through groups).
        """
        for layer in self.iter_layers():
            if layer.name == name:
                return layer
        return None


# =============================================================================
# PARSING
# =============================================================================

def parse_layer(elem: ET.Element, infinite: bool = False) -> Layer:
    """
    Build the layer for one element, dispatching on its tag.

    Parameters:
    -----------
    elem : ET.Element
        <layer>, <objectgroup>, <imagelayer> or <group>
    infinite : bool
        Whether the owning map is infinite (tile data comes in chunks)
    """
    if elem.tag == 'layer':
        return parse_tile_layer(elem, infinite)
    if elem.tag == 'objectgroup':
        return parse_object_group(elem)
    if elem.tag == 'imagelayer':
        return parse_image_layer(elem)
    if elem.tag == 'group':
        return parse_group(elem, infinite)
    raise UnknownLayerKind(elem.tag)


def parse_layer_children(elem: ET.Element, infinite: bool,
                         skip=_NON_LAYER_CHILDREN) -> Tuple[Layer, ...]:
    """Parse every child of elem as a layer, except the tags in skip."""
    return tuple(parse_layer(child, infinite) for child in elem if child.tag not in skip)


def parse_common_fields(elem: ET.Element) -> dict:
    opacity = get_float(elem, 'opacity', 1.0)
    if not 0.0 <= opacity <= 1.0:
        raise InvalidAttributeValue(elem.tag, 'opacity', elem.get('opacity'))

    return dict(
        id=get_unsigned(elem, 'id', 0),
        name=elem.get('name', ''),
        class_name=elem.get('class', ''),
        visible=get_flag(elem, 'visible', True),
        locked=get_flag(elem, 'locked', False),
        opacity=opacity,
        offset_x=get_float(elem, 'offsetx', 0.0),
        offset_y=get_float(elem, 'offsety', 0.0),
        parallax_x=get_float(elem, 'parallaxx', 1.0),
        parallax_y=get_float(elem, 'parallaxy', 1.0),
        tint_color=get_color(elem, 'tintcolor'),
        properties=parse_properties_of(elem),
    )


def parse_tile_layer(elem: ET.Element, infinite: bool = False) -> TileLayer:
    width = get_unsigned(elem, 'width', required=True)
    height = get_unsigned(elem, 'height', required=True)
    common = parse_common_fields(elem)

    data_elem = elem.find('data')
    if data_elem is None:
        # No payload at all: an empty layer
        if infinite:
            return TileLayer(width=width, height=height,
                             chunks=MappingProxyType({}), **common)
        grid = np.zeros((height, width), dtype=np.uint32)
        grid.setflags(write=False)
        return TileLayer(width=width, height=height, grid=grid, **common)

    encoding, compression = read_encoding(data_elem)
    if infinite:
        chunks = MappingProxyType(decode_chunks(data_elem))
        return TileLayer(width=width, height=height, encoding=encoding,
                         compression=compression, chunks=chunks, **common)

    grid = decode_tile_data(data_elem, width, height)
    return TileLayer(width=width, height=height, encoding=encoding,
                     compression=compression, grid=grid, **common)


def parse_object_group(elem: ET.Element) -> ObjectGroupLayer:
    """Parse object group from XML element."""
    return ObjectGroupLayer(
        draw_order=get_enum(elem, 'draworder', DrawOrder, DrawOrder.TOPDOWN),
        color=get_color(elem, 'color'),
        objects=tuple(parse_object(obj_elem) for obj_elem in elem.findall('object')),
        **parse_common_fields(elem),
    )


def parse_image_layer(elem: ET.Element) -> ImageLayer:
    img_elem = elem.find('image')
    return ImageLayer(
        image=Image.from_xml(img_elem) if img_elem is not None else None,
        repeat_x=get_flag(elem, 'repeatx', False),
        repeat_y=get_flag(elem, 'repeaty', False),
        **parse_common_fields(elem),
    )


def parse_group(elem: ET.Element, infinite: bool = False) -> GroupLayer:
    """Parse layer group, recursing into child layers."""
    return GroupLayer(
        layers=parse_layer_children(elem, infinite),
        **parse_common_fields(elem),
    )
