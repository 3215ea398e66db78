"""
TMX Reader - immutable document model for Tiled maps and tilesets

Supports TMX/TSX version 1.0 onward:

    from tmx_reader import parse_map, parse_tileset, parse_world

No rendering and no file access: callers read the files and hand the text
over, and load externally referenced tilesets themselves.
"""

from .attributes import (FillMode, Grid, ObjectAlignment, Orientation, RenderOrder,
                         StaggerAxis, StaggerIndex, TileOffset, TileRenderSize)
from .color import Color
from .data import Chunk
from .document import Map, parse_map, parse_tileset
from .errors import (CompressionFailure, DecodingFailure, DuplicateChunk,
                     DuplicateFirstGid, GidOutOfRange, InvalidAttributeValue,
                     InvalidPropertyType, InvalidPropertyValue, MalformedMarkup,
                     MissingRequiredAttribute, TileIdOutOfRange, TmxError,
                     UnknownLayerKind, UnsupportedEncodingCombination)
from .gid import DecodedGid, decode_gid, encode_gid
from .image import Image
from .layers import (DrawOrder, GroupLayer, ImageLayer, Layer, ObjectGroupLayer,
                     TileLayer, TileRegion)
from .objects import (EllipseObject, MapObject, Point, PointObject, PolygonObject,
                      PolylineObject, RectangleObject, TextObject, TileObject)
from .properties import ClassValue, Properties, Property
from .tileset import (Animation, Frame, Tile, Tileset, TilesetEntry, TilesetRegion,
                      TilesetRegistry)
from .world import World, WorldMap, parse_world

__version__ = "1.0.0"
__all__ = [
    "parse_map",
    "parse_tileset",
    "parse_world",
    "decode_gid",
    "encode_gid",
    "DecodedGid",
    "Map",
    "Tileset",
    "TilesetEntry",
    "TilesetRegistry",
    "TilesetRegion",
    "Tile",
    "Animation",
    "Frame",
    "Image",
    "Layer",
    "TileLayer",
    "TileRegion",
    "Chunk",
    "ObjectGroupLayer",
    "ImageLayer",
    "GroupLayer",
    "DrawOrder",
    "MapObject",
    "RectangleObject",
    "EllipseObject",
    "PointObject",
    "PolygonObject",
    "PolylineObject",
    "TextObject",
    "TileObject",
    "Point",
    "Property",
    "Properties",
    "ClassValue",
    "Color",
    "Orientation",
    "RenderOrder",
    "StaggerAxis",
    "StaggerIndex",
    "ObjectAlignment",
    "TileRenderSize",
    "FillMode",
    "TileOffset",
    "Grid",
    "World",
    "WorldMap",
    "TmxError",
    "MalformedMarkup",
    "MissingRequiredAttribute",
    "InvalidAttributeValue",
    "InvalidPropertyType",
    "InvalidPropertyValue",
    "UnsupportedEncodingCombination",
    "CompressionFailure",
    "DecodingFailure",
    "DuplicateChunk",
    "GidOutOfRange",
    "DuplicateFirstGid",
    "UnknownLayerKind",
    "TileIdOutOfRange",
]
