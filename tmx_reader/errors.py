"""
Exceptions raised while reading TMX/TSX documents

Every failure aborts the whole parse: callers either get a complete,
immutable document or one of the exceptions below. All of them derive from
TmxError so a caller can catch the whole family at once:

    try:
        tmx_map = parse_map(text)
    except TmxError as e:
        print(f"Could not read map: {e}")
"""

from typing import Optional


class TmxError(Exception):
    """Base class for all errors raised by tmx_reader."""


class MalformedMarkup(TmxError):
    """The input is not well-formed XML/JSON, or has the wrong root element."""


class MissingRequiredAttribute(TmxError):
    """An element lacks an attribute the format requires."""

    def __init__(self, element: str, attribute: str):
        self.element = element
        self.attribute = attribute
        super().__init__(f"<{element}> is missing required attribute '{attribute}'")


class InvalidAttributeValue(TmxError):
    """An attribute is present but its value cannot be interpreted."""

    def __init__(self, element: str, attribute: str, value: Optional[str]):
        self.element = element
        self.attribute = attribute
        self.value = value
        super().__init__(f"<{element}> has invalid {attribute}={value!r}")


class InvalidPropertyType(TmxError):
    """A custom property declares a type tag we do not know."""

    def __init__(self, name: str, type_name: str):
        self.name = name
        self.type_name = type_name
        super().__init__(f"property '{name}' has unknown type '{type_name}'")


class InvalidPropertyValue(TmxError):
    """A custom property value does not match its declared type."""

    def __init__(self, name: str, expected: str, value: Optional[str] = None):
        self.name = name
        self.expected = expected
        self.value = value
        super().__init__(f"property '{name}' expected {expected}, got {value!r}")


class UnsupportedEncodingCombination(TmxError):
    """Compression was declared for an encoding that cannot carry it."""

    def __init__(self, encoding: str, compression: str):
        self.encoding = encoding
        self.compression = compression
        super().__init__(f"encoding '{encoding}' cannot be combined with "
                         f"compression '{compression}'")


class CompressionFailure(TmxError):
    """Decompression failed or would exceed the expected payload size."""


class DecodingFailure(TmxError):
    """Layer payload could not be turned into the expected number of GIDs."""


class DuplicateChunk(TmxError):
    """Two chunks of the same infinite layer share an origin."""

    def __init__(self, x: int, y: int):
        self.x = x
        self.y = y
        super().__init__(f"duplicate chunk at origin ({x}, {y})")


class GidOutOfRange(TmxError):
    """A GID does not fall into the range of any tileset entry."""

    def __init__(self, gid: int):
        self.gid = gid
        super().__init__(f"GID {gid} does not belong to any tileset")


class DuplicateFirstGid(TmxError):
    """Two tileset entries declare the same firstgid."""

    def __init__(self, first_gid: int):
        self.first_gid = first_gid
        super().__init__(f"more than one tileset uses firstgid={first_gid}")


class UnknownLayerKind(TmxError):
    """An element where a layer was expected has an unrecognized tag."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"unknown layer element <{tag}>")


class TileIdOutOfRange(TmxError):
    """A local tile id is outside [0, tile_count) of its tileset."""

    def __init__(self, tile_id: int, tile_count: int):
        self.tile_id = tile_id
        self.tile_count = tile_count
        super().__init__(f"tile id {tile_id} outside tileset range [0, {tile_count})")
