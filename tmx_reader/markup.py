"""
Markup ingestion and typed attribute access

The TMX and TSX formats are plain XML. We read them with the standard
library's ElementTree and never keep the tree around: every other module
receives an ET.Element and pulls typed values out of it with the helpers
below, which turn Python's ValueError into the document-level errors
callers expect.

=============================================================================
ATTRIBUTE CONVENTIONS IN TMX
=============================================================================

    <layer id="3" name="Ground" width="40" height="30" visible="0" opacity="0.5">

- Numbers are decimal text ("40", "0.5")
- Booleans are "0" / "1" (absent usually means the default)
- Colors are "#AARRGGBB" or "#RRGGBB"
- Enumerations are lowercase keywords ("orthogonal", "right-down")

=============================================================================
"""

import xml.etree.ElementTree as ET
from enum import Enum
from typing import Optional, Type, TypeVar, Union

from .color import Color
from .errors import InvalidAttributeValue, MalformedMarkup, MissingRequiredAttribute

E = TypeVar('E', bound=Enum)


def parse_document(text: Union[str, bytes], root_tag: str) -> ET.Element:
    """
    Parse XML text and check the root element.

    Parameters:
    -----------
    text : str or bytes
        Whole document. Bytes are passed through so the XML declaration's
        encoding is honoured.
    root_tag : str
        Expected tag of the root element ('map' or 'tileset')
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedMarkup(f"invalid XML: {e}") from e

    if root.tag != root_tag:
        raise MalformedMarkup(f"expected <{root_tag}> root element, found <{root.tag}>")
    return root


def require(elem: ET.Element, name: str) -> str:
    value = elem.get(name)
    if value is None:
        raise MissingRequiredAttribute(elem.tag, name)
    return value


def get_int(elem: ET.Element, name: str, default: Optional[int] = None,
            required: bool = False) -> Optional[int]:
    """Read an integer attribute, returning default when absent."""
    raw = require(elem, name) if required else elem.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidAttributeValue(elem.tag, name, raw) from e


def get_unsigned(elem: ET.Element, name: str, default: Optional[int] = None,
                 required: bool = False) -> Optional[int]:
    """Like get_int, but rejects negative values (sizes, counts, ids)."""
    value = get_int(elem, name, default, required)
    if value is not None and value < 0:
        raise InvalidAttributeValue(elem.tag, name, elem.get(name))
    return value


def get_float(elem: ET.Element, name: str, default: Optional[float] = None,
              required: bool = False) -> Optional[float]:
    raw = require(elem, name) if required else elem.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidAttributeValue(elem.tag, name, raw) from e


def get_flag(elem: ET.Element, name: str, default: bool) -> bool:
    """
    Read a "0"/"1" boolean attribute.

    Tiled only writes these two spellings; anything else is rejected
    instead of guessed.
    """
    raw = elem.get(name)
    if raw is None:
        return default
    if raw == '1':
        return True
    if raw == '0':
        return False
    raise InvalidAttributeValue(elem.tag, name, raw)


def get_color(elem: ET.Element, name: str) -> Optional[Color]:
    raw = elem.get(name)
    if raw is None or raw == '':
        return None
    try:
        return Color.from_hex(raw)
    except ValueError as e:
        raise InvalidAttributeValue(elem.tag, name, raw) from e


def get_enum(elem: ET.Element, name: str, enum_type: Type[E], default: E) -> E:
    """Read a keyword attribute into a str-valued Enum."""
    raw = elem.get(name)
    if raw is None:
        return default
    try:
        return enum_type(raw)
    except ValueError as e:
        raise InvalidAttributeValue(elem.tag, name, raw) from e
