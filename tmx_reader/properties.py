"""
Custom properties attached to maps, tilesets, tiles, layers and objects

=============================================================================
XML FORMAT
=============================================================================

    <properties>
        <property name="solid" type="bool" value="true"/>
        <property name="health" type="int" value="100"/>
        <property name="description" value="A wooden door"/>
        <property name="dialogue">First line
    Second line</property>
        <property name="stats" type="class" propertytype="Stats">
            <properties>
                <property name="speed" type="float" value="1.5"/>
            </properties>
        </property>
    </properties>

=============================================================================
SUPPORTED TYPES
=============================================================================

    type       Python value
    ---------  ------------------------------------------
    string     str (default when 'type' is absent)
    int        int
    float      float
    bool       bool ("true" / "false" only)
    color      Color (#AARRGGBB or #RRGGBB)
    file       str, path relative to the document, unresolved
    object     int, id of another object (0 = none)
    class      ClassValue(type_name, nested Properties)

Class properties only carry the members written in the document; defaults
from the project's custom type definitions are not merged in.

=============================================================================
"""

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from .color import Color
from .errors import InvalidAttributeValue, InvalidPropertyType, InvalidPropertyValue
from .markup import require

PROPERTY_TYPES = frozenset(
    ('string', 'int', 'float', 'bool', 'color', 'file', 'object', 'class'))


class Properties(Mapping):
    """
    Read-only mapping of property name -> Property.

    Indexing returns the Property (with its declared type); value() is the
    shortcut game code usually wants:

        if tile.properties.value('solid', False):
            ...
    """

    __slots__ = ('_items',)

    def __init__(self, items: Optional[Dict[str, 'Property']] = None):
        self._items = dict(items) if items else {}

    def __getitem__(self, name: str) -> 'Property':
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Properties({self._items!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Properties):
            return self._items == other._items
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._items.items()))

    def value(self, name: str, default: Any = None) -> Any:
        prop = self._items.get(name)
        return default if prop is None else prop.value


EMPTY_PROPERTIES = Properties()


@dataclass(frozen=True)
class ClassValue:
    """Value of a 'class' property: the custom type name plus its members."""
    type_name: str
    properties: Properties = field(default_factory=Properties)


@dataclass(frozen=True)
class Property:
    """
    A single typed property.

    'type' is the TMX type tag; 'property_type' is the custom type name Tiled
    writes for class and enum properties ('' otherwise).
    """
    name: str                    # Property name (key)
    type: str = "string"         # Value type
    value: Any = ""              # The converted value
    property_type: str = ""      # Custom type name (class/enum)


def parse_properties(props_elem: Optional[ET.Element]) -> Properties:
    """
    Parse a <properties> element into a Properties mapping.

    Accepts None so callers can pass elem.find('properties') directly.
    """
    if props_elem is None:
        return EMPTY_PROPERTIES

    items: Dict[str, Property] = {}
    for prop_elem in props_elem.findall('property'):
        prop = parse_property(prop_elem)
        if prop.name in items:
            raise InvalidAttributeValue('property', 'name', prop.name)
        items[prop.name] = prop
    return Properties(items)


def parse_properties_of(elem: ET.Element) -> Properties:
    """Properties of an element that may own a <properties> child."""
    return parse_properties(elem.find('properties'))


def parse_property(elem: ET.Element) -> Property:
    name = require(elem, 'name')
    prop_type = elem.get('type', 'string')
    property_type = elem.get('propertytype', '')

    if prop_type not in PROPERTY_TYPES:
        raise InvalidPropertyType(name, prop_type)

    if prop_type == 'class':
        value = ClassValue(property_type, parse_properties_of(elem))
        return Property(name=name, type=prop_type, value=value,
                        property_type=property_type)

    # Multi-line strings are written as element text instead of 'value'
    raw = elem.get('value')
    if raw is None:
        raw = elem.text

    return Property(name=name, type=prop_type,
                    value=convert_value(name, prop_type, raw),
                    property_type=property_type)


def convert_value(name: str, prop_type: str, raw: Optional[str]) -> Any:
    """Convert the raw attribute text according to the property type."""
    if prop_type in ('string', 'file'):
        return raw if raw is not None else ''

    if raw is None:
        raise InvalidPropertyValue(name, prop_type, raw)

    if prop_type == 'int':
        try:
            return int(raw)
        except ValueError as e:
            raise InvalidPropertyValue(name, 'int', raw) from e

    if prop_type == 'float':
        try:
            return float(raw)
        except ValueError as e:
            raise InvalidPropertyValue(name, 'float', raw) from e

    if prop_type == 'bool':
        if raw == 'true':
            return True
        if raw == 'false':
            return False
        raise InvalidPropertyValue(name, 'bool', raw)

    if prop_type == 'color':
        try:
            return Color.from_hex(raw, require_hash=True)
        except ValueError as e:
            raise InvalidPropertyValue(name, 'color', raw) from e

    if prop_type == 'object':
        try:
            object_id = int(raw)
        except ValueError as e:
            raise InvalidPropertyValue(name, 'object', raw) from e
        if object_id < 0:
            raise InvalidPropertyValue(name, 'object', raw)
        return object_id

    raise InvalidPropertyType(name, prop_type)
