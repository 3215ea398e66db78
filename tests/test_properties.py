import textwrap
import xml.etree.ElementTree as ET

import pytest

from tmx_reader.color import Color
from tmx_reader.errors import (InvalidAttributeValue, InvalidPropertyType,
                               InvalidPropertyValue, MissingRequiredAttribute)
from tmx_reader.properties import ClassValue, Properties, parse_properties


def _parse(xml: str) -> Properties:
    return parse_properties(ET.fromstring(textwrap.dedent(xml).strip()))


def test_typed_values_are_converted():
    props = _parse(
        """
        <properties>
            <property name="solid" type="bool" value="true"/>
            <property name="hidden" type="bool" value="false"/>
            <property name="health" type="int" value="-100"/>
            <property name="speed" type="float" value="1.5"/>
            <property name="label" value="A wooden door"/>
            <property name="script" type="file" value="scripts/door.lua"/>
            <property name="target" type="object" value="12"/>
        </properties>
        """
    )

    assert props.value('solid') is True
    assert props.value('hidden') is False
    assert props.value('health') == -100
    assert props.value('speed') == 1.5
    assert props.value('label') == "A wooden door"
    assert props['label'].type == "string"
    assert props.value('script') == "scripts/door.lua"
    assert props['script'].type == "file"
    assert props.value('target') == 12


def test_color_property_keeps_alpha():
    props = _parse('<properties><property name="tint" type="color" value="#ff83947b"/></properties>')

    assert props.value('tint') == Color(alpha=0xFF, red=0x83, green=0x94, blue=0x7B)


def test_six_digit_color_is_opaque():
    props = _parse('<properties><property name="tint" type="color" value="#102030"/></properties>')

    assert props.value('tint') == Color(0xFF, 0x10, 0x20, 0x30)


def test_color_property_requires_hash():
    with pytest.raises(InvalidPropertyValue):
        _parse('<properties><property name="tint" type="color" value="ff83947b"/></properties>')


def test_multiline_string_uses_element_text():
    props = _parse(
        """
        <properties>
            <property name="dialogue">First line
        Second line</property>
        </properties>
        """
    )

    assert props.value('dialogue') == "First line\nSecond line"


def test_class_property_nests_members():
    props = _parse(
        """
        <properties>
            <property name="stats" type="class" propertytype="Stats">
                <properties>
                    <property name="speed" type="float" value="2.5"/>
                    <property name="armor" type="int" value="3"/>
                </properties>
            </property>
        </properties>
        """
    )

    stats = props.value('stats')
    assert isinstance(stats, ClassValue)
    assert stats.type_name == "Stats"
    assert stats.properties.value('speed') == 2.5
    assert stats.properties.value('armor') == 3
    assert props['stats'].property_type == "Stats"


def test_value_falls_back_to_default():
    props = _parse('<properties/>')

    assert len(props) == 0
    assert props.value('missing', 7) == 7


def test_absent_properties_element_is_empty():
    assert parse_properties(None) == Properties()


@pytest.mark.parametrize(
    "type_name,value",
    [
        ("bool", "True"),
        ("bool", "1"),
        ("int", "1.5"),
        ("float", "fast"),
        ("object", "-1"),
        ("color", "#12345"),
    ],
)
def test_values_not_matching_their_type_are_rejected(type_name, value):
    with pytest.raises(InvalidPropertyValue) as excinfo:
        _parse(f'<properties><property name="p" type="{type_name}" value="{value}"/></properties>')

    assert excinfo.value.name == "p"


def test_unknown_type_is_rejected():
    with pytest.raises(InvalidPropertyType) as excinfo:
        _parse('<properties><property name="p" type="vector" value="1,2"/></properties>')

    assert excinfo.value.type_name == "vector"


def test_property_without_name_is_rejected():
    with pytest.raises(MissingRequiredAttribute):
        _parse('<properties><property value="1"/></properties>')


def test_duplicate_names_are_rejected():
    with pytest.raises(InvalidAttributeValue):
        _parse(
            """
            <properties>
                <property name="a" value="1"/>
                <property name="a" value="2"/>
            </properties>
            """
        )


def test_properties_are_read_only_and_hashable():
    props = _parse('<properties><property name="a" type="int" value="1"/></properties>')

    with pytest.raises(TypeError):
        props['b'] = 2
    assert hash(props) == hash(_parse('<properties><property name="a" type="int" value="1"/></properties>'))
