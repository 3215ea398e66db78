import textwrap

import pytest

from tmx_reader.attributes import ObjectAlignment, Orientation, TileOffset
from tmx_reader.document import parse_tileset
from tmx_reader.errors import (DuplicateFirstGid, GidOutOfRange, InvalidAttributeValue,
                               MalformedMarkup, MissingRequiredAttribute, TileIdOutOfRange)
from tmx_reader.gid import encode_gid
from tmx_reader.objects import RectangleObject
from tmx_reader.tileset import (Animation, Frame, Tileset, TilesetEntry, TilesetRegion,
                                TilesetRegistry, atlas_region)


def _tileset(source: str) -> Tileset:
    return parse_tileset(textwrap.dedent(source).strip())


ATLAS = """
    <tileset version="1.10" name="overworld" tilewidth="16" tileheight="16"
             tilecount="1024" columns="32" objectalignment="bottom">
        <tileoffset x="0" y="4"/>
        <grid orientation="isometric" width="32" height="16"/>
        <properties>
            <property name="biome" value="forest"/>
        </properties>
        <image source="overworld.png" width="512" height="512"/>
        <tile id="3" type="Wall">
            <properties>
                <property name="solid" type="bool" value="true"/>
            </properties>
            <objectgroup draworder="index">
                <object id="1" x="0" y="8" width="16" height="8"/>
            </objectgroup>
        </tile>
        <tile id="144">
            <animation>
                <frame tileid="144" duration="100"/>
                <frame tileid="145" duration="100"/>
                <frame tileid="146" duration="100"/>
                <frame tileid="147" duration="100"/>
            </animation>
        </tile>
    </tileset>
"""


def test_atlas_tileset_attributes():
    tileset = _tileset(ATLAS)

    assert tileset.name == "overworld"
    assert tileset.tile_count == 1024
    assert tileset.columns == 32
    assert tileset.image.source == "overworld.png"
    assert not tileset.is_collection
    assert tileset.object_alignment == ObjectAlignment.BOTTOM
    assert tileset.tile_offset == TileOffset(0, 4)
    assert tileset.grid.orientation == Orientation.ISOMETRIC
    assert tileset.properties.value('biome') == "forest"


def test_atlas_region_is_computed():
    tileset = _tileset(ATLAS)

    assert tileset.region_for(66) == TilesetRegion(32, 32, 16, 16)
    assert tileset.tile(66).region == (32, 32, 16, 16)


def test_atlas_region_with_margin_and_spacing():
    assert atlas_region(5, 4, 16, 16, margin=1, spacing=2) == (19, 19, 16, 16)


def test_declared_tile_keeps_metadata():
    tile = _tileset(ATLAS).tile(3)

    assert tile.class_name == "Wall"
    assert tile.properties.value('solid') is True
    assert tile.region == (48, 0, 16, 16)
    assert isinstance(tile.collision.objects[0], RectangleObject)
    assert tile.collision.objects[0].height == 8


def test_undeclared_tile_is_synthesized():
    tileset = _tileset(ATLAS)

    tile = tileset.tile(500)

    assert tile.id == 500
    assert len(tile.properties) == 0
    assert tile.animation is None
    assert 500 not in tileset.tiles


def test_tile_outside_range():
    tileset = _tileset(ATLAS)

    with pytest.raises(TileIdOutOfRange):
        tileset.tile(1024)
    with pytest.raises(TileIdOutOfRange):
        tileset.region_for(-1)


def test_animation_frames():
    animation = _tileset(ATLAS).tile(144).animation

    assert len(animation) == 4
    assert [frame.tile_id for frame in animation.frames] == [144, 145, 146, 147]
    assert animation.duration == 400
    assert animation.frame_at(250) == Frame(146, 100)
    assert animation.frame_at(400) == Frame(144, 100)


def test_animation_loop_restarts():
    animation = Animation(frames=(Frame(1, 50), Frame(2, 50)))

    first = animation.loop()
    assert [next(first).tile_id for _ in range(3)] == [1, 2, 1]
    assert next(animation.loop()).tile_id == 1


def test_iter_tiles_covers_every_id():
    tiles = list(_tileset(ATLAS).iter_tiles())

    assert len(tiles) == 1024
    assert tiles[3].class_name == "Wall"


def test_image_collection_tileset():
    tileset = _tileset(
        """
        <tileset name="props" tilewidth="64" tileheight="64" tilecount="2" columns="0">
            <grid orientation="orthogonal" width="1" height="1"/>
            <tile id="0">
                <image source="barrel.png" width="32" height="48"/>
            </tile>
            <tile id="1" x="16" y="0" width="16" height="32">
                <image source="sheet.png" width="64" height="64"/>
            </tile>
        </tileset>
        """
    )

    assert tileset.is_collection
    assert tileset.region_for(0) is None
    assert tileset.tile(0).image.source == "barrel.png"
    assert tileset.tile(0).region is None
    assert tileset.tile(1).region == (16, 0, 16, 32)


def test_columns_and_count_derived_from_image():
    tileset = _tileset(
        """
        <tileset name="old" tilewidth="16" tileheight="16" margin="1" spacing="2">
            <image source="old.png" width="64" height="46"/>
        </tileset>
        """
    )

    assert tileset.columns == 3
    assert tileset.tile_count == 6


def test_derivation_needs_image_size():
    with pytest.raises(MissingRequiredAttribute):
        _tileset(
            """
            <tileset name="old" tilewidth="16" tileheight="16">
                <image source="old.png"/>
            </tileset>
            """
        )


def test_atlas_without_columns():
    with pytest.raises(InvalidAttributeValue):
        _tileset(
            """
            <tileset name="bad" tilewidth="16" tileheight="16" tilecount="4" columns="0">
                <image source="bad.png" width="64" height="16"/>
            </tileset>
            """
        )


def test_tile_size_is_required():
    with pytest.raises(MissingRequiredAttribute) as excinfo:
        _tileset('<tileset name="bad" tileheight="16" tilecount="0" columns="0"/>')

    assert excinfo.value.attribute == "tilewidth"


def test_wrong_root_element():
    with pytest.raises(MalformedMarkup):
        parse_tileset('<map width="1" height="1" tilewidth="1" tileheight="1"/>')


def test_wang_sets_are_kept():
    tileset = _tileset(
        """
        <tileset name="terrain" tilewidth="16" tileheight="16" tilecount="4" columns="2">
            <image source="terrain.png" width="32" height="32"/>
            <wangsets>
                <wangset name="Ground" type="corner" tile="-1">
                    <wangcolor name="Grass" color="#00ff00" tile="0" probability="1"/>
                    <wangtile tileid="0" wangid="0,1,0,1,0,1,0,1"/>
                </wangset>
            </wangsets>
        </tileset>
        """
    )

    wang_set = tileset.wang_sets[0]
    assert wang_set.name == "Ground"
    assert wang_set.colors[0].name == "Grass"
    assert wang_set.tiles[0].wang_id == (0, 1, 0, 1, 0, 1, 0, 1)


# =============================================================================
# REGISTRY
# =============================================================================

def _registry(*first_gids):
    return TilesetRegistry(
        TilesetEntry(first_gid=first_gid,
                     tileset=Tileset(name=f"ts{first_gid}", tile_width=16, tile_height=16,
                                     tile_count=160, columns=16))
        for first_gid in first_gids
    )


def test_resolve_picks_largest_first_gid():
    registry = _registry(161, 1)

    assert [entry.first_gid for entry in registry] == [1, 161]
    assert registry.resolve(1) == (0, 0)
    assert registry.resolve(160) == (0, 159)
    assert registry.resolve(161) == (1, 0)
    assert registry.resolve(5000) == (1, 4839)


def test_resolve_strips_flip_bits():
    registry = _registry(1, 161)

    assert registry.resolve(encode_gid(161, flipped_horizontally=True)) == (1, 0)


def test_resolve_empty_cell():
    assert _registry(1).resolve(0) is None


def test_resolve_below_first_entry():
    with pytest.raises(GidOutOfRange):
        _registry(5).resolve(3)
    with pytest.raises(GidOutOfRange):
        TilesetRegistry().resolve(1)


def test_duplicate_first_gid():
    with pytest.raises(DuplicateFirstGid):
        _registry(1, 1)


def test_tile_for_gid_skips_external_tilesets():
    registry = TilesetRegistry([TilesetEntry(first_gid=1, source="terrain.tsx")])

    assert registry.tile_for_gid(1) is None
    assert registry[0].is_external


def test_embedded_atlas_image():
    tileset = _tileset(
        """
        <tileset name="inline" tilewidth="16" tileheight="16" tilecount="1" columns="1">
            <image format="png" width="16" height="16">
                <data encoding="base64">
                    iVBORw0KGgo=
                </data>
            </image>
        </tileset>
        """
    )

    image = tileset.image
    assert not tileset.is_collection
    assert image.is_embedded
    assert image.source == ""
    assert image.format == "png"
    assert image.data == b'\x89PNG\r\n\x1a\n'
    assert tileset.region_for(0) == (0, 0, 16, 16)


def test_embedded_image_must_be_base64():
    with pytest.raises(InvalidAttributeValue):
        _tileset(
            """
            <tileset name="inline" tilewidth="16" tileheight="16" tilecount="1" columns="1">
                <image format="png" width="16" height="16">
                    <data encoding="csv">1,2</data>
                </image>
            </tileset>
            """
        )
