"""
Map and tileset documents - the entry points of tmx_reader

=============================================================================
USAGE
=============================================================================

    from pathlib import Path
    from tmx_reader import parse_map, parse_tileset

    tmx_map = parse_map(Path("level1.tmx").read_text())
    print(f"Map size: {tmx_map.width}x{tmx_map.height}")

    # External tilesets are only referenced; load them yourself
    for entry in tmx_map.tilesets:
        if entry.is_external:
            tileset = parse_tileset(Path(entry.source).read_text())

    ground = tmx_map.get_layer_by_name("Ground")
    for x, y, gid in ground.iter_tiles(non_empty=True):
        index, local_id = tmx_map.tilesets.resolve(gid)

Parsing never touches the filesystem and never logs. It either returns a
complete, immutable document or raises a TmxError subclass.

=============================================================================
TMX FILE STRUCTURE
=============================================================================

    <map version="1.10" orientation="orthogonal" width="100" height="100"
         tilewidth="32" tileheight="32" infinite="0" nextobjectid="5">
        <properties>...</properties>
        <tileset firstgid="1" name="terrain" tilewidth="32" tileheight="32"
                 tilecount="64" columns="8">
            <image source="terrain.png" width="256" height="256"/>
        </tileset>
        <tileset firstgid="65" source="objects.tsx"/>
        <layer id="1" name="Ground" width="100" height="100">
            <data encoding="csv">1,2,3,...</data>
        </layer>
        <objectgroup id="2" name="Collisions">
            <object id="1" x="100" y="200" width="32" height="32"/>
        </objectgroup>
        <group id="3" name="Decor">...</group>
    </map>

=============================================================================
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from .attributes import Orientation, RenderOrder, StaggerAxis, StaggerIndex
from .color import Color
from .layers import GroupLayer, Layer, ObjectGroupLayer, TileLayer, parse_layer_children
from .markup import get_color, get_enum, get_flag, get_float, get_unsigned, parse_document
from .objects import TileObject
from .properties import EMPTY_PROPERTIES, Properties, parse_properties_of
from .tileset import Tile, Tileset, TilesetRegistry, parse_tileset_element, parse_tileset_entry

# Direct children of <map> that are not layers
_MAP_NON_LAYER_CHILDREN = frozenset(('properties', 'tileset', 'editorsettings'))


@dataclass(frozen=True)
class Map:
    """
    Complete Tiled map - the root object for TMX files.

    Contains:
    - Map metadata (size, orientation, tile size)
    - Tileset entries, sorted by first_gid (with GID resolution)
    - The layer tree, under an unnamed root group
    - Custom properties

    next_layer_id / next_object_id are stored exactly as written in the file.
    """
    orientation: Orientation = Orientation.ORTHOGONAL
    render_order: RenderOrder = RenderOrder.RIGHT_DOWN
    width: int = 0                                   # Map width in tiles
    height: int = 0                                  # Map height in tiles
    tile_width: int = 0                              # Tile width in pixels
    tile_height: int = 0                             # Tile height in pixels
    infinite: bool = False                           # Is map infinite?
    background_color: Optional[Color] = None
    version: str = "1.0"                             # TMX format version
    tiled_version: str = ""                          # Tiled editor version
    class_name: str = ""
    hex_side_length: Optional[int] = None            # Hexagonal maps only
    stagger_axis: Optional[StaggerAxis] = None       # Staggered/hexagonal maps
    stagger_index: Optional[StaggerIndex] = None
    parallax_origin_x: float = 0.0
    parallax_origin_y: float = 0.0
    next_layer_id: int = 0
    next_object_id: int = 0
    tilesets: TilesetRegistry = field(default_factory=TilesetRegistry)
    root: GroupLayer = field(default_factory=GroupLayer)
    properties: Properties = EMPTY_PROPERTIES

    @property
    def layers(self):
        """Top-level layers, in drawing order."""
        return self.root.layers

    def iter_layers(self) -> Iterator[Layer]:
        """All layers, depth-first (groups are yielded before their children)."""
        return self.root.iter_layers()

    def get_layer_by_name(self, name: str) -> Optional[Layer]:
        return self.root.get_layer_by_name(name)

    def get_tile(self, gid: int) -> Optional[Tile]:
        """
        Tile referenced by a GID (flip bits are ignored).

        Returns None for GID 0 and for tiles of external tilesets, whose
        content is not part of this document.
        """
        return self.tilesets.tile_for_gid(gid)


# =============================================================================
# PARSING
# =============================================================================

def parse_map(text: Union[str, bytes]) -> Map:
    """
    Parse a TMX document.

    Parameters:
    -----------
    text : str or bytes
        Whole content of the .tmx file

    Returns:
    --------
    Map : fully built, immutable map

    Raises:
    -------
    TmxError subclass : first problem found; nothing partial is returned
    """
    root = parse_document(text, 'map')
    return build_map(root)


def parse_tileset(text: Union[str, bytes]) -> Tileset:
    """
    Parse a standalone TSX document.

    Inline tilesets in a map follow exactly the same rules.
    """
    root = parse_document(text, 'tileset')
    return parse_tileset_element(root)


def build_map(root: ET.Element) -> Map:
    """Build a Map from an already parsed <map> element."""
    infinite = get_flag(root, 'infinite', False)

    # -----------------------------------------------------------------
    # TILESETS
    # -----------------------------------------------------------------
    # Always declared before the layers that use them
    registry = TilesetRegistry(
        parse_tileset_entry(tileset_elem) for tileset_elem in root.findall('tileset'))

    # -----------------------------------------------------------------
    # LAYERS
    # -----------------------------------------------------------------
    layers = parse_layer_children(root, infinite, skip=_MAP_NON_LAYER_CHILDREN)
    layer_root = GroupLayer(layers=layers)
    _check_layer_gids(layer_root, registry)

    stagger_axis = root.get('staggeraxis')
    stagger_index = root.get('staggerindex')

    return Map(
        orientation=get_enum(root, 'orientation', Orientation, Orientation.ORTHOGONAL),
        render_order=get_enum(root, 'renderorder', RenderOrder, RenderOrder.RIGHT_DOWN),
        width=get_unsigned(root, 'width', required=True),
        height=get_unsigned(root, 'height', required=True),
        tile_width=get_unsigned(root, 'tilewidth', required=True),
        tile_height=get_unsigned(root, 'tileheight', required=True),
        infinite=infinite,
        background_color=get_color(root, 'backgroundcolor'),
        version=root.get('version', '1.0'),
        tiled_version=root.get('tiledversion', ''),
        class_name=root.get('class', ''),
        hex_side_length=get_unsigned(root, 'hexsidelength'),
        stagger_axis=(get_enum(root, 'staggeraxis', StaggerAxis, StaggerAxis.Y)
                      if stagger_axis is not None else None),
        stagger_index=(get_enum(root, 'staggerindex', StaggerIndex, StaggerIndex.ODD)
                       if stagger_index is not None else None),
        parallax_origin_x=get_float(root, 'parallaxoriginx', 0.0),
        parallax_origin_y=get_float(root, 'parallaxoriginy', 0.0),
        next_layer_id=get_unsigned(root, 'nextlayerid', 0),
        next_object_id=get_unsigned(root, 'nextobjectid', 0),
        tilesets=registry,
        root=layer_root,
        properties=parse_properties_of(root),
    )


def _check_layer_gids(root: GroupLayer, registry: TilesetRegistry) -> None:
    """
    Every non-empty GID in the document must belong to a tileset entry.
    """
    for layer in root.iter_layers():
        if isinstance(layer, TileLayer):
            if layer.chunks is None:
                registry.check_gids(layer.grid)
            else:
                for chunk in layer.chunks.values():
                    registry.check_gids(chunk.gids)
        elif isinstance(layer, ObjectGroupLayer):
            for obj in layer.objects:
                if isinstance(obj, TileObject):
                    registry.resolve(obj.gid)
