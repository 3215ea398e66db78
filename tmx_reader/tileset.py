"""
Tilesets, tiles, and the GID -> tile registry

=============================================================================
TILESET TYPES
=============================================================================

1. ATLAS TILESET (most common):
   One large image divided into a grid of tiles.

   +---+---+---+---+
   | 0 | 1 | 2 | 3 |
   +---+---+---+---+
   | 4 | 5 | 6 | 7 |
   +---+---+---+---+

   The region of tile 'id' inside the image is computed, never stored:

       col = id % columns
       row = id // columns
       x   = margin + col * (tilewidth + spacing)
       y   = margin + row * (tileheight + spacing)

   margin = pixels around the EDGE of the entire image
   spacing = pixels BETWEEN tiles

2. IMAGE COLLECTION TILESET:
   No shared image; each <tile> has its own <image>. Nothing is computed:
   a tile's region is its explicit sub-rectangle (x/y/width/height on the
   <tile>, Tiled >= 1.9) or None when it uses its whole image.

=============================================================================
SPARSE TILE DEFINITIONS
=============================================================================

Only tiles with metadata (properties, animation, collision, own image) are
listed as <tile> elements. Tileset.tile(id) synthesizes a default Tile for
every other id in [0, tilecount), so a 1024-tile atlas with three
annotated tiles stores three Tile objects.

=============================================================================
GLOBAL TILE IDs (GIDs)
=============================================================================

A map references tiles across all its tilesets by GID:

    Tileset A (firstgid=1):   tiles 1-160
    Tileset B (firstgid=161): tiles 161-...

    GID 0   = empty tile (no graphic)
    GID 1   = tile 0 of tileset A
    GID 161 = tile 0 of tileset B

A GID belongs to the entry with the largest firstgid <= GID (after the flip
bits are stripped). The last entry's range is unbounded.

=============================================================================
"""

import bisect
import itertools
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Tuple

import numpy as np

from .attributes import FillMode, Grid, ObjectAlignment, TileOffset, TileRenderSize
from .color import Color
from .errors import (DuplicateFirstGid, GidOutOfRange, InvalidAttributeValue,
                     MissingRequiredAttribute, TileIdOutOfRange)
from .gid import GID_ID_MASK, decode_gid
from .image import Image
from .layers import ObjectGroupLayer, compared_fields, parse_object_group
from .markup import get_color, get_enum, get_flag, get_float, get_int, get_unsigned, require
from .properties import EMPTY_PROPERTIES, Properties, parse_properties_of


class TilesetRegion(NamedTuple):
    """Pixel rectangle of a tile inside its image."""
    x: int
    y: int
    width: int
    height: int


class Frame(NamedTuple):
    tile_id: int          # Local tile id within the same tileset
    duration: int         # Milliseconds


@dataclass(frozen=True)
class Animation:
    """
    Frame sequence of an animated tile.

    Animations loop forever. loop() returns a new iterator each time, so
    restarting an animation is just calling it again:

        frames = tile.animation.loop()
        frame = next(frames)
    """
    frames: Tuple[Frame, ...] = ()

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def duration(self) -> int:
        """Length of one pass over all frames, in milliseconds."""
        return sum(frame.duration for frame in self.frames)

    def loop(self) -> Iterator[Frame]:
        return itertools.cycle(self.frames)

    def frame_at(self, elapsed: int) -> Frame:
        """Frame shown after 'elapsed' milliseconds of playback."""
        if not self.frames:
            raise ValueError("animation has no frames")
        total = self.duration
        if total == 0:
            return self.frames[0]

        remaining = elapsed % total
        for frame in self.frames:
            if remaining < frame.duration:
                return frame
            remaining -= frame.duration
        return self.frames[-1]


@dataclass(frozen=True)
class Tile:
    """
    Individual tile within a tileset.

    The 'id' is LOCAL to the tileset (0-based index).
    'image' is only set in image collection tilesets.
    """
    id: int                                          # Local tile ID (within tileset)
    class_name: str = ""                             # Tile type/class
    probability: float = 1.0                         # Weight for random painting
    properties: Properties = EMPTY_PROPERTIES
    region: Optional[TilesetRegion] = None           # Area inside the image
    image: Optional[Image] = None                    # Own image (collection tilesets)
    animation: Optional[Animation] = None
    collision: Optional[ObjectGroupLayer] = None     # Collision shapes


@dataclass(frozen=True)
class WangColor:
    name: str = ""
    color: Optional[Color] = None
    tile: int = -1
    probability: float = 1.0
    properties: Properties = EMPTY_PROPERTIES


@dataclass(frozen=True)
class WangTile:
    tile_id: int
    wang_id: Tuple[int, ...]


@dataclass(frozen=True)
class WangSet:
    """Editor-only auto-tiling metadata, kept as written."""
    name: str = ""
    type: str = ""
    tile: int = -1
    properties: Properties = EMPTY_PROPERTIES
    colors: Tuple[WangColor, ...] = ()
    tiles: Tuple[WangTile, ...] = ()


@dataclass(frozen=True)
class Terrain:
    """Pre-1.5 terrain definition (editor-only)."""
    name: str = ""
    tile: int = -1
    properties: Properties = EMPTY_PROPERTIES


@dataclass(frozen=True)
class Transformations:
    """Which flips/rotations the editor may apply to tiles of this tileset."""
    hflip: bool = False
    vflip: bool = False
    rotate: bool = False
    prefer_untransformed: bool = False


@dataclass(frozen=True)
class Tileset:
    """
    Tileset - a set of tile graphics plus per-tile metadata.

    'tiles' only holds explicitly declared tiles; use tile(id) to get any
    tile in range. Equality includes the declared tiles, the hash does not.
    """
    name: str = ""                                   # Tileset name
    class_name: str = ""
    tile_width: int = 0                              # Tile width in pixels
    tile_height: int = 0                             # Tile height in pixels
    spacing: int = 0                                 # Pixels between tiles
    margin: int = 0                                  # Pixels around edge
    tile_count: int = 0                              # Total number of tiles
    columns: int = 0                                 # Tiles per row (atlas)
    image: Optional[Image] = None                    # Atlas image
    tile_offset: TileOffset = TileOffset()
    object_alignment: ObjectAlignment = ObjectAlignment.UNSPECIFIED
    tile_render_size: TileRenderSize = TileRenderSize.TILE
    fill_mode: FillMode = FillMode.STRETCH
    grid: Optional[Grid] = None
    transformations: Optional[Transformations] = None
    properties: Properties = EMPTY_PROPERTIES
    tiles: Mapping[int, Tile] = field(default_factory=lambda: MappingProxyType({}),
                                      compare=False)
    wang_sets: Tuple[WangSet, ...] = ()
    terrains: Tuple[Terrain, ...] = ()

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return (compared_fields(self) == compared_fields(other) and
                dict(self.tiles) == dict(other.tiles))

    @property
    def is_collection(self) -> bool:
        """True for image collection tilesets (no shared atlas image)."""
        return self.image is None

    def region_for(self, tile_id: int) -> Optional[TilesetRegion]:
        """
        Atlas region of a tile id, or None for image collection tilesets.
        """
        if self.is_collection:
            return None
        if not 0 <= tile_id < self.tile_count:
            raise TileIdOutOfRange(tile_id, self.tile_count)
        return atlas_region(tile_id, self.columns, self.tile_width,
                            self.tile_height, self.margin, self.spacing)

    def tile(self, tile_id: int) -> Tile:
        """
        Get the tile with a local id.

        Declared tiles are returned as parsed; any other id in
        [0, tile_count) gets a default Tile with its computed region.

        Raises:
        -------
        TileIdOutOfRange : id not declared and outside [0, tile_count)
        """
        declared = self.tiles.get(tile_id)
        if declared is not None:
            return declared
        if not 0 <= tile_id < self.tile_count:
            raise TileIdOutOfRange(tile_id, self.tile_count)
        return Tile(id=tile_id, region=self.region_for(tile_id))

    def iter_tiles(self) -> Iterator[Tile]:
        """Every tile of the tileset: ids 0..tile_count-1, then declared extras."""
        for tile_id in range(self.tile_count):
            yield self.tile(tile_id)
        for tile_id in sorted(self.tiles):
            if tile_id >= self.tile_count:
                yield self.tiles[tile_id]


def atlas_region(tile_id: int, columns: int, tile_width: int, tile_height: int,
                 margin: int = 0, spacing: int = 0) -> TilesetRegion:
    """
    Pixel rectangle of tile 'tile_id' in an atlas image.

    Example: columns=32, 16x16 tiles, no margin/spacing
        tile 66 -> col 2, row 2 -> (32, 32, 16, 16)
    """
    col = tile_id % columns
    row = tile_id // columns
    return TilesetRegion(
        x=margin + col * (tile_width + spacing),
        y=margin + row * (tile_height + spacing),
        width=tile_width,
        height=tile_height,
    )


# =============================================================================
# TILESET ENTRIES AND REGISTRY
# =============================================================================

@dataclass(frozen=True)
class TilesetEntry:
    """
    A tileset as referenced from a map.

    EMBEDDED: 'tileset' holds the parsed tileset, 'source' is None.
    EXTERNAL (TSX): 'source' is the path written in the map, 'tileset' is
    None. Loading it is up to the caller (see parse_tileset).
    """
    first_gid: int
    tileset: Optional[Tileset] = None
    source: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.source is not None


class TilesetRegistry(Sequence):
    """
    Tileset entries of a map, sorted by first_gid, with GID resolution.

    ==========================================================================
    ALGORITHM
    ==========================================================================

    Entries are sorted by first_gid (ascending). A GID belongs to the entry
    with the largest first_gid <= GID, found by binary search:

        first_gids = [1, 161, 300]
        GID 160 -> bisect_right(...) - 1 = 0 -> entry 0, local id 159
        GID 161 -> entry 1, local id 0

    ==========================================================================
    """

    __slots__ = ('_entries', '_first_gids')

    def __init__(self, entries: Iterable[TilesetEntry] = ()):
        ordered = sorted(entries, key=lambda entry: entry.first_gid)
        for previous, current in zip(ordered, ordered[1:]):
            if previous.first_gid == current.first_gid:
                raise DuplicateFirstGid(current.first_gid)
        self._entries: Tuple[TilesetEntry, ...] = tuple(ordered)
        self._first_gids: List[int] = [entry.first_gid for entry in ordered]

    def __getitem__(self, index):
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TilesetRegistry({list(self._entries)!r})"

    def __eq__(self, other) -> bool:
        if isinstance(other, TilesetRegistry):
            return self._entries == other._entries
        return NotImplemented

    def __hash__(self):
        return hash(self._entries)

    def resolve(self, gid: int) -> Optional[Tuple[int, int]]:
        """
        Map a GID to (entry_index, local_tile_id).

        Returns None for empty cells (raw id 0).

        Raises:
        -------
        GidOutOfRange : raw id below every first_gid, or no tilesets
        """
        raw_id = decode_gid(gid).raw_id
        if raw_id == 0:
            return None

        index = bisect.bisect_right(self._first_gids, raw_id) - 1
        if index < 0:
            raise GidOutOfRange(gid)
        return index, raw_id - self._first_gids[index]

    def tile_for_gid(self, gid: int) -> Optional[Tile]:
        """
        Tile referenced by a GID, or None for empty cells and for tiles of
        external (not loaded) tilesets.
        """
        resolved = self.resolve(gid)
        if resolved is None:
            return None
        index, local_id = resolved
        tileset = self._entries[index].tileset
        if tileset is None:
            return None
        return tileset.tile(local_id)

    def check_gids(self, gids: np.ndarray) -> None:
        """
        Check that every non-empty GID in an array resolves.

        Only the lower bound can fail (the last range is unbounded), so one
        vectorized comparison covers a whole layer.
        """
        raw = gids & GID_ID_MASK
        lowest = self._first_gids[0] if self._first_gids else None
        if lowest is None:
            bad = gids[raw != 0]
        else:
            bad = gids[(raw != 0) & (raw < lowest)]
        if bad.size:
            raise GidOutOfRange(int(bad.flat[0]))


# =============================================================================
# PARSING
# =============================================================================

def parse_tileset_element(elem: ET.Element) -> Tileset:
    """
    Parse an inline <tileset> or the root of a TSX document.

    Parameters:
    -----------
    elem : ET.Element
        The <tileset> XML element (its 'firstgid', if any, is ignored here)
    """
    tile_width = get_unsigned(elem, 'tilewidth', required=True)
    tile_height = get_unsigned(elem, 'tileheight', required=True)
    spacing = get_unsigned(elem, 'spacing', 0)
    margin = get_unsigned(elem, 'margin', 0)

    img_elem = elem.find('image')
    image = Image.from_xml(img_elem) if img_elem is not None else None

    columns = get_unsigned(elem, 'columns')
    tile_count = get_unsigned(elem, 'tilecount')

    # Files written before Tiled 1.0 have no columns/tilecount: derive them
    # from the atlas image the way Tiled does
    if image is not None and (columns is None or tile_count is None):
        if image.width is None or image.height is None:
            missing = 'columns' if columns is None else 'tilecount'
            raise MissingRequiredAttribute('tileset', missing)
        if columns is None:
            columns = _fit(image.width, tile_width, margin, spacing)
        if tile_count is None:
            tile_count = columns * _fit(image.height, tile_height, margin, spacing)

    tiles = _parse_tiles(elem, image, columns or 0, tile_width, tile_height,
                         margin, spacing)
    if tile_count is None:
        tile_count = max(tiles) + 1 if tiles else 0
    columns = columns or 0

    if image is not None and tile_count > 0 and columns == 0:
        raise InvalidAttributeValue('tileset', 'columns', elem.get('columns'))

    offset_elem = elem.find('tileoffset')
    grid_elem = elem.find('grid')
    transform_elem = elem.find('transformations')

    return Tileset(
        name=elem.get('name', ''),
        class_name=elem.get('class', ''),
        tile_width=tile_width,
        tile_height=tile_height,
        spacing=spacing,
        margin=margin,
        tile_count=tile_count,
        columns=columns,
        image=image,
        tile_offset=TileOffset.from_xml(offset_elem) if offset_elem is not None else TileOffset(),
        object_alignment=get_enum(elem, 'objectalignment', ObjectAlignment,
                                  ObjectAlignment.UNSPECIFIED),
        tile_render_size=get_enum(elem, 'tilerendersize', TileRenderSize, TileRenderSize.TILE),
        fill_mode=get_enum(elem, 'fillmode', FillMode, FillMode.STRETCH),
        grid=Grid.from_xml(grid_elem) if grid_elem is not None else None,
        transformations=(_parse_transformations(transform_elem)
                         if transform_elem is not None else None),
        properties=parse_properties_of(elem),
        tiles=MappingProxyType(tiles),
        wang_sets=_parse_wang_sets(elem),
        terrains=_parse_terrains(elem),
    )


def parse_tileset_entry(elem: ET.Element) -> TilesetEntry:
    """
    Parse a <tileset> element inside a map.

    A 'source' attribute makes it a reference to an external TSX file;
    otherwise the tileset is defined inline.
    """
    first_gid = get_unsigned(elem, 'firstgid', required=True)
    if first_gid < 1:
        raise InvalidAttributeValue('tileset', 'firstgid', elem.get('firstgid'))

    source = elem.get('source')
    if source is not None:
        return TilesetEntry(first_gid=first_gid, source=source)
    return TilesetEntry(first_gid=first_gid, tileset=parse_tileset_element(elem))


def _fit(size: int, tile_size: int, margin: int, spacing: int) -> int:
    """How many tiles fit along one axis of an atlas image."""
    step = tile_size + spacing
    if step <= 0:
        return 0
    return max(0, (size - 2 * margin + spacing) // step)


def _parse_tiles(elem: ET.Element, atlas: Optional[Image], columns: int,
                 tile_width: int, tile_height: int,
                 margin: int, spacing: int) -> Dict[int, Tile]:
    tiles: Dict[int, Tile] = {}
    for tile_elem in elem.findall('tile'):
        tile_id = get_unsigned(tile_elem, 'id', required=True)
        if tile_id in tiles:
            raise InvalidAttributeValue('tile', 'id', tile_elem.get('id'))

        img_elem = tile_elem.find('image')
        image = Image.from_xml(img_elem) if img_elem is not None else None

        if atlas is not None and columns > 0:
            region = atlas_region(tile_id, columns, tile_width, tile_height,
                                  margin, spacing)
        else:
            region = _explicit_region(tile_elem, image)

        anim_elem = tile_elem.find('animation')
        collision_elem = tile_elem.find('objectgroup')

        tiles[tile_id] = Tile(
            id=tile_id,
            # 'class' since Tiled 1.9, 'type' before
            class_name=tile_elem.get('class', tile_elem.get('type', '')),
            probability=get_float(tile_elem, 'probability', 1.0),
            properties=parse_properties_of(tile_elem),
            region=region,
            image=image,
            animation=_parse_animation(anim_elem) if anim_elem is not None else None,
            collision=parse_object_group(collision_elem) if collision_elem is not None else None,
        )
    return tiles


def _explicit_region(tile_elem: ET.Element, image: Optional[Image]) -> Optional[TilesetRegion]:
    """Sub-rectangle of a collection tile's own image, if one is declared."""
    if not any(tile_elem.get(name) is not None for name in ('x', 'y', 'width', 'height')):
        return None
    default_width = image.width if image is not None and image.width is not None else 0
    default_height = image.height if image is not None and image.height is not None else 0
    return TilesetRegion(
        x=get_unsigned(tile_elem, 'x', 0),
        y=get_unsigned(tile_elem, 'y', 0),
        width=get_unsigned(tile_elem, 'width', default_width),
        height=get_unsigned(tile_elem, 'height', default_height),
    )


def _parse_animation(elem: ET.Element) -> Animation:
    frames = tuple(
        Frame(tile_id=get_unsigned(frame_elem, 'tileid', required=True),
              duration=get_unsigned(frame_elem, 'duration', required=True))
        for frame_elem in elem.findall('frame')
    )
    return Animation(frames=frames)


def _parse_transformations(elem: ET.Element) -> Transformations:
    return Transformations(
        hflip=get_flag(elem, 'hflip', False),
        vflip=get_flag(elem, 'vflip', False),
        rotate=get_flag(elem, 'rotate', False),
        prefer_untransformed=get_flag(elem, 'preferuntransformed', False),
    )


def _parse_wang_sets(elem: ET.Element) -> Tuple[WangSet, ...]:
    wang_sets = []
    for set_elem in elem.findall('wangsets/wangset'):
        colors = tuple(
            WangColor(
                name=color_elem.get('name', ''),
                color=get_color(color_elem, 'color'),
                tile=get_int(color_elem, 'tile', -1),
                probability=get_float(color_elem, 'probability', 1.0),
                properties=parse_properties_of(color_elem),
            )
            for color_elem in set_elem.findall('wangcolor')
        )
        wang_tiles = tuple(
            WangTile(
                tile_id=get_unsigned(tile_elem, 'tileid', required=True),
                wang_id=_parse_wang_id(tile_elem),
            )
            for tile_elem in set_elem.findall('wangtile')
        )
        wang_sets.append(WangSet(
            name=set_elem.get('name', ''),
            type=set_elem.get('type', ''),
            tile=get_int(set_elem, 'tile', -1),
            properties=parse_properties_of(set_elem),
            colors=colors,
            tiles=wang_tiles,
        ))
    return tuple(wang_sets)


def _parse_wang_id(elem: ET.Element) -> Tuple[int, ...]:
    raw = require(elem, 'wangid')
    try:
        if raw.startswith('0x'):
            # Before Tiled 1.5 the id was packed into one 32-bit hex value
            packed = int(raw, 16)
            return tuple((packed >> (4 * i)) & 0xF for i in range(8))
        return tuple(int(part) for part in raw.split(','))
    except ValueError as e:
        raise InvalidAttributeValue('wangtile', 'wangid', raw) from e


def _parse_terrains(elem: ET.Element) -> Tuple[Terrain, ...]:
    return tuple(
        Terrain(
            name=terrain_elem.get('name', ''),
            tile=get_int(terrain_elem, 'tile', -1),
            properties=parse_properties_of(terrain_elem),
        )
        for terrain_elem in elem.findall('terraintypes/terrain')
    )
