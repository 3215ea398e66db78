"""
Image references used by tilesets, collection tiles and image layers

An image is usually a file next to the document:

    <image source="terrain.png" width="256" height="256" trans="ff00ff"/>

Tiled can also embed the file itself, in which case there is no 'source':

    <image format="png" width="16" height="16">
        <data encoding="base64">iVBORw0KGgo...</data>
    </image>
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional

from .color import Color
from .data import decode_base64
from .errors import InvalidAttributeValue
from .markup import get_color, get_unsigned


@dataclass(frozen=True)
class Image:
    """
    Image reference (the pixels are never decoded).

    source: Path to image file (relative to the TMX/TSX file), '' if embedded
    width:  Image width in pixels (optional)
    height: Image height in pixels (optional)
    trans:  Color treated as transparent (e.g. ff00ff for magenta)
    """
    source: str = ""                     # Path to image file
    width: Optional[int] = None          # Image width (pixels)
    height: Optional[int] = None         # Image height (pixels)
    trans: Optional[Color] = None        # Transparent color
    format: str = ""                     # Only set for embedded image data
    data: Optional[bytes] = field(default=None, repr=False)   # Embedded file bytes

    @property
    def is_embedded(self) -> bool:
        return self.data is not None

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'Image':
        """Parse image from XML element."""
        data_elem = elem.find('data')
        data = None
        if data_elem is not None:
            encoding = data_elem.get('encoding', 'base64')
            if encoding != 'base64':
                raise InvalidAttributeValue('data', 'encoding', encoding)
            data = decode_base64(data_elem.text or '')

        return cls(
            source=elem.get('source', ''),
            width=get_unsigned(elem, 'width'),
            height=get_unsigned(elem, 'height'),
            trans=get_color(elem, 'trans'),
            format=elem.get('format', ''),
            data=data,
        )
