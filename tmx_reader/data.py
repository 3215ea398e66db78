"""
Tile layer payload decoding

Turns the content of a <data> element (or of one <chunk> inside it) into a
grid of raw 32-bit GIDs.

=============================================================================
DATA ENCODINGS
=============================================================================

1. XML (no 'encoding' attribute, deprecated):
   <data>
       <tile gid="1"/><tile gid="2"/><tile/>...
   </data>
   One element per cell, already in row-major order. A <tile> without a
   gid is an empty cell.

2. CSV:
   <data encoding="csv">
       1,2,3,4,
       5,6,7,8
   </data>

3. Base64:
   <data encoding="base64" compression="zlib">
       eJxjZGBgYAJiZiBmAWIOIAYAA2wAHw==
   </data>
   Little-endian uint32 per cell, optionally compressed with gzip, zlib or
   zstd. Compression is only valid together with base64.

=============================================================================
DECOMPRESSION LIMIT
=============================================================================

A layer of width x height cells needs exactly width*height*4 bytes. We never
let a decompressor produce more than that: a tiny compressed payload can
otherwise expand into gigabytes. Overrunning the limit raises
CompressionFailure, a short result raises DecodingFailure.

=============================================================================
INTERNAL STORAGE
=============================================================================

Grids are numpy uint32 arrays of shape (height, width), indexed
grid[y, x], with the writeable flag cleared so a parsed document cannot be
modified through them.

=============================================================================
"""

import base64
import binascii
import io
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np
import zstandard

from .errors import (CompressionFailure, DecodingFailure, DuplicateChunk,
                     InvalidAttributeValue, UnsupportedEncodingCombination)
from .markup import get_int, get_unsigned

ENCODINGS = ('xml', 'csv', 'base64')
COMPRESSIONS = ('none', 'gzip', 'zlib', 'zstd')

# wbits for zlib.decompressobj: zlib header vs. gzip header
_ZLIB_WBITS = zlib.MAX_WBITS
_GZIP_WBITS = 16 + zlib.MAX_WBITS

_GID_DTYPE = np.dtype('<u4')


@dataclass(frozen=True)
class Chunk:
    """
    A rectangular piece of an infinite tile layer.

    x, y is the chunk origin in tile coordinates and may be negative.
    Equality compares the cells too; the hash only covers the geometry.
    """
    x: int
    y: int
    width: int
    height: int
    gids: np.ndarray = field(compare=False, repr=False)   # shape (height, width)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return ((self.x, self.y, self.width, self.height) ==
                (other.x, other.y, other.width, other.height) and
                bool(np.array_equal(self.gids, other.gids)))

    def contains(self, x: int, y: int) -> bool:
        return (self.x <= x < self.x + self.width and
                self.y <= y < self.y + self.height)


def read_encoding(data_elem: ET.Element) -> Tuple[str, str]:
    """
    Return (encoding, compression) with defaults filled in and the
    combination validated.
    """
    encoding = data_elem.get('encoding') or 'xml'
    compression = data_elem.get('compression') or 'none'

    if encoding not in ENCODINGS:
        raise InvalidAttributeValue(data_elem.tag, 'encoding', encoding)
    if compression not in COMPRESSIONS:
        raise InvalidAttributeValue(data_elem.tag, 'compression', compression)
    if compression != 'none' and encoding != 'base64':
        raise UnsupportedEncodingCombination(encoding, compression)
    return encoding, compression


def decode_tile_data(data_elem: ET.Element, width: int, height: int) -> np.ndarray:
    """
    Decode a finite layer's <data> element.

    Parameters:
    -----------
    data_elem : ET.Element
        The <data> element
    width, height : int
        Layer dimensions in tiles; the payload must hold exactly
        width*height cells

    Returns:
    --------
    np.ndarray : read-only uint32 array of shape (height, width)
    """
    encoding, compression = read_encoding(data_elem)
    return decode_payload(data_elem, encoding, compression, width, height)


def decode_chunks(data_elem: ET.Element) -> Dict[Tuple[int, int], Chunk]:
    """
    Decode the <chunk> children of an infinite layer's <data> element.

    Every chunk uses the encoding declared on the parent <data>.

    Returns:
    --------
    dict : (x, y) origin -> Chunk, in document order
    """
    encoding, compression = read_encoding(data_elem)

    chunks: Dict[Tuple[int, int], Chunk] = {}
    for chunk_elem in data_elem.findall('chunk'):
        x = get_int(chunk_elem, 'x', required=True)
        y = get_int(chunk_elem, 'y', required=True)
        width = get_unsigned(chunk_elem, 'width', required=True)
        height = get_unsigned(chunk_elem, 'height', required=True)

        if (x, y) in chunks:
            raise DuplicateChunk(x, y)

        gids = decode_payload(chunk_elem, encoding, compression, width, height)
        chunks[(x, y)] = Chunk(x=x, y=y, width=width, height=height, gids=gids)
    return chunks


def decode_payload(elem: ET.Element, encoding: str, compression: str,
                   width: int, height: int) -> np.ndarray:
    """Decode the cells held by elem (a <data> or a <chunk>)."""
    count = width * height

    if encoding == 'csv':
        gids = _decode_csv(elem.text or '', count)
    elif encoding == 'base64':
        raw = decode_base64(elem.text or '')
        if compression != 'none':
            raw = decompress(raw, compression, count * 4)
        if len(raw) != count * 4:
            raise DecodingFailure(
                f"expected {count * 4} bytes of tile data, got {len(raw)}")
        gids = np.frombuffer(raw, dtype=_GID_DTYPE)
    else:
        gids = _decode_xml_tiles(elem, count)

    grid = gids.astype(np.uint32, copy=True).reshape((height, width))
    grid.setflags(write=False)
    return grid


# =============================================================================
# ENCODINGS
# =============================================================================

def _decode_csv(text: str, count: int) -> np.ndarray:
    # Rows end with a trailing comma, so empty tokens are skipped
    tokens = [token.strip() for token in text.replace('\n', ',').split(',')]
    tokens = [token for token in tokens if token]

    if len(tokens) != count:
        raise DecodingFailure(f"expected {count} CSV values, got {len(tokens)}")

    gids = np.empty(count, dtype=np.uint32)
    for i, token in enumerate(tokens):
        if not (token.isascii() and token.isdigit()):
            raise DecodingFailure(f"invalid CSV tile value {token!r}")
        value = int(token)
        if value > 0xFFFFFFFF:
            raise DecodingFailure(f"CSV tile value {value} does not fit in 32 bits")
        gids[i] = value
    return gids


def decode_base64(text: str) -> bytes:
    """Decode base64 element text (tile data or embedded image bytes)."""
    # Payloads are usually wrapped in newlines and indentation
    compact = ''.join(text.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodingFailure(f"invalid base64 tile data: {e}") from e


def _decode_xml_tiles(elem: ET.Element, count: int) -> np.ndarray:
    tile_elems = elem.findall('tile')
    if len(tile_elems) != count:
        raise DecodingFailure(f"expected {count} <tile> elements, got {len(tile_elems)}")

    gids = np.empty(count, dtype=np.uint32)
    for i, tile_elem in enumerate(tile_elems):
        value = get_unsigned(tile_elem, 'gid', 0)
        if value > 0xFFFFFFFF:
            raise InvalidAttributeValue('tile', 'gid', tile_elem.get('gid'))
        gids[i] = value
    return gids


# =============================================================================
# DECOMPRESSION
# =============================================================================

def decompress(data: bytes, compression: str, limit: int) -> bytes:
    """
    Decompress data, refusing to produce more than limit bytes.

    Parameters:
    -----------
    data : bytes
        Compressed payload (already base64-decoded)
    compression : str
        'gzip', 'zlib' or 'zstd'
    limit : int
        Maximum number of output bytes

    Raises:
    -------
    CompressionFailure : corrupt/truncated stream, or output above limit
    """
    if compression == 'zstd':
        return _decompress_zstd(data, limit)
    if compression == 'gzip':
        return _decompress_deflate(data, _GZIP_WBITS, limit)
    if compression == 'zlib':
        return _decompress_deflate(data, _ZLIB_WBITS, limit)
    raise InvalidAttributeValue('data', 'compression', compression)


def _decompress_deflate(data: bytes, wbits: int, limit: int) -> bytes:
    decompressor = zlib.decompressobj(wbits)
    try:
        # Ask for one byte more than allowed to detect overruns
        result = decompressor.decompress(data, limit + 1)
    except zlib.error as e:
        raise CompressionFailure(f"corrupt compressed tile data: {e}") from e

    if len(result) > limit:
        raise CompressionFailure(f"decompressed tile data exceeds {limit} bytes")
    if not decompressor.eof:
        raise CompressionFailure("truncated compressed tile data")
    return result


def _decompress_zstd(data: bytes, limit: int) -> bytes:
    dctx = zstandard.ZstdDecompressor()
    chunks = []
    total = 0
    try:
        with dctx.stream_reader(io.BytesIO(data)) as reader:
            while True:
                chunk = reader.read(limit + 1 - total)
                if not chunk:
                    break
                chunks.append(chunk)
                total += len(chunk)
                if total > limit:
                    raise CompressionFailure(
                        f"decompressed tile data exceeds {limit} bytes")
    except zstandard.ZstdError as e:
        raise CompressionFailure(f"corrupt compressed tile data: {e}") from e
    return b''.join(chunks)
