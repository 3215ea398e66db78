import base64
import gzip
import xml.etree.ElementTree as ET
import zlib

import numpy as np
import pytest
import zstandard

from tmx_reader.data import decode_chunks, decode_tile_data, read_encoding
from tmx_reader.errors import (CompressionFailure, DecodingFailure, DuplicateChunk,
                               InvalidAttributeValue, MissingRequiredAttribute,
                               UnsupportedEncodingCombination)

CELLS = [1, 2, 3, 4]


def _raw(values):
    return np.array(values, dtype='<u4').tobytes()


def _base64_data(payload: bytes, compression: str = None) -> ET.Element:
    attrs = 'encoding="base64"'
    if compression:
        attrs += f' compression="{compression}"'
    text = base64.b64encode(payload).decode('ascii')
    return ET.fromstring(f'<data {attrs}>\n   {text}\n</data>')


def test_csv_grid_is_row_major():
    data = ET.fromstring('<data encoding="csv">\n1,2,\n3,4\n</data>')

    grid = decode_tile_data(data, 2, 2)

    assert grid.shape == (2, 2)
    assert grid.dtype == np.uint32
    assert grid[0, 1] == 2
    assert grid[1, 0] == 3


def test_csv_keeps_flip_bits():
    data = ET.fromstring('<data encoding="csv">2147483649,0</data>')

    grid = decode_tile_data(data, 2, 1)

    assert int(grid[0, 0]) == 2147483649


@pytest.mark.parametrize("text", ["1,2,3", "1,2,3,4,5", "1,x,3,4", "1,-2,3,4", "1,4294967296,3,4"])
def test_bad_csv_is_rejected(text):
    with pytest.raises(DecodingFailure):
        decode_tile_data(ET.fromstring(f'<data encoding="csv">{text}</data>'), 2, 2)


def test_xml_tiles_default_to_empty():
    data = ET.fromstring('<data><tile gid="5"/><tile/><tile gid="7"/><tile gid="0"/></data>')

    grid = decode_tile_data(data, 2, 2)

    assert grid.tolist() == [[5, 0], [7, 0]]


def test_xml_tile_count_must_match():
    with pytest.raises(DecodingFailure):
        decode_tile_data(ET.fromstring('<data><tile gid="1"/></data>'), 2, 2)


def test_uncompressed_base64():
    grid = decode_tile_data(_base64_data(_raw(CELLS)), 2, 2)

    assert grid.tolist() == [[1, 2], [3, 4]]


@pytest.mark.parametrize(
    "compression,compress",
    [
        ("zlib", zlib.compress),
        ("gzip", gzip.compress),
        ("zstd", lambda raw: zstandard.ZstdCompressor().compress(raw)),
    ],
)
def test_compressed_base64(compression, compress):
    data = _base64_data(compress(_raw(CELLS)), compression)

    grid = decode_tile_data(data, 2, 2)

    assert grid.tolist() == [[1, 2], [3, 4]]


@pytest.mark.parametrize(
    "compression,compress",
    [
        ("zlib", zlib.compress),
        ("gzip", gzip.compress),
        ("zstd", lambda raw: zstandard.ZstdCompressor().compress(raw)),
    ],
)
def test_oversized_decompression_is_refused(compression, compress):
    # 10000 bytes of output for a layer that needs 16
    data = _base64_data(compress(bytes(10000)), compression)

    with pytest.raises(CompressionFailure):
        decode_tile_data(data, 2, 2)


def test_corrupt_zlib_stream():
    with pytest.raises(CompressionFailure):
        decode_tile_data(_base64_data(b'not a zlib stream', 'zlib'), 2, 2)


def test_truncated_zlib_stream():
    payload = zlib.compress(_raw(CELLS))[:-4]

    with pytest.raises(CompressionFailure):
        decode_tile_data(_base64_data(payload, 'zlib'), 2, 2)


def test_short_payload_is_rejected():
    with pytest.raises(DecodingFailure):
        decode_tile_data(_base64_data(_raw([1, 2, 3])), 2, 2)


def test_invalid_base64_is_rejected():
    with pytest.raises(DecodingFailure):
        decode_tile_data(ET.fromstring('<data encoding="base64">@@@@</data>'), 1, 1)


def test_decoded_grid_is_read_only():
    grid = decode_tile_data(_base64_data(_raw(CELLS)), 2, 2)

    with pytest.raises(ValueError):
        grid[0, 0] = 9


@pytest.mark.parametrize(
    "attrs",
    ['encoding="csv" compression="gzip"', 'compression="zlib"'],
)
def test_compression_needs_base64(attrs):
    with pytest.raises(UnsupportedEncodingCombination):
        read_encoding(ET.fromstring(f'<data {attrs}/>'))


@pytest.mark.parametrize(
    "attrs",
    ['encoding="hex"', 'encoding="base64" compression="lzma"'],
)
def test_unknown_encoding_names(attrs):
    with pytest.raises(InvalidAttributeValue):
        read_encoding(ET.fromstring(f'<data {attrs}/>'))


def test_defaults_when_attributes_absent():
    assert read_encoding(ET.fromstring('<data/>')) == ('xml', 'none')


def test_chunks_are_keyed_by_origin():
    data = ET.fromstring(
        '<data encoding="csv">'
        '<chunk x="-16" y="0" width="2" height="1">1,2</chunk>'
        '<chunk x="0" y="0" width="2" height="1">3,4</chunk>'
        '</data>'
    )

    chunks = decode_chunks(data)

    assert list(chunks) == [(-16, 0), (0, 0)]
    assert chunks[(-16, 0)].gids.tolist() == [[1, 2]]
    assert chunks[(0, 0)].contains(1, 0)
    assert not chunks[(0, 0)].contains(2, 0)


def test_duplicate_chunk_origin():
    data = ET.fromstring(
        '<data encoding="csv">'
        '<chunk x="0" y="0" width="1" height="1">1</chunk>'
        '<chunk x="0" y="0" width="1" height="1">2</chunk>'
        '</data>'
    )

    with pytest.raises(DuplicateChunk) as excinfo:
        decode_chunks(data)

    assert (excinfo.value.x, excinfo.value.y) == (0, 0)


def test_chunk_needs_its_size():
    data = ET.fromstring('<data encoding="csv"><chunk x="0" y="0" width="1">1</chunk></data>')

    with pytest.raises(MissingRequiredAttribute):
        decode_chunks(data)
