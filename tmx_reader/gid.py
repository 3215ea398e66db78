"""
Global tile ID (GID) bit layout

=============================================================================
BIT LAYOUT
=============================================================================

Every tile reference in a TMX file is an unsigned 32-bit integer:

    bit 31  30  29  28 ......................... 0
        H   V   D   |<------- raw tile id ------->|

    H = flipped horizontally
    V = flipped vertically
    D = flipped diagonally (swap x/y, used for 90 degree rotations)

A raw id of 0 means "no tile", whatever the flag bits say.

Tiled 1.9 reuses bit 28 for a 120 degree rotation of hexagonal tiles. We do
not interpret it; it stays part of the raw id, so a map that uses it will
simply resolve to a tile id out of range.

=============================================================================
"""

from typing import NamedTuple

GID_FLIP_HORIZONTAL = 1 << 31
GID_FLIP_VERTICAL = 1 << 30
GID_FLIP_DIAGONAL = 1 << 29
GID_FLAGS_MASK = GID_FLIP_HORIZONTAL | GID_FLIP_VERTICAL | GID_FLIP_DIAGONAL
GID_ID_MASK = GID_FLIP_DIAGONAL - 1      # low 29 bits
GID_MAX = (1 << 32) - 1


class DecodedGid(NamedTuple):
    raw_id: int
    flipped_horizontally: bool = False
    flipped_vertically: bool = False
    flipped_diagonally: bool = False

    @property
    def is_empty(self) -> bool:
        return self.raw_id == 0


EMPTY_GID = DecodedGid(0)


def decode_gid(gid: int) -> DecodedGid:
    """
    Split a 32-bit GID into its raw id and flip flags.

    Flags on an empty cell (raw id 0) are dropped so every empty cell
    decodes to the same value.
    """
    if not 0 <= gid <= GID_MAX:
        raise ValueError(f"GID {gid} does not fit in 32 bits")

    raw_id = gid & GID_ID_MASK
    if raw_id == 0:
        return EMPTY_GID
    if gid < GID_FLIP_DIAGONAL:
        # Fast path: no flag bits set (the common case)
        return DecodedGid(raw_id)
    return DecodedGid(
        raw_id,
        bool(gid & GID_FLIP_HORIZONTAL),
        bool(gid & GID_FLIP_VERTICAL),
        bool(gid & GID_FLIP_DIAGONAL),
    )


def encode_gid(raw_id: int, flipped_horizontally: bool = False,
               flipped_vertically: bool = False,
               flipped_diagonally: bool = False) -> int:
    """Inverse of decode_gid. A raw id of 0 always encodes to 0."""
    if not 0 <= raw_id <= GID_ID_MASK:
        raise ValueError(f"raw tile id {raw_id} does not fit in 29 bits")
    if raw_id == 0:
        return 0

    gid = raw_id
    if flipped_horizontally:
        gid |= GID_FLIP_HORIZONTAL
    if flipped_vertically:
        gid |= GID_FLIP_VERTICAL
    if flipped_diagonally:
        gid |= GID_FLIP_DIAGONAL
    return gid


def raw_id_of(gid: int) -> int:
    return gid & GID_ID_MASK
