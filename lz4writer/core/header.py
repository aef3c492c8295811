# Author: Futhark1393
# Description: LZ4 frame header patching.
# Stores the content size in an already-emitted frame header and
# recomputes the header checksum byte (see lz4_Frame_format.md).

import struct

from lz4writer.core.xxhash32 import xxh32_hash10

LZ4_MAGIC = 0x184D2204

# magic(4) + FLG(1) + BD(1) + content size(8) + HC(1)
HEADER_SIZE = 15

FLG_OFFSET = 4
CONTENT_SIZE_OFFSET = 6
CHECKSUM_OFFSET = 14
FLG_CONTENT_SIZE = 0x08

_MAX_CONTENT_SIZE = 1 << 64


def header_checksum(descriptor) -> int:
    """Return the frame descriptor checksum byte: bits 8..15 of XXH32."""
    return (xxh32_hash10(bytes(descriptor)) >> 8) & 0xFF


def fix_frame_header(header: bytearray, content_size: int) -> bool:
    """
    Set the Content Size flag, store *content_size* and re-stamp the checksum.

    Preconditions, checked before anything is modified:
        - the buffer holds at least HEADER_SIZE bytes
        - bytes 0..3 are the LZ4 frame magic
        - the Content Size flag is clear (header not already patched)
        - content_size fits in 64 bits

    Returns False, leaving *header* untouched, if any precondition fails.
    """
    if len(header) < HEADER_SIZE:
        return False
    if struct.unpack_from("<I", header, 0)[0] != LZ4_MAGIC:
        return False
    if header[FLG_OFFSET] & FLG_CONTENT_SIZE:
        return False
    if not 0 <= content_size < _MAX_CONTENT_SIZE:
        return False

    header[FLG_OFFSET] |= FLG_CONTENT_SIZE
    struct.pack_into("<Q", header, CONTENT_SIZE_OFFSET, content_size)
    header[CHECKSUM_OFFSET] = header_checksum(header[FLG_OFFSET:CHECKSUM_OFFSET])
    return True
