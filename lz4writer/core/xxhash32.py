# Author: Futhark1393
# Description: XXH32 specialised for exactly 10 input bytes (seed 0).
# Used to stamp the LZ4 frame header checksum after the header is patched.

import struct

PRIME32_1 = 2654435761
PRIME32_2 = 2246822519
PRIME32_3 = 3266489917
PRIME32_4 = 668265263
PRIME32_5 = 374761393

_MASK32 = 0xFFFFFFFF


def _rotl32(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _MASK32


def xxh32_hash10(data: bytes) -> int:
    """
    Hash exactly 10 bytes with XXH32, seed 0.

    Inputs shorter than 16 bytes skip the stripe loop, so only the
    finalisation path runs: two 4-byte lanes, two single bytes, avalanche.
    The result equals the general XXH32 of the same bytes.

    Raises ValueError if *data* is not 10 bytes long.
    """
    if len(data) != 10:
        raise ValueError(f"xxh32_hash10 needs exactly 10 bytes, got {len(data)}")

    w0, w1 = struct.unpack_from("<II", data, 0)

    h = (PRIME32_5 + 10) & _MASK32
    h = (h + w0 * PRIME32_3) & _MASK32
    h = (_rotl32(h, 17) * PRIME32_4) & _MASK32
    h = (h + w1 * PRIME32_3) & _MASK32
    h = (_rotl32(h, 17) * PRIME32_4) & _MASK32

    h = (h + data[8] * PRIME32_5) & _MASK32
    h = (_rotl32(h, 11) * PRIME32_1) & _MASK32
    h = (h + data[9] * PRIME32_5) & _MASK32
    h = (_rotl32(h, 11) * PRIME32_1) & _MASK32

    h ^= h >> 15
    h = (h * PRIME32_2) & _MASK32
    h ^= h >> 13
    h = (h * PRIME32_3) & _MASK32
    h ^= h >> 16
    return h
