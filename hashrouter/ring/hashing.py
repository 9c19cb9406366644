import hashlib
import zlib
from typing import Callable

# Maps an arbitrary byte string to an unsigned position on the ring
HashFunction = Callable[[bytes], int]

RING_BITS = 32
MAX_POSITION = 2**RING_BITS - 1


def md5_hash(data: bytes) -> int:
    """First 4 bytes of the MD5 digest as a big-endian unsigned int"""
    digest = hashlib.md5(data, usedforsecurity=False).digest()
    return int.from_bytes(digest[:4], byteorder="big")


def sha256_hash(data: bytes) -> int:
    """First 4 bytes of the SHA-256 digest as a big-endian unsigned int"""
    digest = hashlib.sha256(data).digest()
    return int.from_bytes(digest[:4], byteorder="big")


def crc32_hash(data: bytes) -> int:
    return zlib.crc32(data) & MAX_POSITION


HASH_FUNCTIONS: dict[str, HashFunction] = {
    "md5": md5_hash,
    "sha256": sha256_hash,
    "crc32": crc32_hash,
}


def get_hash_function(name: str) -> HashFunction:
    """Resolve a hash function by its registry name"""
    try:
        return HASH_FUNCTIONS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown hash function: {name} (expected one of {sorted(HASH_FUNCTIONS)})"
        ) from None
