"""Key, payload and sizing helpers of the Oceanus cuckoo table."""

from __future__ import annotations

import math
from dataclasses import dataclass

INDEX_SIZE = 8
TABLE_KEY_SIZE = 16
OVERHEAD = TABLE_KEY_SIZE // INDEX_SIZE + (0 if TABLE_KEY_SIZE % INDEX_SIZE == 0 else 1)

EMPTY_PLACEHOLDER = (1 << 64) - 1

BytesLike = bytes | bytearray | memoryview


@dataclass(frozen=True)
class CuckooKey:
    """The two 64-bit hash values that place a key in the two cuckoo tables."""

    h: tuple[int, int] = (EMPTY_PLACEHOLDER, EMPTY_PLACEHOLDER)

    @classmethod
    def from_key(cls, key: BytesLike) -> "CuckooKey":
        """Split a 16-byte key into two little-endian 64-bit hash values."""
        data = bytes(key)
        if len(data) != TABLE_KEY_SIZE:
            raise ValueError(
                f"Invalid source key size: {len(data)} (expected {TABLE_KEY_SIZE})"
            )
        return cls(
            (
                int.from_bytes(data[:INDEX_SIZE], "little"),
                int.from_bytes(data[INDEX_SIZE:], "little"),
            )
        )


def data_length(page_size: int) -> int:
    """Number of 64-bit indices that fit in a page next to the table key."""
    if page_size <= 0 or page_size % INDEX_SIZE != 0:
        raise ValueError(
            f"The page size must be a positive multiple of {INDEX_SIZE}: {page_size}"
        )
    length = page_size // INDEX_SIZE - OVERHEAD
    if length < 0:
        raise ValueError(f"Page size too small to store a key: {page_size}")
    return length


def match_key(payload: BytesLike, key: BytesLike) -> bool:
    """True if *payload* starts with *key*."""
    pl = bytes(payload)
    k = bytes(key)
    if len(pl) <= len(k):
        raise ValueError("Payload too small to store a key")
    return pl[: len(k)] == k


def cuckoo_table_size(n_elements: int, epsilon: float) -> int:
    """Size of each of the two tables holding *n_elements* with slack *epsilon*."""
    return math.ceil((1.0 + epsilon / 2.0) * n_elements)


def is_empty_placeholder(value: int) -> bool:
    """True for the value marking an empty cuckoo slot."""
    return value == EMPTY_PLACEHOLDER