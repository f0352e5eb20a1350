"""Oceanus: a cuckoo table tuned for searchable-encryption storage.

Keys are large random 16-byte strings, split into the two cuckoo hash
values. Each value is a block of 64-bit document indices that fills a
storage page together with its key.
"""

from __future__ import annotations

import struct
from typing import Callable, Sequence

from .cuckoo import CuckooHashTable
from .logger import get_logger
from .oceanus_types import INDEX_SIZE, TABLE_KEY_SIZE, CuckooKey, data_length

_U64_MAX = (1 << 64) - 1

BytesLike = bytes | bytearray | memoryview


def _check_key(key: BytesLike) -> bytes:
    data = bytes(key)
    if len(data) != TABLE_KEY_SIZE:
        raise ValueError(
            f"Invalid table key size: {len(data)} (expected {TABLE_KEY_SIZE})"
        )
    return data


class OceanusKeySerializer:
    """Serializes 16-byte table keys as themselves."""

    def serialization_length(self) -> int:
        """Length in bytes of a serialized key."""
        return TABLE_KEY_SIZE

    def serialize(self, key: BytesLike) -> bytes:
        """Return the serialized form of *key*."""
        return _check_key(key)


class OceanusCuckooHasher:
    """Maps a 16-byte table key to its two cuckoo hash values."""

    def __call__(self, key: BytesLike) -> CuckooKey:
        return CuckooKey.from_key(_check_key(key))


class OceanusContentSerializer:
    """Serializes a block of 64-bit indices filling a page next to its key."""

    def __init__(self, page_size: int) -> None:
        self.page_size = page_size
        self.length = data_length(page_size)
        self._struct = struct.Struct(f"<{self.length}Q")

    def serialization_length(self) -> int:
        """Length in bytes of a serialized block."""
        return self._struct.size

    def serialize(self, value: Sequence[int]) -> bytes:
        """Pack *value* as little-endian 64-bit unsigned integers."""
        items = list(value)
        if len(items) != self.length:
            raise ValueError(
                f"Invalid content length: {len(items)} (expected {self.length})"
            )
        for item in items:
            if not 0 <= item <= _U64_MAX:
                raise ValueError(f"Index out of the 64-bit range: {item}")
        return self._struct.pack(*items)

    def deserialize(self, buffer: BytesLike) -> list[int]:
        """Unpack a block of indices from the start of *buffer*."""
        data = bytes(buffer)
        if len(data) < self._struct.size:
            raise ValueError(
                f"Buffer too short: {len(data)} bytes "
                f"(expected {self._struct.size})"
            )
        return list(self._struct.unpack_from(data))


class Oceanus:
    """Read access to an Oceanus table stored at *db_path*."""

    def __init__(self, db_path, page_size: int) -> None:
        if page_size % INDEX_SIZE != 0:
            raise ValueError(
                f"The page size must be a multiple of {INDEX_SIZE}: {page_size}"
            )
        self.page_size = page_size
        self.content_serializer = OceanusContentSerializer(page_size)
        self.cuckoo_table = CuckooHashTable(
            db_path,
            page_size,
            OceanusKeySerializer(),
            self.content_serializer,
            OceanusCuckooHasher(),
        )
        get_logger().info("Oceanus server initialization succeeded!")

    def get(self, key: BytesLike) -> list[int]:
        """Return the block stored under *key*; raise KeyError if absent."""
        return self.cuckoo_table.get(key)

    def async_get(
        self, key: BytesLike, callback: Callable[[list[int] | None], None]
    ) -> None:
        """Look *key* up asynchronously; *callback* gets the block or None."""
        self.cuckoo_table.use_direct_io(True)
        self.cuckoo_table.async_get(key, callback)

    def close(self) -> None:
        """Wait for pending lookups and close the table file."""
        self.cuckoo_table.close()