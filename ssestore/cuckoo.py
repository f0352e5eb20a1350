"""Read side of a two-table cuckoo hash table stored in a single file.

The file holds ``2 * n`` fixed-size payloads: the first ``n`` form table 0,
the last ``n`` table 1. Each payload is the serialized key followed by the
serialized value; empty slots are filled with 0xFF bytes. A key is looked up
at ``h[0] % n`` in table 0, then at ``h[1] % n`` in table 1.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

from .awonvm_vector import AwonvmVector, GetRequest
from .logger import get_logger
from .oceanus_types import cuckoo_table_size, match_key


@dataclass
class CuckooBuilderParam:
    """Parameters of a cuckoo table construction."""

    value_file_path: str
    cuckoo_table_path: str
    max_n_elements: int
    epsilon: float
    max_search_depth: int

    def table_size(self) -> int:
        """Number of slots of each of the two tables."""
        return cuckoo_table_size(self.max_n_elements, self.epsilon)


class CuckooHashTable:
    """Committed cuckoo hash table, readable synchronously or asynchronously.

    *key_serializer* and *value_serializer* provide ``serialization_length()``
    and ``serialize``; the value serializer also provides ``deserialize``.
    *hasher* maps a key to a :class:`~ssestore.oceanus_types.CuckooKey`.
    """

    def __init__(
        self, path, page_size: int, key_serializer, value_serializer, hasher
    ) -> None:
        self.key_serializer = key_serializer
        self.value_serializer = value_serializer
        self.hasher = hasher
        self.key_size = key_serializer.serialization_length()
        self.value_size = value_serializer.serialization_length()
        self.payload_size = self.key_size + self.value_size
        if page_size <= 0 or self.payload_size % page_size != 0:
            raise ValueError("Cuckoo payload size incompatible with the page size")

        self._table = AwonvmVector(path, self.payload_size, direct_io=False)
        if not self._table.is_committed():
            self._table.close()
            raise RuntimeError("Table not committed")

        size = len(self._table)
        if size % 2 != 0:
            self._table.close()
            raise RuntimeError("Invalid Cuckoo table size")
        self.table_size = size // 2

        log = get_logger()
        log.info("Cuckoo hash table initialization succeeded!")
        log.info("Table size: %d", self.table_size)

    def _locations(self, key) -> tuple[int, int, bytes]:
        search_key = self.hasher(key)
        ser_key = bytes(self.key_serializer.serialize(key))
        loc_0 = search_key.h[0] % self.table_size
        loc_1 = self.table_size + search_key.h[1] % self.table_size
        return loc_0, loc_1, ser_key

    def get(self, key) -> Any:
        """Return the value stored under *key*; raise KeyError if absent."""
        loc_0, loc_1, ser_key = self._locations(key)
        for loc in (loc_0, loc_1):
            payload = self._table.get(loc)
            if match_key(payload, ser_key):
                return self.value_serializer.deserialize(payload[self.key_size :])
        raise KeyError("Key not found")

    def async_get(self, key, callback: Callable[[Any], None]) -> None:
        """Look *key* up asynchronously; *callback* gets the value or None."""
        loc_0, loc_1, ser_key = self._locations(key)
        lock = threading.Lock()
        found: list[bytes] = []
        completed = [0]

        def inner(payload: bytes | None) -> None:
            with lock:
                if payload is not None and match_key(payload, ser_key):
                    found.append(payload)
                completed[0] += 1
                done = completed[0] == 2
            if done:
                if found:
                    callback(
                        self.value_serializer.deserialize(found[0][self.key_size :])
                    )
                else:
                    callback(None)

        self._table.async_gets([GetRequest(loc_0, inner), GetRequest(loc_1, inner)])

    def use_direct_io(self, flag: bool) -> None:
        """Switch the table file to or from direct (uncached) access."""
        self._table.set_use_direct_access(flag)

    def close(self) -> None:
        """Wait for pending reads and close the table file."""
        self._table.close()