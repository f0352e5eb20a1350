"""Persistent map from keys to 32-bit unsigned counters."""

from __future__ import annotations

import os
import sqlite3
import struct
import threading

from .logger import get_logger
from .utils import hex_string

_U32_MAX = 0xFFFFFFFF
_VALUE = struct.Struct("<I")


def _key_bytes(key: bytes | bytearray | str) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


def _check_u32(value: int) -> int:
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"Counter value out of the 32-bit range: {value}")
    return value


class CounterStore:
    """On-disk counter map, stored in a single database file.

    Keys may be bytes or strings (strings are UTF-8 encoded). Values are
    unsigned 32-bit integers and wrap around on increment.
    """

    def __init__(self, path) -> None:
        self.path = os.fspath(path)
        self._lock = threading.Lock()
        conn = None
        try:
            conn = sqlite3.connect(
                self.path, isolation_level=None, check_same_thread=False
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                "CREATE TABLE IF NOT EXISTS counters "
                "(key BLOB PRIMARY KEY, value BLOB NOT NULL)"
            )
        except sqlite3.Error as err:
            if conn is not None:
                conn.close()
            get_logger().critical("Unable to open the database:\n %s", err)
            raise RuntimeError(
                f"Unable to open the database located at {self.path}"
            ) from err
        self._conn: sqlite3.Connection | None = conn

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("The counter store is closed")
        return self._conn

    def _read(self, key: bytes) -> int | None:
        row = (
            self._connection()
            .execute("SELECT value FROM counters WHERE key = ?", (key,))
            .fetchone()
        )
        if row is None:
            return None
        return _VALUE.unpack(bytes(row[0])[: _VALUE.size])[0]

    def _write(self, key: bytes, value: int) -> None:
        self._connection().execute(
            "INSERT OR REPLACE INTO counters (key, value) VALUES (?, ?)",
            (key, _VALUE.pack(value)),
        )

    def get(self, key) -> int | None:
        """Return the counter stored under *key*, or None if there is none."""
        k = _key_bytes(key)
        with self._lock:
            value = self._read(k)
        get_logger().debug(
            "Get: %s\nStatus: %s", hex_string(k), "OK" if value is not None else "NotFound"
        )
        return value

    def get_and_increment(self, key) -> int:
        """Increment the counter (starting at 0 if absent) and return its new value."""
        k = _key_bytes(key)
        with self._lock:
            current = self._read(k)
            value = 0 if current is None else (current + 1) & _U32_MAX
            self._write(k, value)
        get_logger().debug(
            "Get and increment: %s\nStatus: %s",
            hex_string(k),
            "OK" if current is not None else "NotFound",
        )
        return value

    def increment(self, key, default_value: int = 0) -> int:
        """Increment the counter, or set it to *default_value* if absent.

        Returns the stored value.
        """
        _check_u32(default_value)
        k = _key_bytes(key)
        with self._lock:
            current = self._read(k)
            value = default_value if current is None else (current + 1) & _U32_MAX
            self._write(k, value)
        return value

    def set(self, key, value: int) -> None:
        """Store *value* under *key*."""
        _check_u32(value)
        with self._lock:
            self._write(_key_bytes(key), value)

    def remove_key(self, key) -> None:
        """Delete *key*; deleting a missing key is not an error."""
        with self._lock:
            self._connection().execute(
                "DELETE FROM counters WHERE key = ?", (_key_bytes(key),)
            )

    def flush(self, blocking: bool = True) -> None:
        """Push pending writes to the main database file."""
        mode = "FULL" if blocking else "PASSIVE"
        try:
            with self._lock:
                self._connection().execute(f"PRAGMA wal_checkpoint({mode})")
        except sqlite3.Error as err:
            get_logger().error("DB Flush failed: %s", err)

    def approximate_size(self) -> int:
        """Number of keys in the store."""
        with self._lock:
            return self._connection().execute(
                "SELECT COUNT(*) FROM counters"
            ).fetchone()[0]

    def close(self) -> None:
        """Close the store; further operations raise RuntimeError."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "CounterStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()