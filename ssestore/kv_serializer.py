"""Streaming serialization of key/value pairs.

The record format is delegated to an inner codec: a serializer provides
``serialize_key_value(stream, key, value)`` and a deserializer provides
``deserialize_key_value(stream)`` returning a ``(key, value)`` pair.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import IO, Any, Iterable, Iterator


class KVSerializer:
    """Writes key/value pairs to *stream* through the *inner* serializer."""

    def __init__(self, stream: IO, inner) -> None:
        self.stream = stream
        self.inner = inner

    def serialize(self, key, value) -> None:
        """Write one key/value pair."""
        self.inner.serialize_key_value(self.stream, key, value)

    def serialize_pair(self, kv) -> None:
        """Write a pair given as a ``(key, value)`` tuple or an object with
        ``key`` and ``value`` attributes."""
        try:
            key, value = kv.key, kv.value
        except AttributeError:
            key, value = kv
        self.serialize(key, value)

    def serialize_iterable(self, data: Iterable | Mapping) -> None:
        """Write every pair of *data* (a mapping or an iterable of pairs)."""
        items = data.items() if isinstance(data, Mapping) else data
        for kv in items:
            self.serialize_pair(kv)


def _at_end(stream: IO) -> bool:
    peek = getattr(stream, "peek", None)
    if peek is not None:
        return not peek(1)
    if stream.seekable():
        position = stream.tell()
        probe = stream.read(1)
        stream.seek(position)
        return not probe
    raise TypeError("The stream must support peek() or seeking")


def deserialize(stream: IO, deserializer) -> Iterator[tuple[Any, Any]]:
    """Yield the key/value pairs read from *stream* until its end."""
    while not _at_end(stream):
        key, value = deserializer.deserialize_key_value(stream)
        yield key, value


def deserialize_map(stream: IO, deserializer) -> dict:
    """Read every pair from *stream* into a dict ordered by key.

    When a key occurs several times, the last value wins.
    """
    result = dict(deserialize(stream, deserializer))
    return dict(sorted(result.items()))