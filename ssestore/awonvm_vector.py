"""Append-only, write-once vector of fixed-size records stored in a file.

Records are written with :meth:`AwonvmVector.push_back` (or its
asynchronous counterpart) until :meth:`AwonvmVector.commit` is called;
afterwards the vector is read-only. Opening a non-empty file gives an
already committed vector.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Callable, Iterable

from .logger import get_logger
from .scheduler import (
    ReadSubmission,
    Scheduler,
    _aligned_pread,
    _aligned_pwrite,
    make_default_scheduler,
)
from .utils import file_size, open_fd

GetCallback = Callable[["bytes | None"], None]

_BUFFERED_WARNING = (
    "awonvm_vector uses buffered IOs. Calls for async IOs will be synchronous."
)


@dataclass(frozen=True)
class GetRequest:
    """An asynchronous read of the record at *index*."""

    index: int
    callback: GetCallback


class AwonvmVector:
    """Vector of *value_size*-byte records persisted at *path*."""

    def __init__(
        self,
        path,
        value_size: int,
        scheduler: Scheduler | None = None,
        direct_io: bool = False,
    ) -> None:
        if value_size <= 0:
            raise ValueError(f"Invalid value size: {value_size}")
        self.path = os.fspath(path)
        self.value_size = value_size
        self._direct_io = direct_io
        self._fd: int | None = open_fd(self.path, direct_io)
        try:
            self.device_page_size = Scheduler.async_io_page_size(self._fd)
            self._scheduler = (
                scheduler
                if scheduler is not None
                else make_default_scheduler(self.device_page_size)
            )
            current_size = file_size(self._fd)
        except BaseException:
            os.close(self._fd)
            raise

        self._lock = threading.Lock()
        self._size = 0
        self._committed = False
        self._warned = False

        log = get_logger()
        if self.device_page_size == 0:
            log.warning(
                "Unable to read page size for file %s. Async IOs will "
                "most likely be blocking.",
                self.path,
            )
        elif value_size % self.device_page_size != 0:
            log.warning(
                "Device page size for file %s (%d bytes) is not aligned with "
                "the value size (%d bytes). Async IOs will most likely be "
                "blocking.",
                self.path,
                self.device_page_size,
                value_size,
            )

        if current_size > 0:
            self._committed = True
            self._size = current_size // value_size

    def _open_fd(self) -> int:
        if self._fd is None:
            raise RuntimeError("The vector is closed")
        return self._fd

    def _next_position(self) -> int:
        with self._lock:
            pos = self._size
            self._size += 1
        return pos

    def _check_value(self, value) -> bytes:
        data = bytes(value)
        if len(data) != self.value_size:
            raise ValueError(
                f"Invalid value length: {len(data)} (expected {self.value_size})"
            )
        return data

    def _check_index(self, index: int) -> None:
        size = len(self)
        if index < 0 or index > size:
            raise ValueError(f"Index ({index}) out of bounds (size={size})")

    def _check_readable(self) -> None:
        if not self._committed:
            raise RuntimeError("Invalid state during read: the vector is not committed")

    def _warn_buffered(self) -> None:
        if not self._direct_io and not self._warned:
            get_logger().warning(_BUFFERED_WARNING)
            self._warned = True

    def __len__(self) -> int:
        return self._size

    def is_committed(self) -> bool:
        """True once the vector is read-only."""
        return self._committed

    def use_direct_access(self) -> bool:
        """True if the file is accessed bypassing the page cache."""
        return self._direct_io

    def reserve(self, n: int) -> None:
        """Pre-allocate room for *n* records (only before commit)."""
        fd = self._open_fd()
        if not self._committed and n > len(self):
            try:
                os.ftruncate(fd, n * self.value_size)
            except OSError as err:
                get_logger().warning(
                    "Unable to reserve space for awonvm_vector. "
                    "ftruncate failed. Error: %s",
                    err.strerror,
                )

    def push_back(self, value) -> int:
        """Append *value* synchronously and return its position."""
        fd = self._open_fd()
        if self._committed:
            raise RuntimeError("Invalid state during write: the vector is committed")
        data = self._check_value(value)
        pos = self._next_position()
        try:
            written = _aligned_pwrite(fd, data, pos * self.value_size)
        except OSError as err:
            raise RuntimeError(f"Error during pwrite: {err}") from err
        if written != self.value_size:
            raise RuntimeError(f"Error during pwrite: {written}")
        return pos

    def async_push_back(self, value) -> int:
        """Queue the append of *value* and return its position."""
        fd = self._open_fd()
        if self._committed:
            raise RuntimeError("Invalid state during write: the vector is committed")
        data = self._check_value(value)
        self._warn_buffered()
        pos = self._next_position()
        ret = self._scheduler.submit_pwrite(
            fd, data, pos * self.value_size, None, lambda _data, _written: None
        )
        if ret != 1:
            raise RuntimeError(f"Error when submitting the write async IO: {ret}")
        return pos

    def commit(self) -> None:
        """Wait for pending writes and make the vector read-only."""
        self._open_fd()
        if not self._committed:
            self._scheduler.wait_completions()
            self._scheduler = self._scheduler.duplicate()
        self._committed = True

    def get(self, index: int) -> bytes:
        """Read the record at *index*."""
        fd = self._open_fd()
        self._check_index(index)
        self._check_readable()
        try:
            data = _aligned_pread(fd, self.value_size, index * self.value_size)
        except OSError as err:
            raise RuntimeError(f"Error during pread: {err}") from err
        if len(data) != self.value_size:
            raise RuntimeError(f"Error during pread: {len(data)}")
        return data

    def _wrap(self, callback: GetCallback):
        value_size = self.value_size

        def inner(_data, payload) -> None:
            if payload is not None and len(payload) == value_size:
                callback(payload)
            else:
                callback(None)

        return inner

    def async_get(self, index: int, callback: GetCallback) -> None:
        """Read the record at *index*; *callback* gets it, or None on failure."""
        fd = self._open_fd()
        self._check_readable()
        self._warn_buffered()
        self._check_index(index)
        ret = self._scheduler.submit_pread(
            fd, self.value_size, index * self.value_size, None, self._wrap(callback)
        )
        if ret != 1:
            raise RuntimeError(f"Error when submitting the read async IO: {ret}")

    def async_gets(self, requests: Iterable[GetRequest]) -> None:
        """Submit several asynchronous reads at once."""
        fd = self._open_fd()
        self._check_readable()
        self._warn_buffered()
        submissions = []
        for req in requests:
            self._check_index(req.index)
            submissions.append(
                ReadSubmission(
                    fd,
                    self.value_size,
                    req.index * self.value_size,
                    None,
                    self._wrap(req.callback),
                )
            )
        ret = self._scheduler.submit_preads(submissions)
        if ret != len(submissions):
            raise RuntimeError(f"Error when submitting the read async IO: {ret}")

    def set_use_direct_access(self, flag: bool) -> None:
        """Reopen the file with or without direct (uncached) access."""
        fd = self._open_fd()
        if flag == self._direct_io:
            return
        self._scheduler.wait_completions()
        os.close(fd)
        self._fd = None
        self._fd = open_fd(self.path, flag)
        self._scheduler = self._scheduler.duplicate()
        self._direct_io = flag
        self._warned = False

    def close(self) -> None:
        """Commit if needed, wait for pending IOs and close the file."""
        if self._fd is None:
            return
        if not self._committed:
            self.commit()
        self._scheduler.wait_completions()
        os.close(self._fd)
        self._fd = None

    def __enter__(self) -> "AwonvmVector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()