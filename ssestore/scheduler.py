"""Asynchronous positional IO schedulers.

A scheduler accepts read and write queries together with a callback and
returns immediately. The callback runs on one of the scheduler's threads
once the query completes:

* a read callback receives ``(data, payload)`` where ``payload`` holds the
  bytes actually read (possibly fewer than requested), or None on error;
* a write callback receives ``(data, written)`` where ``written`` is the
  number of bytes written, or a negative errno value on error.

``data`` is the opaque object handed over by the caller at submission time.
Once ``wait_completions()`` has been called, the scheduler accepts no new
queries.
"""

from __future__ import annotations

import abc
import errno
import mmap
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .logger import get_logger
from .utils import device_page_size

EINVAL_UNALIGNED_BUFFER = 1024
EINVAL_UNALIGNED_ACCESS = 1025
EINVAL_BUFFERSIZE = 1026
EINVAL_INVALID_STATE = 1027

SchedulerCallback = Callable[[Any, Any], None]


def _aligned_buffer_size(length: int) -> int:
    page = mmap.PAGESIZE
    return max(page, -(-length // page) * page)


def _aligned_pread(fd: int, length: int, offset: int) -> bytes:
    """Read up to *length* bytes at *offset* through a page-aligned buffer."""
    if length == 0:
        return b""
    if not hasattr(os, "preadv"):
        return os.pread(fd, length, offset)
    with mmap.mmap(-1, _aligned_buffer_size(length)) as buf:
        with memoryview(buf) as view, view[:length] as chunk:
            n = os.preadv(fd, [chunk], offset)
        return buf[:n]


def _aligned_pwrite(fd: int, data: bytes, offset: int) -> int:
    """Write *data* at *offset* through a page-aligned buffer."""
    length = len(data)
    if length == 0:
        return 0
    if not hasattr(os, "pwritev"):
        return os.pwrite(fd, data, offset)
    with mmap.mmap(-1, _aligned_buffer_size(length)) as buf:
        buf[:length] = data
        with memoryview(buf) as view, view[:length] as chunk:
            return os.pwritev(fd, [chunk], offset)


@dataclass(frozen=True)
class ReadSubmission:
    """One read query for :meth:`Scheduler.submit_preads`."""

    fd: int
    length: int
    offset: int
    data: Any
    callback: SchedulerCallback


class Scheduler(abc.ABC):
    """Interface of asynchronous IO schedulers.

    Submission methods return 1 when the query was accepted, and an error
    code otherwise.
    """

    @abc.abstractmethod
    def wait_completions(self) -> None:
        """Block until every submitted query has completed."""

    @abc.abstractmethod
    def submit_pread(
        self, fd: int, length: int, offset: int, data: Any, callback: SchedulerCallback
    ) -> int:
        """Queue a read of *length* bytes at *offset*."""

    def submit_preads(self, submissions: Iterable[ReadSubmission]) -> int:
        """Queue several reads; return how many were accepted."""
        return sum(
            1
            for sub in submissions
            if self.submit_pread(sub.fd, sub.length, sub.offset, sub.data, sub.callback)
            == 1
        )

    @abc.abstractmethod
    def submit_pwrite(
        self, fd: int, buf: bytes, offset: int, data: Any, callback: SchedulerCallback
    ) -> int:
        """Queue a write of *buf* at *offset*."""

    @abc.abstractmethod
    def duplicate(self) -> "Scheduler":
        """Return a fresh scheduler of the same kind and settings."""

    @staticmethod
    def async_io_page_size(fd: int) -> int:
        """Page size to align asynchronous IOs on for *fd*, or 0 if unknown."""
        try:
            return device_page_size(fd)
        except OSError:
            return 0


class ThreadPoolScheduler(Scheduler):
    """Scheduler running blocking positional IOs on a pool of threads."""

    def __init__(self, max_workers: int | None = None) -> None:
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ssestore-io"
        )
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._closed = False

    def _run(self, job: Callable[[], None]) -> None:
        try:
            job()
        except Exception:
            get_logger().exception("Asynchronous IO callback failed")
        finally:
            with self._lock:
                self._pending -= 1
                if self._pending == 0:
                    self._idle.notify_all()

    def _submit(self, job: Callable[[], None]) -> int:
        with self._lock:
            if self._closed:
                return EINVAL_INVALID_STATE
            self._pending += 1
        try:
            self._executor.submit(self._run, job)
        except RuntimeError:
            with self._lock:
                self._pending -= 1
                self._idle.notify_all()
            return EINVAL_INVALID_STATE
        return 1

    def wait_completions(self) -> None:
        with self._lock:
            self._closed = True
            self._idle.wait_for(lambda: self._pending == 0)
        self._executor.shutdown(wait=True)

    def submit_pread(
        self, fd: int, length: int, offset: int, data: Any, callback: SchedulerCallback
    ) -> int:
        if length < 0 or offset < 0:
            return errno.EINVAL

        def job() -> None:
            try:
                payload: bytes | None = _aligned_pread(fd, length, offset)
            except OSError as err:
                get_logger().error("Asynchronous pread failed: %s", err)
                payload = None
            callback(data, payload)

        return self._submit(job)

    def submit_pwrite(
        self, fd: int, buf: bytes, offset: int, data: Any, callback: SchedulerCallback
    ) -> int:
        if offset < 0:
            return errno.EINVAL
        payload = bytes(buf)

        def job() -> None:
            try:
                written = _aligned_pwrite(fd, payload, offset)
            except OSError as err:
                get_logger().error("Asynchronous pwrite failed: %s", err)
                written = -(err.errno or errno.EIO)
            callback(data, written)

        return self._submit(job)

    def duplicate(self) -> "ThreadPoolScheduler":
        return ThreadPoolScheduler(self.max_workers)


def make_default_scheduler(page_size: int = 0) -> Scheduler:
    """Return the default asynchronous IO scheduler."""
    return ThreadPoolScheduler()