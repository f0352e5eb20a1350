"""Filesystem, file-descriptor and hexadecimal formatting helpers."""

from __future__ import annotations

import mmap
import os
import stat
import sys
from typing import TextIO

_U64_MASK = (1 << 64) - 1
_U32_MASK = (1 << 32) - 1


def is_file(path: str | os.PathLike) -> bool:
    """Return True if *path* exists and is a regular file."""
    try:
        return stat.S_ISREG(os.stat(path).st_mode)
    except OSError:
        return False


def is_directory(path: str | os.PathLike) -> bool:
    """Return True if *path* exists and is a directory."""
    try:
        return stat.S_ISDIR(os.stat(path).st_mode)
    except OSError:
        return False


def exists(path: str | os.PathLike) -> bool:
    """Return True if *path* can be stat'ed (symlinks are followed)."""
    try:
        os.stat(path)
    except OSError:
        return False
    return True


def create_directory(path: str | os.PathLike, mode: int = 0o777) -> bool:
    """Create a single directory; return False if it cannot be created."""
    try:
        os.mkdir(path, mode)
    except OSError:
        return False
    return True


def remove_directory(path: str | os.PathLike) -> bool:
    """Recursively delete *path*.

    Symbolic links are removed, never followed, and directories living on
    another filesystem are not descended into. Raises RuntimeError on failure.
    """
    if not exists(path):
        return True

    root = os.fspath(path)
    root_device = os.lstat(root).st_dev

    def fail(target: str, action: str, err: OSError) -> None:
        reason = err.strerror or str(err)
        raise RuntimeError(
            f"When deleting directory {root}: {target} {action}: {reason}"
        ) from err

    def remove_tree(target: str) -> None:
        try:
            info = os.lstat(target)
        except OSError as err:
            fail(target, "fts_read error", err)
            return
        if stat.S_ISDIR(info.st_mode):
            if info.st_dev == root_device:
                try:
                    with os.scandir(target) as entries:
                        children = [entry.path for entry in entries]
                except OSError as err:
                    fail(target, "fts_read error", err)
                    return
                for child in children:
                    remove_tree(child)
            try:
                os.rmdir(target)
            except OSError as err:
                fail(target, "Failed to remove", err)
        else:
            try:
                os.remove(target)
            except OSError as err:
                fail(target, "Failed to remove", err)

    remove_tree(root)
    return True


def remove_file(path: str | os.PathLike) -> bool:
    """Unlink *path*; return False if that fails."""
    try:
        os.unlink(path)
    except OSError:
        return False
    return True


def open_fd(filename: str | os.PathLike, direct_io: bool = False) -> int:
    """Open (creating if needed) a file for reading and writing.

    With *direct_io*, the page cache is bypassed where the platform allows it.
    Raises RuntimeError if the file cannot be opened.
    """
    name = os.fspath(filename)
    flags = os.O_CREAT | os.O_RDWR
    if direct_io and sys.platform != "darwin":
        flags |= getattr(os, "O_DIRECT", 0)

    try:
        fd = os.open(name, flags, 0o644)
    except OSError as err:
        raise RuntimeError(
            f"Error when opening file {name}; errno {err.errno}({err.strerror})"
        ) from err

    if direct_io and sys.platform == "darwin":
        import fcntl

        nocache = getattr(fcntl, "F_NOCACHE", None)
        if nocache is not None:
            try:
                fcntl.fcntl(fd, nocache, 1)
            except OSError as err:
                os.close(fd)
                raise RuntimeError(
                    f"Error calling fcntl F_NOCACHE on file {name}; "
                    f"errno {err.errno}({err.strerror})"
                ) from err
    return fd


def file_size(fd: int) -> int:
    """Return the size in bytes of the file behind *fd*."""
    try:
        return os.fstat(fd).st_size
    except OSError as err:
        raise RuntimeError(
            f"Error when get size of file descriptor {fd}; "
            f"errno {err.errno}({err.strerror})"
        ) from err


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def hex_string(data: bytes | bytearray | memoryview | str) -> str:
    """Lower-case hexadecimal rendering of a byte string, two digits per byte."""
    return _as_bytes(data).hex()


def hex_u64(value: int) -> str:
    """Render a 64-bit unsigned integer as 16 hexadecimal digits."""
    return f"{value & _U64_MASK:016x}"


def hex_u32(value: int) -> str:
    """Render a 32-bit unsigned integer as 8 hexadecimal digits."""
    return f"{value & _U32_MASK:08x}"


def print_hex(out: TextIO, data: bytes | bytearray | memoryview | str) -> TextIO:
    """Write the hexadecimal rendering of *data* to *out* and return *out*."""
    out.write(hex_string(data))
    return out


def append_keyword_map(out: TextIO, kw: str, index: int) -> None:
    """Append a ``keyword  hex-index`` line to *out*."""
    out.write(f"{kw}       {index:x}\n")


def os_page_size() -> int:
    """Memory page size of the operating system."""
    return mmap.PAGESIZE


def device_page_size(target: int | str | os.PathLike) -> int:
    """Block size of the filesystem holding *target* (a descriptor or a path).

    For a path that does not exist, 0 is returned.
    """
    if isinstance(target, int):
        stats = os.fstatvfs(target)
        return stats.f_frsize if sys.platform == "darwin" else stats.f_bsize
    if not exists(target):
        return 0
    return os.statvfs(target).f_bsize