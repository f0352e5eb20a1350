"""Shared logger and simple benchmark timers."""

from __future__ import annotations

import logging
import sys
import time

TRACE = 5

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "err": logging.ERROR,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}

_shared_logger: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the shared logger, creating a stderr logger on first use."""
    global _shared_logger
    if _shared_logger is None:
        console = logging.getLogger("ssestore")
        if not console.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s")
            )
            console.addHandler(handler)
        _shared_logger = console
    return _shared_logger


def set_logger(logger: logging.Logger | None) -> None:
    """Replace the shared logger; None installs a logger that drops everything."""
    global _shared_logger
    if logger is not None:
        _shared_logger = logger
    else:
        null_logger = logging.Logger("null_logger")
        null_logger.addHandler(logging.NullHandler())
        null_logger.propagate = False
        _shared_logger = null_logger


def set_logging_level(level: int | str) -> None:
    """Set the level of the shared logger (a logging level or a name)."""
    if isinstance(level, str):
        try:
            level = _LEVELS[level.lower()]
        except KeyError:
            raise ValueError(f"Unknown logging level: {level!r}") from None
    get_logger().setLevel(level)


class Benchmark:
    """Times a block of work and reports it to the benchmark log.

    The format string receives the item count, the elapsed time in
    milliseconds and the time per item, as positional fields {0}, {1}, {2}.
    """

    _benchmark_logger: logging.Logger | None = None

    @classmethod
    def set_benchmark_file(cls, path) -> None:
        """Send benchmark records to the file at *path*."""
        previous = cls._benchmark_logger
        if previous is not None:
            for handler in list(previous.handlers):
                previous.removeHandler(handler)
                handler.close()
        bench_logger = logging.Logger("benchmark", level=TRACE)
        handler = logging.FileHandler(path)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s.%(msecs)03d] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        bench_logger.addHandler(handler)
        bench_logger.propagate = False
        cls._benchmark_logger = bench_logger

    def __init__(self, format: str) -> None:
        self.format = format
        self.count = 0
        self._stopped = False
        self._closed = False
        self._begin = time.perf_counter()
        self._end = self._begin

    def stop(self, count: int | None = None) -> None:
        """Stop the timer, optionally recording the number of items processed."""
        if self._stopped:
            return
        self._end = time.perf_counter()
        if count is not None:
            self.count = count
        self._stopped = True

    def close(self) -> str:
        """Stop the timer, log the result and return the formatted message."""
        self.stop()
        time_ms = (self._end - self._begin) * 1000.0
        per_item = time_ms / self.count if self.count > 1 else time_ms
        message = self.format.format(self.count, time_ms, per_item)
        if not self._closed:
            self._closed = True
            if Benchmark._benchmark_logger is not None:
                Benchmark._benchmark_logger.log(TRACE, message)
        return message

    def __enter__(self) -> "Benchmark":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


_SEARCH_JSON_BEGIN = '{{ "message" : "'
_SEARCH_JSON_END = '", "items" : {0}, "time" : {1}, "time/item" : {2} }}'


class SearchBenchmark(Benchmark):
    """Benchmark whose record is a JSON object describing a search."""

    def __init__(self, message: str) -> None:
        super().__init__(_SEARCH_JSON_BEGIN + message + _SEARCH_JSON_END)