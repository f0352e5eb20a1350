"""Generation of synthetic keyword/document databases for benchmarks.

Every generated document is a random 64-bit index. For each document,
the generator emits (keyword, index) entries through a callback:

* six keywords that select roughly 0.1%, 1% and 10% of the documents,
  derived from two different digit groups of the index;
* nine "group" keywords. Each one gathers a fixed number of consecutive
  documents (10, 100, ... 10^6, 20, 30 or 60) of a worker thread;
* a few "random group" keywords. Each one gathers a random set of
  documents of a bounded size.

Work is split among several threads. Each thread handles the documents whose
position is congruent to its id modulo the number of threads, so the
callback may be called concurrently and must be thread-safe.
"""

from __future__ import annotations

import math
import os
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

from .logger import get_logger

KEYWORD_01_PERCENT_BASE = "0.1"
KEYWORD_1_PERCENT_BASE = "1"
KEYWORD_10_PERCENT_BASE = "10"

KEYWORD_GROUP_BASE = "Group-"
KEYWORD_10_GROUP_BASE = "Group-10^"
KEYWORD_RAND_10_GROUP_BASE = "Group-rand-10^"

MAX_10_COUNTER = 0xFFFFFFFF
_U64_MAX = (1 << 64) - 1

# Periodic group keywords, in the order their entries are emitted.
_PERIODIC_GROUPS = (
    (KEYWORD_10_GROUP_BASE + "1_", 10),
    (KEYWORD_10_GROUP_BASE + "2_", 10**2),
    (KEYWORD_10_GROUP_BASE + "3_", 10**3),
    (KEYWORD_10_GROUP_BASE + "4_", 10**4),
    (KEYWORD_10_GROUP_BASE + "5_", 10**5),
    (KEYWORD_10_GROUP_BASE + "6_", 10**6),
    (KEYWORD_GROUP_BASE + "20_", 20),
    (KEYWORD_GROUP_BASE + "30_", 30),
    (KEYWORD_GROUP_BASE + "60_", 60),
)

# Random groups: (label, group size, fraction of the entries, threshold factor).
# The groups of size 10^2 are labelled "3", as the groups of size 10^3 are.
_RANDOM_GROUPS = (
    ("3", 10**2, 0.9, 1.4),
    ("3", 10**3, 1.0, 1.2),
    ("4", 10**4, 1.0, 1.2),
    ("5", 10**5, 1.0, 1.2),
    ("6", 10**6, 1.0, 1.2),
)

Callback = Callable[[str, int], None]


def optimal_num_group(
    fraction: float, n_entries: int, step: int, group_size: int
) -> int:
    """Number of random groups of *group_size* documents that one thread fills."""
    if step <= 0 or group_size <= 0:
        raise ValueError("step and group_size must be positive")
    return math.floor(fraction * n_entries / (1.2 * (step * group_size)))


@dataclass
class GenerationStats:
    """Totals of a database generation."""

    documents: int = 0
    entries: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def _add(self, entries: int) -> int:
        with self._lock:
            self.documents += 1
            self.entries += entries
            return self.documents


@dataclass
class _RandomGroup:
    label: str
    size: int
    n_groups: int
    threshold: float
    fill: list[int]

    def summary(self) -> str:
        non_full = sum(1 for count in self.fill if count < self.size)
        return f"{min(self.fill)}/{self.n_groups}/{non_full}"


def _make_random_groups(n_entries: int, step: int) -> list[_RandomGroup]:
    groups = []
    for label, size, fraction, factor in _RANDOM_GROUPS:
        n_groups = optimal_num_group(fraction, n_entries, step, size)
        threshold = factor * (n_groups * size * step) / n_entries if n_entries else 0.0
        groups.append(_RandomGroup(label, size, n_groups, threshold, [0] * n_groups))
    return groups


def _generation_job(
    thread_id: int,
    n_entries: int,
    step: int,
    stats: GenerationStats,
    callback: Callback,
    rng: random.Random,
) -> None:
    log = get_logger()
    id_string = str(thread_id)
    counters = [0] * len(_PERIODIC_GROUPS)
    group_keywords = [""] * len(_PERIODIC_GROUPS)
    random_groups = _make_random_groups(n_entries, step)

    for i, _ in enumerate(range(thread_id, n_entries, step)):
        ind = rng.getrandbits(64)
        w_d = ind / _U64_MAX
        insertions: list[str] = []

        for suffix, digits in (("_1", ind % 1000), ("_2", (ind // 1000) % 1000)):
            callback(f"{KEYWORD_01_PERCENT_BASE}_{digits}{suffix}", ind)
            callback(f"{KEYWORD_1_PERCENT_BASE}_{digits % 100}{suffix}", ind)
            callback(f"{KEYWORD_10_PERCENT_BASE}_{digits % 10}{suffix}", ind)

        for slot, (prefix, period) in enumerate(_PERIODIC_GROUPS):
            if counters[slot] < MAX_10_COUNTER:
                group_keywords[slot] = f"{prefix}{id_string}_{counters[slot]}"
                if (i + 1) % period == 0:
                    log.debug(
                        "Random DB generation: completed keyword %s",
                        group_keywords[slot],
                    )
                    counters[slot] += 1

        for group in random_groups:
            if w_d < group.threshold:
                g = (ind % group.n_groups) & 0xFFFF
                if group.fill[g] < group.size:
                    group.fill[g] += 1
                    insertions.append(
                        f"{KEYWORD_RAND_10_GROUP_BASE}{group.label}_{id_string}_{g}"
                    )

        documents = stats._add(6 + len(group_keywords) + len(insertions))
        if documents % 1000 == 0:
            log.info(
                "Random DB generation: %d documents generated (%d entries)",
                documents,
                stats.entries,
            )

        for keyword in group_keywords:
            callback(keyword, ind)
        for keyword in insertions:
            callback(keyword, ind)

    message = (
        f"Random DB generation: thread {thread_id} completed: ("
        + ", ".join(str(c) for c in counters[:5])
        + ") min rand: ("
    )
    summaries = []
    for position, group in enumerate(random_groups):
        if group.n_groups > 0:
            summaries.append(("," if position > 0 else "") + group.summary())
    log.info(message + "".join(summaries) + ")")


def generate_db(
    n_entries: int,
    callback: Callback,
    n_threads: int | None = None,
    seed: int | str | None = None,
) -> GenerationStats:
    """Generate *n_entries* documents, feeding every entry to *callback*.

    *n_threads* defaults to the number of processors. With a *seed*, each
    thread draws from its own reproducible random stream.
    """
    if n_entries < 0:
        raise ValueError("n_entries must not be negative")
    if n_threads is None:
        n_threads = os.cpu_count() or 1
    if n_threads < 1:
        raise ValueError("n_threads must be at least 1")

    stats = GenerationStats()

    def make_rng(thread_id: int) -> random.Random:
        if seed is None:
            return random.Random()
        return random.Random(f"{seed}-{thread_id}")

    with ThreadPoolExecutor(max_workers=n_threads) as pool:
        futures = [
            pool.submit(
                _generation_job,
                thread_id,
                n_entries,
                n_threads,
                stats,
                callback,
                make_rng(thread_id),
            )
            for thread_id in range(n_threads)
        ]
        for future in futures:
            future.result()

    get_logger().info(
        "Random DB generation: %d new documents generated, representing %d entries",
        stats.documents,
        stats.entries,
    )
    return stats