"""Storage building blocks for searchable encryption: counters, write-once vectors, async IO and cuckoo table lookups."""

__version__ = "0.1.0"