# ssestore

Storage building blocks for forward-private searchable encryption schemes:
persistent keyword counters, append-only record files, asynchronous file IO,
on-disk cuckoo hash table lookups and a synthetic benchmark database generator.

The package uses only the Python standard library and targets POSIX systems.

## Modules

- `ssestore.utils`: file-system helpers (`is_file`, `is_directory`, `exists`,
  `create_directory`, `remove_directory`, `remove_file`, `open_fd`,
  `file_size`, `os_page_size`, `device_page_size`) and hexadecimal formatting
  (`hex_string`, `hex_u64`, `hex_u32`, `print_hex`, `append_keyword_map`).
- `ssestore.logger`: the shared logger (`get_logger`, `set_logger`,
  `set_logging_level`) and timers (`Benchmark`, `SearchBenchmark`). After
  `Benchmark.set_benchmark_file(path)`, every closed benchmark writes one line
  to that file; `SearchBenchmark` formats it as a JSON object with the
  message, item count, time and time per item.
- `ssestore.counter`: `CounterStore`, a persistent map from keys (bytes or
  strings) to unsigned 32-bit counters, kept in an SQLite database file.
- `ssestore.scheduler`: the `Scheduler` interface for asynchronous positional
  reads and writes, the `ThreadPoolScheduler` implementation,
  `ReadSubmission` and `make_default_scheduler`.
- `ssestore.awonvm_vector`: `AwonvmVector`, an append-only, write-once vector
  of fixed-size records stored in a file, with synchronous and asynchronous
  reads (`get`, `async_get`, `async_gets` with `GetRequest`).
- `ssestore.kv_serializer`: `KVSerializer`, `deserialize` and
  `deserialize_map`, streaming key/value pairs through a codec you supply
  (`serialize_key_value` / `deserialize_key_value`).
- `ssestore.db_generator`: `generate_db`, which produces random documents and
  feeds `(keyword, index)` entries to a callback from several threads, and
  returns `GenerationStats`; `optimal_num_group` sizes its random groups.
- `ssestore.masks`: `xor_mask` and the `UpdateRequest` dataclass.
- `ssestore.oceanus_types`, `ssestore.cuckoo`, `ssestore.oceanus`: lookups in
  a two-table cuckoo hash table stored in one file (`CuckooHashTable`,
  `Oceanus`), with the sizing helpers `cuckoo_table_size` and `data_length`.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Examples

Counters:

```python
from ssestore.counter import CounterStore

with CounterStore("counters.db") as counters:
    counters.set("keyword", 3)
    print(counters.get_and_increment("keyword"))  # 4
    print(counters.get("keyword"))                # 4
```

A write-once vector:

```python
from ssestore.awonvm_vector import AwonvmVector

with AwonvmVector("records.bin", 16) as vec:
    vec.push_back(b"\x01" * 16)
    vec.commit()
    print(vec.get(0))
```

Generating a benchmark database:

```python
import threading
from collections import Counter
from ssestore.db_generator import generate_db

counts = Counter()
lock = threading.Lock()

def record(keyword, index):
    with lock:
        counts[keyword] += 1

stats = generate_db(1000, record, n_threads=2, seed=1)
print(stats.documents, stats.entries)
```

## Cuckoo table file layout

A table file holds `2 * n` payloads of equal size: the first `n` form
table 0, the last `n` table 1. Each payload is the serialized key followed by
the serialized value; empty slots are filled with `0xFF` bytes. A key is
looked up at `h[0] % n` in table 0, then at `h[1] % n` in table 1. For
`Oceanus`, keys are 16 bytes (split into two little-endian 64-bit hash
values) and a value is `data_length(page_size)` little-endian 64-bit indices.

## What the package does not do

- It does not build cuckoo tables: there is no insertion or cuckoo allocation.
  `CuckooHashTable` and `Oceanus` only open an existing, non-empty table file
  laid out as above and read from it; `CuckooBuilderParam` only computes
  table sizes. A table can be written by hand with `AwonvmVector`.
- It does not implement the searchable encryption schemes themselves (key
  derivation, search and update tokens, clients or servers), and it has no
  network service or command-line program.