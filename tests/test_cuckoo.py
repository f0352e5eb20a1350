import threading

import pytest

from ssestore.awonvm_vector import AwonvmVector
from ssestore.cuckoo import CuckooBuilderParam, CuckooHashTable
from ssestore.oceanus_types import CuckooKey, cuckoo_table_size

KEY_SIZE = 16
VALUE_SIZE = 16
PAYLOAD = KEY_SIZE + VALUE_SIZE
TABLE_SIZE = 4


class _KeySerializer:
    def serialization_length(self):
        return KEY_SIZE

    def serialize(self, key):
        return bytes(key)


class _ValueSerializer:
    def serialization_length(self):
        return VALUE_SIZE

    def serialize(self, value):
        return bytes(value)

    def deserialize(self, buffer):
        return bytes(buffer)


def _hasher(key):
    return CuckooKey.from_key(key)


def _key(h0, h1):
    return h0.to_bytes(8, "little") + h1.to_bytes(8, "little")


KEY_T0 = _key(1, 2)  # table 0, slot 1
KEY_T1 = _key(5, 7)  # slot 1 of table 0 taken; table 1, slot 3
MISSING = _key(2, 0)
VALUE_T0 = b"A" * VALUE_SIZE
VALUE_T1 = b"B" * VALUE_SIZE


def _write_table(path, slots):
    with AwonvmVector(path, PAYLOAD) as vec:
        for slot in slots:
            vec.push_back(slot)


@pytest.fixture
def table_path(tmp_path):
    path = tmp_path / "cuckoo.tbl"
    empty = b"\xff" * PAYLOAD
    slots = [empty] * (2 * TABLE_SIZE)
    slots[1] = KEY_T0 + VALUE_T0
    slots[TABLE_SIZE + 3] = KEY_T1 + VALUE_T1
    _write_table(path, slots)
    return path


def _open(path, page_size=PAYLOAD):
    return CuckooHashTable(path, page_size, _KeySerializer(), _ValueSerializer(), _hasher)


def _async_lookup(table, key):
    done = threading.Event()
    results = []

    def callback(value):
        results.append(value)
        done.set()

    table.async_get(key, callback)
    assert done.wait(timeout=10)
    return results


def test_builder_param_table_size():
    param = CuckooBuilderParam("values.tmp", "table", 1000, 0.2, 50)
    assert param.table_size() == cuckoo_table_size(1000, 0.2)
    assert param.table_size() >= param.max_n_elements


def test_table_size_is_half_of_file(table_path):
    table = _open(table_path)
    try:
        assert table.table_size == TABLE_SIZE
    finally:
        table.close()


def test_get_from_both_tables(table_path):
    table = _open(table_path)
    try:
        assert table.get(KEY_T0) == VALUE_T0
        assert table.get(KEY_T1) == VALUE_T1
    finally:
        table.close()


def test_get_missing_key_raises(table_path):
    table = _open(table_path)
    try:
        with pytest.raises(KeyError):
            table.get(MISSING)
    finally:
        table.close()


def test_async_get_found(table_path):
    table = _open(table_path)
    try:
        assert _async_lookup(table, KEY_T0) == [VALUE_T0]
        assert _async_lookup(table, KEY_T1) == [VALUE_T1]
    finally:
        table.close()


def test_async_get_missing_gives_none(table_path):
    table = _open(table_path)
    try:
        assert _async_lookup(table, MISSING) == [None]
    finally:
        table.close()


def test_buffered_access_keeps_working(table_path):
    table = _open(table_path)
    try:
        table.use_direct_io(False)
        assert table.get(KEY_T0) == VALUE_T0
    finally:
        table.close()


def test_odd_sized_table_rejected(tmp_path):
    path = tmp_path / "odd.tbl"
    _write_table(path, [b"\xff" * PAYLOAD] * 3)
    with pytest.raises(RuntimeError, match="Invalid Cuckoo table size"):
        _open(path)


def test_uncommitted_table_rejected(tmp_path):
    path = tmp_path / "empty.tbl"
    with pytest.raises(RuntimeError, match="Table not committed"):
        _open(path)


def test_page_size_mismatch_rejected(table_path):
    with pytest.raises(ValueError):
        _open(table_path, page_size=24)