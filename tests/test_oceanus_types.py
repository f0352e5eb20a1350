import pytest

from ssestore.oceanus_types import (
    EMPTY_PLACEHOLDER,
    OVERHEAD,
    TABLE_KEY_SIZE,
    CuckooKey,
    cuckoo_table_size,
    data_length,
    is_empty_placeholder,
    match_key,
)


def test_overhead_matches_key_size():
    assert OVERHEAD * 8 >= TABLE_KEY_SIZE
    assert data_length(64) == 8 - OVERHEAD
    assert data_length(64) == 6


def test_default_cuckoo_key_is_empty():
    key = CuckooKey()
    assert key.h == (EMPTY_PLACEHOLDER, EMPTY_PLACEHOLDER)
    assert all(is_empty_placeholder(h) for h in key.h)


def test_cuckoo_key_from_key_round_trip():
    a, b = 0x0123456789ABCDEF, 42
    key = CuckooKey.from_key(a.to_bytes(8, "little") + b.to_bytes(8, "little"))
    assert key.h == (a, b)


def test_cuckoo_key_rejects_bad_length():
    with pytest.raises(ValueError):
        CuckooKey.from_key(b"\x00" * 15)


def test_data_length_for_common_page():
    assert data_length(4096) == 510


def test_data_length_plus_overhead_fills_page():
    for page in (16, 64, 512, 8192):
        assert (data_length(page) + OVERHEAD) * 8 == page


def test_data_length_rejects_unaligned_page():
    with pytest.raises(ValueError):
        data_length(12)


def test_match_key():
    key = bytes(range(16))
    assert match_key(key + b"\x00" * 16, key)
    assert not match_key(b"\xff" + key[1:] + b"\x00" * 16, key)


def test_match_key_rejects_short_payload():
    with pytest.raises(ValueError):
        match_key(bytes(16), bytes(16))


def test_cuckoo_table_size_value():
    assert cuckoo_table_size(100, 0.1) == 105


def test_cuckoo_table_size_never_smaller():
    for n in (0, 1, 7, 1000):
        assert cuckoo_table_size(n, 0.3) >= n
    assert cuckoo_table_size(10, 0.0) == 10


def test_is_empty_placeholder():
    assert is_empty_placeholder((1 << 64) - 1)
    assert not is_empty_placeholder(0)