import pytest

from ssestore.masks import UPDATE_TOKEN_SIZE, UpdateRequest, xor_mask


def test_bytes_xor_is_involutive():
    value = bytes(range(8))
    mask = b"\xaa\x55\x00\xff\x10\x20\x30\x40"
    masked = xor_mask(value, mask)
    assert masked != value
    assert xor_mask(masked, mask) == value


def test_bytes_xor_known_value():
    assert xor_mask(b"\x0f\xf0", b"\xff\xff") == b"\xf0\x0f"


def test_xor_with_itself_is_zero():
    value = b"\x12\x34\x56\x78"
    assert xor_mask(value, value) == bytes(4)


def test_int_with_bytes_mask_round_trip():
    mask = b"\x01\x02\x03\x04\x05\x06\x07\x08"
    index = 123456789
    masked = xor_mask(index, mask)
    assert isinstance(masked, int)
    assert xor_mask(masked, mask) == index


def test_int_with_bytes_mask_is_little_endian():
    assert xor_mask(1, b"\x01" + bytes(7)) == 0


def test_int_and_bytes_agree():
    mask = b"\x9a\xbc\xde\xf0\x11\x22\x33\x44"
    index = 0x0102030405060708
    as_bytes = xor_mask(index.to_bytes(8, "little"), mask)
    assert int.from_bytes(as_bytes, "little") == xor_mask(index, mask)


def test_bytes_with_int_mask():
    value = b"\x00\x00"
    assert xor_mask(xor_mask(value, 0x1234), 0x1234) == value


def test_int_int_round_trip():
    assert xor_mask(xor_mask(42, 99), 99) == 42


def test_length_mismatch_raises():
    with pytest.raises(ValueError):
        xor_mask(b"\x00\x01", b"\x00")


def test_int_too_large_for_mask_raises():
    with pytest.raises(ValueError):
        xor_mask(1 << 16, b"\x00\x00")


def test_negative_index_raises():
    with pytest.raises(ValueError):
        xor_mask(-1, 3)


def test_update_request_keeps_fields():
    token = bytes(range(UPDATE_TOKEN_SIZE))
    req = UpdateRequest(bytearray(token), 7)
    assert req.token == token
    assert req.index == 7


def test_update_request_rejects_bad_token():
    with pytest.raises(ValueError):
        UpdateRequest(b"short", 0)