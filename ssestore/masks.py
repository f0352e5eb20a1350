"""Update requests and the masking of document indices."""

from __future__ import annotations

from dataclasses import dataclass

UPDATE_TOKEN_SIZE = 16
KEYWORD_TOKEN_SIZE = 32

BytesLike = bytes | bytearray | memoryview


@dataclass
class UpdateRequest:
    """An update sent to the server: a 16-byte token and a masked index."""

    token: bytes
    index: int | bytes

    def __post_init__(self) -> None:
        self.token = bytes(self.token)
        if len(self.token) != UPDATE_TOKEN_SIZE:
            raise ValueError(
                f"Invalid update token length: {len(self.token)} "
                f"(expected {UPDATE_TOKEN_SIZE})"
            )


def _int_to_bytes(value: int, width: int) -> bytes:
    if value < 0:
        raise ValueError("Values to mask must not be negative")
    try:
        return value.to_bytes(width, "little")
    except OverflowError:
        raise ValueError(f"Value does not fit in {width} bytes: {value}") from None


def xor_mask(index: int | BytesLike, mask: int | BytesLike) -> int | bytes:
    """XOR *index* with *mask*, byte by byte.

    Integers are taken in little-endian order. The result has the type of
    *index*: an integer index gives an integer, a byte string gives bytes.
    """
    if isinstance(index, int):
        if index < 0:
            raise ValueError("Values to mask must not be negative")
        if isinstance(mask, int):
            if mask < 0:
                raise ValueError("Masks must not be negative")
            return index ^ mask
        mask_bytes = bytes(mask)
        _int_to_bytes(index, len(mask_bytes))
        return index ^ int.from_bytes(mask_bytes, "little")

    data = bytes(index)
    if isinstance(mask, int):
        mask_bytes = _int_to_bytes(mask, len(data))
    else:
        mask_bytes = bytes(mask)
        if len(mask_bytes) != len(data):
            raise ValueError(
                f"Mask length ({len(mask_bytes)}) differs from the value "
                f"length ({len(data)})"
            )
    return bytes(a ^ b for a, b in zip(data, mask_bytes))