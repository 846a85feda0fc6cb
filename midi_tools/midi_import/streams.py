"""Byte stream helpers shared by the chunk reader and track decoders."""
from __future__ import annotations

from .errors import MalformedVarint, UnexpectedEof

MAX_VARLEN_BYTES = 4


class SafeStream:
    """Utility to read bytes with bound checks and a stateful cursor."""

    __slots__ = ("_data", "_length", "_position")

    def __init__(self, data: bytes):
        self._data = memoryview(data)
        self._length = len(self._data)
        self._position = 0

    @property
    def remaining(self) -> int:
        return self._length - self._position

    def __len__(self) -> int:
        return self._length

    def tell(self) -> int:
        return self._position

    position = tell

    def seek(self, position: int) -> None:
        if position < 0 or position > self._length:
            raise UnexpectedEof(f"Cannot seek to byte {position} of {self._length}.")
        self._position = position

    def read_exact(self, size: int) -> bytes:
        if size < 0:
            raise ValueError("Size must be non-negative.")
        if self.remaining < size:
            raise UnexpectedEof(
                f"Unexpected end of MIDI data: needed {size} byte(s) at offset "
                f"{self._position}, {self.remaining} available."
            )
        start = self._position
        self._position += size
        return bytes(self._data[start : start + size])

    read_bytes = read_exact

    def read_u8(self) -> int:
        return self.read_exact(1)[0]

    read_byte = read_u8

    def read_u16(self) -> int:
        return int.from_bytes(self.read_exact(2), "big")

    def read_u32(self) -> int:
        return int.from_bytes(self.read_exact(4), "big")

    def peek_u8(self) -> int:
        if self.remaining <= 0:
            raise UnexpectedEof(f"Unexpected end of MIDI data at offset {self._position}.")
        return self._data[self._position]

    peek_byte = peek_u8

    def skip(self, size: int) -> None:
        self.read_exact(size)

    def read_varlen(self) -> int:
        """Read a big-endian variable-length quantity of at most four bytes."""

        value = 0
        for _ in range(MAX_VARLEN_BYTES):
            byte = self.read_u8()
            value = (value << 7) | (byte & 0x7F)
            if byte & 0x80 == 0:
                return value
        raise MalformedVarint(
            f"Variable-length quantity exceeds {MAX_VARLEN_BYTES} bytes "
            f"(ending at offset {self._position})."
        )


__all__ = ["MAX_VARLEN_BYTES", "SafeStream"]
