from __future__ import annotations

import struct

from .errors import OutOfBounds


class Cursor:
    """Sequential big-endian reader over an immutable buffer.

    Every read is bounds-checked and raises OutOfBounds instead of returning
    short data.
    """

    __slots__ = ("b", "o")

    def __init__(self, b: bytes, offset: int = 0):
        self.b = b
        self.o = offset

    def at_end(self) -> bool:
        return self.o >= len(self.b)

    def _need(self, n: int) -> None:
        if n < 0 or self.o + n > len(self.b):
            raise OutOfBounds(f"read of {n} bytes at offset {self.o} exceeds buffer of {len(self.b)} bytes")

    def read_u8(self) -> int:
        self._need(1)
        v = self.b[self.o]
        self.o += 1
        return v

    def read_u16_be(self) -> int:
        self._need(2)
        v = struct.unpack_from(">H", self.b, self.o)[0]
        self.o += 2
        return v

    def read_i32_be(self) -> int:
        self._need(4)
        v = struct.unpack_from(">i", self.b, self.o)[0]
        self.o += 4
        return v

    def read_bytes(self, n: int) -> bytes:
        self._need(n)
        v = bytes(self.b[self.o : self.o + n])
        self.o += n
        return v

    def read_name(self) -> str:
        ln = self.read_u16_be()
        # Java writes modified UTF-8; undecodable bytes are kept as surrogates
        return self.read_bytes(ln).decode("utf-8", errors="surrogateescape")

    def skip(self, n: int) -> None:
        self._need(n)
        self.o += n
