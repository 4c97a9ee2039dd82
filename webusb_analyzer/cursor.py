"""
Bounds-checked little-endian reads over an immutable descriptor buffer.

Every multi-byte field in the BOS, WebUSB and MS OS 2.0 formats is
little-endian, so all reads go through ``struct`` with an explicit ``<``
format instead of overlaying host-order structures on the bytes.
"""

from __future__ import annotations
import struct


class OutOfBounds(IndexError):
    """A read would run past the end of the buffer."""

    def __init__(self, offset: int, width: int, length: int):
        self.offset = offset
        self.width = width
        self.length = length
        super().__init__(
            "read of {} byte(s) at offset {} exceeds buffer of {} byte(s)".format(
                width, offset, length))


_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


class ByteCursor:
    """Random-access reader; holds the caller's bytes without copying them."""

    def __init__(self, data: bytes):
        # bytes(b) is b itself for a bytes object; bytearrays get frozen here
        self._data = memoryview(bytes(data))

    def __len__(self) -> int:
        return len(self._data)

    def fits(self, offset: int, width: int) -> bool:
        return 0 <= offset and width >= 0 and offset + width <= len(self._data)

    def remaining(self, offset: int) -> int:
        return len(self._data) - offset

    def _check(self, offset: int, width: int) -> None:
        if not self.fits(offset, width):
            raise OutOfBounds(offset, width, len(self._data))

    def read_u8(self, offset: int) -> int:
        self._check(offset, 1)
        return _U8.unpack_from(self._data, offset)[0]

    def read_u16le(self, offset: int) -> int:
        self._check(offset, 2)
        return _U16.unpack_from(self._data, offset)[0]

    def read_u32le(self, offset: int) -> int:
        self._check(offset, 4)
        return _U32.unpack_from(self._data, offset)[0]

    def read_bytes(self, offset: int, size: int) -> bytes:
        self._check(offset, size)
        return self._data[offset:offset + size].tobytes()
