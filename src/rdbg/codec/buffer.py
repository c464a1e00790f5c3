"""Byte-level packing and unpacking utilities.

This module provides the big-endian primitives the wire format is built from:
fixed-width unsigned integers and u32-length-prefixed UTF-8 strings.
"""

from __future__ import annotations

import struct

_U8 = struct.Struct(">B")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")

U32_SIZE = _U32.size


class ByteWriter:
    """Appends big-endian primitives to a growing byte buffer.

    Example:
        >>> writer = ByteWriter()
        >>> writer.write_u8(1)
        >>> writer.write_str("x")
        >>> writer.to_bytes()
        b'\\x01\\x00\\x00\\x00\\x01x'
    """

    def __init__(self) -> None:
        """Initialize an empty writer."""
        self._buffer = bytearray()

    def write_u8(self, value: int) -> None:
        """Write an unsigned 8-bit integer.

        Raises:
            ValueError: If value doesn't fit in 8 bits
        """
        self._pack(_U8, value, "u8")

    def write_u32(self, value: int) -> None:
        """Write an unsigned 32-bit big-endian integer.

        Raises:
            ValueError: If value doesn't fit in 32 bits
        """
        self._pack(_U32, value, "u32")

    def write_u64(self, value: int) -> None:
        """Write an unsigned 64-bit big-endian integer.

        Raises:
            ValueError: If value doesn't fit in 64 bits
        """
        self._pack(_U64, value, "u64")

    def write_str(self, value: str) -> None:
        """Write a u32 length prefix followed by the UTF-8 bytes of value.

        Raises:
            ValueError: If the encoded string is longer than a u32 can describe
        """
        data = value.encode("utf-8")
        self.write_u32(len(data))
        self._buffer.extend(data)

    def __len__(self) -> int:
        return len(self._buffer)

    def to_bytes(self) -> bytes:
        """Return everything written so far."""
        return bytes(self._buffer)

    def _pack(self, packer: struct.Struct, value: int, name: str) -> None:
        try:
            self._buffer.extend(packer.pack(value))
        except struct.error as e:
            raise ValueError(f"Value {value} does not fit in {name}") from e


class ByteReader:
    """Reads big-endian primitives from a fixed byte buffer.

    Every read raises IndexError when fewer bytes remain than requested, so
    callers can turn truncation into a protocol error in one place.

    Example:
        >>> reader = ByteReader(b"\\x00\\x00\\x00\\x02hi")
        >>> reader.read_str()
        'hi'
    """

    def __init__(self, data: bytes) -> None:
        """Initialize reader over data.

        Args:
            data: Bytes to read from
        """
        self._data = memoryview(data)
        self._position = 0

    def read_u8(self) -> int:
        return _U8.unpack(self._take(_U8.size))[0]

    def read_u32(self) -> int:
        return _U32.unpack(self._take(_U32.size))[0]

    def read_u64(self) -> int:
        return _U64.unpack(self._take(_U64.size))[0]

    def read_str(self) -> str:
        """Read a u32 length prefix and that many UTF-8 bytes.

        Raises:
            IndexError: If the string is truncated
            UnicodeDecodeError: If the bytes are not valid UTF-8
        """
        length = self.read_u32()
        return bytes(self._take(length)).decode("utf-8")

    def remaining(self) -> int:
        """Return the number of unread bytes."""
        return len(self._data) - self._position

    def _take(self, count: int) -> memoryview:
        if count > self.remaining():
            raise IndexError(
                f"Need {count} bytes at offset {self._position}, only {self.remaining()} left"
            )
        start = self._position
        self._position += count
        return self._data[start : self._position]
