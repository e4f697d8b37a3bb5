# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Primitive binary readers and writers for QMQ backup values.

Every stored layout is built from the same few primitives, so the
envelope, metadata and record codecs all go through this module.

Binary Format Conventions:
- All multi-byte integers are big-endian and signed
- Strings are length-prefixed: [4 bytes len][N bytes UTF-8]
- Byte arrays are length-prefixed: [4 bytes len][N bytes data]
- Short strings (record values only): [2 bytes len][N bytes UTF-8]

Lengths are stored as signed integers. A negative length is corrupt
input and is rejected, as is any read past the end of the buffer.
"""

from __future__ import annotations

import struct
from typing import Union

from .exceptions import (
    EncodeError,
    MalformedStringError,
    NegativeLengthError,
    OutOfBoundsError,
)

Buffer = Union[bytes, bytearray, memoryview]

_INT8 = struct.Struct(">b")
_UINT8 = struct.Struct(">B")
_INT16 = struct.Struct(">h")
_INT32 = struct.Struct(">i")
_INT64 = struct.Struct(">q")

INT16_MAX: int = 0x7FFF
INT32_MAX: int = 0x7FFFFFFF


def decode_utf8(data: Buffer, offset: int | None = None) -> str:
    """Decode UTF-8 strictly, raising MalformedStringError on bad input."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedStringError(offset, e.reason) from e


# =============================================================================
# Reader
# =============================================================================


class ByteReader:
    """
    Cursor over an immutable byte buffer.

    Reads advance the cursor strictly left to right. Nothing is read
    unless the whole field fits in the remaining bytes.

    Example:
        >>> reader = ByteReader(b"\\x00\\x00\\x00\\x02hi")
        >>> reader.read_string()
        'hi'
        >>> reader.remaining
        0
    """

    __slots__ = ("_data", "_pos")

    def __init__(self, data: Buffer, offset: int = 0) -> None:
        if offset < 0 or offset > len(data):
            raise OutOfBoundsError(offset, 0, len(data) - offset)
        self._data = data
        self._pos = offset

    def __len__(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        """Current cursor position."""
        return self._pos

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._data) - self._pos

    def seek(self, offset: int) -> None:
        """Move the cursor to an absolute offset."""
        if offset < 0 or offset > len(self._data):
            raise OutOfBoundsError(offset, 0, len(self._data) - offset)
        self._pos = offset

    def _require(self, n: int) -> int:
        pos = self._pos
        if n > len(self._data) - pos:
            raise OutOfBoundsError(pos, n, len(self._data) - pos)
        self._pos = pos + n
        return pos

    def _unpack(self, fmt: struct.Struct) -> int:
        pos = self._require(fmt.size)
        return fmt.unpack_from(self._data, pos)[0]

    def read_int8(self) -> int:
        return self._unpack(_INT8)

    def read_uint8(self) -> int:
        return self._unpack(_UINT8)

    def read_int16(self) -> int:
        return self._unpack(_INT16)

    def read_int32(self) -> int:
        return self._unpack(_INT32)

    def read_int64(self) -> int:
        return self._unpack(_INT64)

    def skip(self, n: int) -> None:
        """Advance the cursor by ``n`` bytes without reading them."""
        if n < 0:
            raise NegativeLengthError(self._pos, n)
        self._require(n)

    def read_raw(self, n: int) -> bytes:
        """Read exactly ``n`` bytes."""
        if n < 0:
            raise NegativeLengthError(self._pos, n)
        pos = self._require(n)
        return bytes(self._data[pos:pos + n])

    def read_remaining(self) -> bytes:
        """Read every byte up to the end of the buffer."""
        return self.read_raw(self.remaining)

    def _read_length(self, fmt: struct.Struct) -> int:
        start = self._pos
        length = self._unpack(fmt)
        if length < 0:
            self._pos = start
            raise NegativeLengthError(start, length)
        return length

    def read_bytes(self) -> bytes:
        """Read a [4B len][data] byte array."""
        return self.read_raw(self._read_length(_INT32))

    def read_string(self) -> str:
        """Read a [4B len][UTF-8] string."""
        length = self._read_length(_INT32)
        start = self._pos
        return decode_utf8(self.read_raw(length), start)

    def read_short_string(self) -> str:
        """Read a [2B len][UTF-8] string."""
        length = self._read_length(_INT16)
        start = self._pos
        return decode_utf8(self.read_raw(length), start)


# =============================================================================
# Writers
# =============================================================================


def _pack(fmt: struct.Struct, value: int) -> bytes:
    try:
        return fmt.pack(value)
    except struct.error as e:
        raise EncodeError(f"Integer {value} does not fit {fmt.size * 8} bits") from e


def pack_int8(value: int) -> bytes:
    return _pack(_INT8, value)


def pack_uint8(value: int) -> bytes:
    return _pack(_UINT8, value)


def pack_int16(value: int) -> bytes:
    return _pack(_INT16, value)


def pack_int32(value: int) -> bytes:
    return _pack(_INT32, value)


def pack_int64(value: int) -> bytes:
    return _pack(_INT64, value)


def pack_bytes(data: bytes) -> bytes:
    """Encode a [4B len][data] byte array."""
    if len(data) > INT32_MAX:
        raise EncodeError(f"Byte array of {len(data)} bytes is too large")
    return _INT32.pack(len(data)) + bytes(data)


def pack_string(value: str) -> bytes:
    """Encode a [4B len][UTF-8] string."""
    return pack_bytes(value.encode("utf-8"))


def pack_short_string(value: str) -> bytes:
    """Encode a [2B len][UTF-8] string."""
    raw = value.encode("utf-8")
    if len(raw) > INT16_MAX:
        raise EncodeError(f"String of {len(raw)} bytes is too large for a short string")
    return _INT16.pack(len(raw)) + raw
