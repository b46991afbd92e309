"""
Primitive Reader
================

Positional cursor over an immutable byte buffer.  Every read returns a
:class:`~elfspan.core.models.SpanValue` whose span is the exact byte range
consumed, advances the cursor by that many bytes, and raises
:class:`~elfspan.core.errors.OutOfBoundsError` rather than reading past
the end of the buffer.

Byte order applies to every read of 16 bits or more; 8-bit reads are
order-independent.  ``address_sized`` reads 4 or 8 bytes depending on
the configured address width.
"""

from __future__ import annotations

import struct
from typing import Optional

from elfspan.core.errors import OutOfBoundsError
from elfspan.core.models import AddressWidth, Endianness, FieldSpan, SpanValue
from elfspan.parsers.layouts import RecordLayout


class PrimitiveReader:
    """Typed, span-producing reads over a byte buffer.

    Args:
        data: Source buffer, borrowed read-only.  A memoryview is copied
            once into ``bytes``; other buffers are used in place.
        address_width: 32 or 64; selects the size of address-sized reads.
        endianness: Byte order of every multi-byte read.
    """

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        address_width: AddressWidth = AddressWidth.BITS_32,
        endianness: Endianness = Endianness.LITTLE,
    ) -> None:
        # memoryview has no find(); everything else is used in place
        self._data = data if isinstance(data, (bytes, bytearray)) else bytes(data)
        self._length = len(self._data)
        self._width = AddressWidth(address_width)
        self._endian = Endianness(endianness)
        self._prefix = self._endian.struct_prefix
        self._addr_code = "I" if self._width is AddressWidth.BITS_32 else "Q"
        self._pos = 0

    # ------------------------------------------------------------------ #
    #  Cursor
    # ------------------------------------------------------------------ #

    @property
    def address_width(self) -> AddressWidth:
        return self._width

    @property
    def endianness(self) -> Endianness:
        return self._endian

    @property
    def length(self) -> int:
        return self._length

    def seek(self, position: int) -> None:
        """Move the cursor; bounds are checked by the next read, not here."""
        if position < 0:
            raise OutOfBoundsError(position, 0, self._length)
        self._pos = position

    def tell(self) -> int:
        return self._pos

    def in_bounds(self, offset: int, size: int) -> bool:
        return offset >= 0 and size >= 0 and offset + size <= self._length

    def require(self, offset: int, size: int) -> None:
        """Raise :class:`OutOfBoundsError` unless ``[offset, offset+size)`` fits."""
        if not self.in_bounds(offset, size):
            raise OutOfBoundsError(offset, size, self._length)

    # ------------------------------------------------------------------ #
    #  Scalar reads
    # ------------------------------------------------------------------ #

    def _read(self, code: str) -> SpanValue:
        size = struct.calcsize(f"<{code}")
        offset = self._pos
        self.require(offset, size)
        (value,) = struct.unpack_from(f"{self._prefix}{code}", self._data, offset)
        self._pos = offset + size
        return SpanValue(value=value, span=FieldSpan(offset=offset, size=size))

    def u8(self) -> SpanValue:
        return self._read("B")

    def u16(self) -> SpanValue:
        return self._read("H")

    def u32(self) -> SpanValue:
        return self._read("I")

    def u64(self) -> SpanValue:
        return self._read("Q")

    def s32(self) -> SpanValue:
        return self._read("i")

    def s64(self) -> SpanValue:
        return self._read("q")

    def address_sized(self) -> SpanValue:
        """Read an unsigned 4- or 8-byte value, per the address width."""
        return self._read(self._addr_code)

    def signed_address_sized(self) -> SpanValue:
        """Read a two's-complement 4- or 8-byte value, per the address width."""
        return self._read(self._addr_code.lower())

    def raw(self, size: int) -> tuple[bytes, FieldSpan]:
        """Read *size* raw bytes and return them with their span."""
        offset = self._pos
        self.require(offset, size)
        self._pos = offset + size
        return bytes(self._data[offset:offset + size]), FieldSpan(offset=offset, size=size)

    # ------------------------------------------------------------------ #
    #  Records
    # ------------------------------------------------------------------ #

    def read_record(
        self, layout: RecordLayout, offset: Optional[int] = None
    ) -> dict[str, SpanValue]:
        """Read a whole fixed-layout record.

        Args:
            layout: The record layout to apply.
            offset: Where the record starts; defaults to the cursor.

        Returns:
            Mapping of field name to :class:`SpanValue`, in layout order.

        Raises:
            OutOfBoundsError: If any byte of the record lies past the end
                of the buffer.  Nothing is consumed in that case.
        """
        start = self._pos if offset is None else offset
        self.require(start, layout.size)
        values = struct.unpack_from(f"{self._prefix}{layout.codes}", self._data, start)

        record: dict[str, SpanValue] = {}
        for (name, code), rel, value in zip(layout.fields, layout.offsets, values):
            record[name] = SpanValue(
                value=value,
                span=FieldSpan(offset=start + rel, size=struct.calcsize(f"<{code}")),
            )
        self._pos = start + layout.size
        return record

    # ------------------------------------------------------------------ #
    #  Strings
    # ------------------------------------------------------------------ #

    def cstring(
        self,
        offset: int,
        limit: Optional[int] = None,
        encoding: str = "utf-8",
    ) -> tuple[str, FieldSpan, bool]:
        """Read a NUL-terminated string without moving the cursor.

        Args:
            offset: Offset of the first character.
            limit: Exclusive upper bound for the scan; clipped to the
                buffer end.  ``None`` means the buffer end.
            encoding: Text codec; undecodable bytes are replaced.

        Returns:
            ``(text, span, terminated)``.  The span covers the characters
            plus the terminator when one was found.  ``terminated`` is
            ``False`` when the scan hit *limit* first.

        Raises:
            OutOfBoundsError: If *offset* is not inside ``[0, limit)``.
        """
        end = self._length if limit is None else min(limit, self._length)
        if offset < 0 or offset >= end:
            raise OutOfBoundsError(offset, 1, end)

        nul = self._data.find(b"\x00", offset, end)
        if nul == -1:
            raw = bytes(self._data[offset:end])
            return (
                raw.decode(encoding, errors="replace"),
                FieldSpan(offset=offset, size=end - offset),
                False,
            )
        raw = bytes(self._data[offset:nul])
        return (
            raw.decode(encoding, errors="replace"),
            FieldSpan(offset=offset, size=nul - offset + 1),
            True,
        )
