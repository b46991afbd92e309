"""
ELF Header Decoder
==================

Decodes ``e_ident`` and the rest of the file header.  This is the only
place address width and byte order are inferred from the file: the class
and data bytes configure the :class:`PrimitiveReader` used for every
later read, the header's own remaining fields included.

Failures here are fatal to the whole decode:

    - fewer than 52 bytes, or wrong magic        -> :class:`NotElfError`
    - class/data byte other than 1 or 2           -> :class:`UnsupportedVariantError`
    - 64-bit class on a buffer under 64 bytes     -> :class:`OutOfBoundsError`

A header-size field that disagrees with the class is only an anomaly.
"""

from __future__ import annotations

from elfspan.core.errors import NotElfError, UnsupportedVariantError
from elfspan.core.models import (
    AddressWidth,
    AnomalyKind,
    ElfHeader,
    Endianness,
    FileIdentity,
    TableGeometry,
)
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext
from elfspan.parsers.reader import PrimitiveReader


_CLASS_WIDTHS: dict[int, AddressWidth] = {
    C.ELFCLASS32: AddressWidth.BITS_32,
    C.ELFCLASS64: AddressWidth.BITS_64,
}

_DATA_ORDERS: dict[int, Endianness] = {
    C.ELFDATA2LSB: Endianness.LITTLE,
    C.ELFDATA2MSB: Endianness.BIG,
}

_HEADER_SIZES: dict[AddressWidth, int] = {
    AddressWidth.BITS_32: C.EHDR32_SIZE,
    AddressWidth.BITS_64: C.EHDR64_SIZE,
}


def decode_identity(data: bytes | bytearray | memoryview) -> tuple[FileIdentity, PrimitiveReader]:
    """Validate ``e_ident`` and build the reader for the rest of the file.

    Args:
        data: The whole file.

    Returns:
        The decoded identity and a reader configured for its variant,
        positioned after ``e_ident``.

    Raises:
        NotElfError: Buffer too short or magic absent.
        UnsupportedVariantError: Class or data byte not 1 or 2.
        OutOfBoundsError: Buffer shorter than the 64-bit header.
    """
    if len(data) < C.EHDR32_SIZE:
        raise NotElfError(
            f"buffer is {len(data)} bytes, shorter than the "
            f"{C.EHDR32_SIZE}-byte minimum ELF header",
            offset=0,
        )
    if bytes(data[:4]) != C.ELF_MAGIC:
        raise NotElfError(
            f"bad magic {bytes(data[:4]).hex(' ')}, expected 7f 45 4c 46",
            offset=0,
        )

    ei_class = data[C.EI_CLASS]
    ei_data = data[C.EI_DATA]
    width = _CLASS_WIDTHS.get(ei_class)
    if width is None:
        raise UnsupportedVariantError(
            f"unsupported ELF class byte {ei_class}", offset=C.EI_CLASS
        )
    order = _DATA_ORDERS.get(ei_data)
    if order is None:
        raise UnsupportedVariantError(
            f"unsupported ELF data encoding byte {ei_data}", offset=C.EI_DATA
        )

    reader = PrimitiveReader(data, width, order)
    reader.require(0, _HEADER_SIZES[width])

    _, magic_span = reader.raw(4)
    identity = FileIdentity(
        address_width=width,
        endianness=order,
        magic=magic_span,
        elf_class=reader.u8(),
        data_encoding=reader.u8(),
        ident_version=reader.u8(),
        os_abi=reader.u8(),
        abi_version=reader.u8(),
    )
    reader.seek(C.EI_NIDENT)
    return identity, reader


def decode_file_header(ctx: DecodeContext, identity: FileIdentity) -> ElfHeader:
    """Decode the header fields following ``e_ident``."""
    rec = ctx.reader.read_record(ctx.layouts.file_header, C.EI_NIDENT)

    header = ElfHeader(
        identity=identity,
        object_type=rec["type"],
        machine=rec["machine"],
        version=rec["version"],
        entry_point=rec["entry"],
        program_header_table=TableGeometry(
            offset=rec["phoff"],
            entry_size=rec["phentsize"],
            count=rec["phnum"],
        ),
        section_header_table=TableGeometry(
            offset=rec["shoff"],
            entry_size=rec["shentsize"],
            count=rec["shnum"],
        ),
        flags=rec["flags"],
        header_size=rec["ehsize"],
        section_name_table_index=rec["shstrndx"],
    )

    expected = _HEADER_SIZES[identity.address_width]
    if header.header_size.value != expected:
        ctx.anomaly(
            AnomalyKind.HEADER_SIZE_MISMATCH,
            f"header size field is {header.header_size.value}, "
            f"expected {expected} for ELF{identity.address_width.value}",
            offset=header.header_size.span.offset,
        )
    return header
