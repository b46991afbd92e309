"""
Record Layouts
==============

The fixed on-disk record layouts of ELF, expressed as data.

Each :class:`RecordLayout` is an ordered tuple of ``(field_name,
struct_code)`` pairs.  The 32-bit and 64-bit forms of a record are two
separate layouts, not one layout parameterised by width: program headers
and symbols reorder their fields between the classes, so every layout
below can be audited against the ABI tables as one contiguous block.

Codes are :mod:`struct` format characters without a byte-order prefix;
the reader supplies ``<`` or ``>`` and never inserts padding.

The set for a file is selected once, at header-decode time, through
:data:`LAYOUTS`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from elfspan.core.models import AddressWidth


@dataclass(frozen=True, slots=True)
class RecordLayout:
    """An ordered list of fields making up one fixed-size record."""

    name: str
    fields: tuple[tuple[str, str], ...]
    size: int = field(init=False)
    codes: str = field(init=False)
    offsets: tuple[int, ...] = field(init=False)

    def __post_init__(self) -> None:
        codes = "".join(code for _, code in self.fields)
        offsets: list[int] = []
        pos = 0
        for _, code in self.fields:
            offsets.append(pos)
            pos += struct.calcsize(f"<{code}")
        object.__setattr__(self, "codes", codes)
        object.__setattr__(self, "size", pos)
        object.__setattr__(self, "offsets", tuple(offsets))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)


@dataclass(frozen=True, slots=True)
class LayoutSet:
    """Every record layout for one address width."""

    width: AddressWidth
    file_header: RecordLayout
    program_header: RecordLayout
    section_header: RecordLayout
    symbol: RecordLayout
    dynamic: RecordLayout
    rel: RecordLayout
    rela: RecordLayout


# ---------------------------------------------------------------------------
# ELF32
# ---------------------------------------------------------------------------

# Elf32_Ehdr from e_type on (offset 16); 36 bytes
_EHDR32 = RecordLayout("Elf32_Ehdr", (
    ("type", "H"),
    ("machine", "H"),
    ("version", "I"),
    ("entry", "I"),
    ("phoff", "I"),
    ("shoff", "I"),
    ("flags", "I"),
    ("ehsize", "H"),
    ("phentsize", "H"),
    ("phnum", "H"),
    ("shentsize", "H"),
    ("shnum", "H"),
    ("shstrndx", "H"),
))

# Elf32_Phdr: 32 bytes, flags last
_PHDR32 = RecordLayout("Elf32_Phdr", (
    ("type", "I"),
    ("offset", "I"),
    ("vaddr", "I"),
    ("paddr", "I"),
    ("filesz", "I"),
    ("memsz", "I"),
    ("flags", "I"),
    ("align", "I"),
))

# Elf32_Shdr: 40 bytes
_SHDR32 = RecordLayout("Elf32_Shdr", (
    ("name", "I"),
    ("type", "I"),
    ("flags", "I"),
    ("addr", "I"),
    ("offset", "I"),
    ("size", "I"),
    ("link", "I"),
    ("info", "I"),
    ("addralign", "I"),
    ("entsize", "I"),
))

# Elf32_Sym: 16 bytes
_SYM32 = RecordLayout("Elf32_Sym", (
    ("name", "I"),
    ("value", "I"),
    ("size", "I"),
    ("info", "B"),
    ("other", "B"),
    ("shndx", "H"),
))

# Elf32_Dyn: 8 bytes, signed tag
_DYN32 = RecordLayout("Elf32_Dyn", (
    ("tag", "i"),
    ("val", "I"),
))

_REL32 = RecordLayout("Elf32_Rel", (
    ("offset", "I"),
    ("info", "I"),
))

_RELA32 = RecordLayout("Elf32_Rela", (
    ("offset", "I"),
    ("info", "I"),
    ("addend", "i"),
))

# ---------------------------------------------------------------------------
# ELF64
# ---------------------------------------------------------------------------

# Elf64_Ehdr from e_type on (offset 16); 48 bytes
_EHDR64 = RecordLayout("Elf64_Ehdr", (
    ("type", "H"),
    ("machine", "H"),
    ("version", "I"),
    ("entry", "Q"),
    ("phoff", "Q"),
    ("shoff", "Q"),
    ("flags", "I"),
    ("ehsize", "H"),
    ("phentsize", "H"),
    ("phnum", "H"),
    ("shentsize", "H"),
    ("shnum", "H"),
    ("shstrndx", "H"),
))

# Elf64_Phdr: 56 bytes, flags right after type
_PHDR64 = RecordLayout("Elf64_Phdr", (
    ("type", "I"),
    ("flags", "I"),
    ("offset", "Q"),
    ("vaddr", "Q"),
    ("paddr", "Q"),
    ("filesz", "Q"),
    ("memsz", "Q"),
    ("align", "Q"),
))

# Elf64_Shdr: 64 bytes
_SHDR64 = RecordLayout("Elf64_Shdr", (
    ("name", "I"),
    ("type", "I"),
    ("flags", "Q"),
    ("addr", "Q"),
    ("offset", "Q"),
    ("size", "Q"),
    ("link", "I"),
    ("info", "I"),
    ("addralign", "Q"),
    ("entsize", "Q"),
))

# Elf64_Sym: 24 bytes, info/other/shndx before value
_SYM64 = RecordLayout("Elf64_Sym", (
    ("name", "I"),
    ("info", "B"),
    ("other", "B"),
    ("shndx", "H"),
    ("value", "Q"),
    ("size", "Q"),
))

_DYN64 = RecordLayout("Elf64_Dyn", (
    ("tag", "q"),
    ("val", "Q"),
))

_REL64 = RecordLayout("Elf64_Rel", (
    ("offset", "Q"),
    ("info", "Q"),
))

_RELA64 = RecordLayout("Elf64_Rela", (
    ("offset", "Q"),
    ("info", "Q"),
    ("addend", "q"),
))


LAYOUTS: dict[AddressWidth, LayoutSet] = {
    AddressWidth.BITS_32: LayoutSet(
        width=AddressWidth.BITS_32,
        file_header=_EHDR32,
        program_header=_PHDR32,
        section_header=_SHDR32,
        symbol=_SYM32,
        dynamic=_DYN32,
        rel=_REL32,
        rela=_RELA32,
    ),
    AddressWidth.BITS_64: LayoutSet(
        width=AddressWidth.BITS_64,
        file_header=_EHDR64,
        program_header=_PHDR64,
        section_header=_SHDR64,
        symbol=_SYM64,
        dynamic=_DYN64,
        rel=_REL64,
        rela=_RELA64,
    ),
}
