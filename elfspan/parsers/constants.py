"""
ELF Constants and Lookup Tables
=================================

Numeric constants from the System V gABI and the read-only lookup tables
that turn them into display names.  Unknown values never raise: they are
rendered as ``"Unknown (0x..)"`` so a presentation layer can still show
the raw number.

The tables are built once at import time and never mutated, so they can
be shared freely between concurrent decode calls.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
    - Linux man page: elf(5).
"""

from __future__ import annotations

from typing import Mapping


# ---------------------------------------------------------------------------
# Identification
# ---------------------------------------------------------------------------

ELF_MAGIC: bytes = b"\x7fELF"

EI_CLASS: int = 4
EI_DATA: int = 5
EI_VERSION: int = 6
EI_OSABI: int = 7
EI_ABIVERSION: int = 8
EI_NIDENT: int = 16

ELFCLASS32: int = 1
ELFCLASS64: int = 2

ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian

# Header sizes implied by the class byte
EHDR32_SIZE: int = 52
EHDR64_SIZE: int = 64

_OSABI_NAMES: dict[int, str] = {
    0: "SYSV",
    1: "HPUX",
    2: "NetBSD",
    3: "Linux",
    4: "GNU Hurd",
    6: "Solaris",
    7: "AIX",
    8: "IRIX",
    9: "FreeBSD",
    10: "Tru64",
    11: "Novell Modesto",
    12: "OpenBSD",
    13: "OpenVMS",
    14: "NonStop Kernel",
    15: "AROS",
    16: "FenixOS",
    17: "CloudABI",
    97: "ARM",
    255: "Standalone",
}

# ---------------------------------------------------------------------------
# Object file type / machine
# ---------------------------------------------------------------------------

ET_NONE: int = 0
ET_REL: int = 1
ET_EXEC: int = 2
ET_DYN: int = 3
ET_CORE: int = 4

_ET_NAMES: dict[int, str] = {
    ET_NONE: "NONE",
    ET_REL: "REL",
    ET_EXEC: "EXEC",
    ET_DYN: "DYN",
    ET_CORE: "CORE",
}

_EM_NAMES: dict[int, str] = {
    0: "None",
    2: "SPARC",
    3: "x86",
    6: "Intel 80486",
    7: "Intel 80860",
    8: "MIPS",
    20: "PowerPC",
    21: "PowerPC64",
    22: "S390",
    40: "ARM",
    42: "SuperH",
    43: "SPARC V9",
    50: "IA-64",
    62: "x86_64",
    183: "AArch64",
    243: "RISC-V",
    247: "BPF",
    258: "LoongArch",
}

# ---------------------------------------------------------------------------
# Program header (segment) types and flags
# ---------------------------------------------------------------------------

PT_NULL: int = 0
PT_LOAD: int = 1
PT_DYNAMIC: int = 2
PT_INTERP: int = 3
PT_NOTE: int = 4
PT_SHLIB: int = 5
PT_PHDR: int = 6
PT_TLS: int = 7
PT_GNU_EH_FRAME: int = 0x6474E550
PT_GNU_STACK: int = 0x6474E551
PT_GNU_RELRO: int = 0x6474E552
PT_GNU_PROPERTY: int = 0x6474E553

_PT_NAMES: dict[int, str] = {
    PT_NULL: "NULL",
    PT_LOAD: "LOAD",
    PT_DYNAMIC: "DYNAMIC",
    PT_INTERP: "INTERP",
    PT_NOTE: "NOTE",
    PT_SHLIB: "SHLIB",
    PT_PHDR: "PHDR",
    PT_TLS: "TLS",
    PT_GNU_EH_FRAME: "GNU_EH_FRAME",
    PT_GNU_STACK: "GNU_STACK",
    PT_GNU_RELRO: "GNU_RELRO",
    PT_GNU_PROPERTY: "GNU_PROPERTY",
}

PF_X: int = 0x1
PF_W: int = 0x2
PF_R: int = 0x4

# ---------------------------------------------------------------------------
# Section header types, flags and special indices
# ---------------------------------------------------------------------------

SHT_NULL: int = 0
SHT_PROGBITS: int = 1
SHT_SYMTAB: int = 2
SHT_STRTAB: int = 3
SHT_RELA: int = 4
SHT_HASH: int = 5
SHT_DYNAMIC: int = 6
SHT_NOTE: int = 7
SHT_NOBITS: int = 8
SHT_REL: int = 9
SHT_SHLIB: int = 10
SHT_DYNSYM: int = 11
SHT_INIT_ARRAY: int = 14
SHT_FINI_ARRAY: int = 15
SHT_PREINIT_ARRAY: int = 16
SHT_GROUP: int = 17
SHT_SYMTAB_SHNDX: int = 18
SHT_GNU_HASH: int = 0x6FFFFFF6
SHT_GNU_VERDEF: int = 0x6FFFFFFD
SHT_GNU_VERNEED: int = 0x6FFFFFFE
SHT_GNU_VERSYM: int = 0x6FFFFFFF

_SHT_NAMES: dict[int, str] = {
    SHT_NULL: "NULL",
    SHT_PROGBITS: "PROGBITS",
    SHT_SYMTAB: "SYMTAB",
    SHT_STRTAB: "STRTAB",
    SHT_RELA: "RELA",
    SHT_HASH: "HASH",
    SHT_DYNAMIC: "DYNAMIC",
    SHT_NOTE: "NOTE",
    SHT_NOBITS: "NOBITS",
    SHT_REL: "REL",
    SHT_SHLIB: "SHLIB",
    SHT_DYNSYM: "DYNSYM",
    SHT_INIT_ARRAY: "INIT_ARRAY",
    SHT_FINI_ARRAY: "FINI_ARRAY",
    SHT_PREINIT_ARRAY: "PREINIT_ARRAY",
    SHT_GROUP: "GROUP",
    SHT_SYMTAB_SHNDX: "SYMTAB_SHNDX",
    SHT_GNU_HASH: "GNU_HASH",
    SHT_GNU_VERDEF: "GNU_VERDEF",
    SHT_GNU_VERNEED: "GNU_VERNEED",
    SHT_GNU_VERSYM: "GNU_VERSYM",
}

# (bit, letter) pairs in readelf order
_SHF_LETTERS: tuple[tuple[int, str], ...] = (
    (0x1, "W"),    # SHF_WRITE
    (0x2, "A"),    # SHF_ALLOC
    (0x4, "X"),    # SHF_EXECINSTR
    (0x10, "M"),   # SHF_MERGE
    (0x20, "S"),   # SHF_STRINGS
    (0x40, "I"),   # SHF_INFO_LINK
    (0x80, "L"),   # SHF_LINK_ORDER
    (0x100, "O"),  # SHF_OS_NONCONFORMING
    (0x200, "G"),  # SHF_GROUP
    (0x400, "T"),  # SHF_TLS
)

SHN_UNDEF: int = 0
SHN_ABS: int = 0xFFF1
SHN_COMMON: int = 0xFFF2
SHN_XINDEX: int = 0xFFFF

_SHN_NAMES: dict[int, str] = {
    SHN_UNDEF: "UND",
    SHN_ABS: "ABS",
    SHN_COMMON: "COM",
    SHN_XINDEX: "XINDEX",
}

# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------

_STB_NAMES: dict[int, str] = {
    0: "LOCAL",
    1: "GLOBAL",
    2: "WEAK",
    10: "GNU_UNIQUE",
}

_STT_NAMES: dict[int, str] = {
    0: "NOTYPE",
    1: "OBJECT",
    2: "FUNC",
    3: "SECTION",
    4: "FILE",
    5: "COMMON",
    6: "TLS",
    10: "GNU_IFUNC",
}

_STV_NAMES: dict[int, str] = {
    0: "DEFAULT",
    1: "INTERNAL",
    2: "HIDDEN",
    3: "PROTECTED",
}

# ---------------------------------------------------------------------------
# Dynamic tags
# ---------------------------------------------------------------------------

DT_NULL: int = 0
DT_NEEDED: int = 1
DT_SONAME: int = 14
DT_RPATH: int = 15
DT_RUNPATH: int = 29

# Tags whose value is an offset into the dynamic string table
DT_STRING_TAGS: frozenset[int] = frozenset({DT_NEEDED, DT_SONAME, DT_RPATH, DT_RUNPATH})

_DT_NAMES: dict[int, str] = {
    DT_NULL: "NULL",
    DT_NEEDED: "NEEDED",
    2: "PLTRELSZ",
    3: "PLTGOT",
    4: "HASH",
    5: "STRTAB",
    6: "SYMTAB",
    7: "RELA",
    8: "RELASZ",
    9: "RELAENT",
    10: "STRSZ",
    11: "SYMENT",
    12: "INIT",
    13: "FINI",
    DT_SONAME: "SONAME",
    DT_RPATH: "RPATH",
    16: "SYMBOLIC",
    17: "REL",
    18: "RELSZ",
    19: "RELENT",
    20: "PLTREL",
    21: "DEBUG",
    22: "TEXTREL",
    23: "JMPREL",
    24: "BIND_NOW",
    25: "INIT_ARRAY",
    26: "FINI_ARRAY",
    27: "INIT_ARRAYSZ",
    28: "FINI_ARRAYSZ",
    DT_RUNPATH: "RUNPATH",
    30: "FLAGS",
    32: "PREINIT_ARRAY",
    33: "PREINIT_ARRAYSZ",
    34: "SYMTAB_SHNDX",
    0x6FFFFEF5: "GNU_HASH",
    0x6FFFFFF0: "VERSYM",
    0x6FFFFFF9: "RELACOUNT",
    0x6FFFFFFA: "RELCOUNT",
    0x6FFFFFFB: "FLAGS_1",
    0x6FFFFFFC: "VERDEF",
    0x6FFFFFFD: "VERDEFNUM",
    0x6FFFFFFE: "VERNEED",
    0x6FFFFFFF: "VERNEEDNUM",
}


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------

def unknown(value: int) -> str:
    """Render a value that has no entry in its lookup table."""
    if value < 0:
        return f"Unknown (-0x{-value:x})"
    return f"Unknown (0x{value:x})"


def _lookup(table: Mapping[int, str], value: int) -> str:
    name = table.get(value)
    return name if name is not None else unknown(value)


def describe_osabi(value: int) -> str:
    return _lookup(_OSABI_NAMES, value)


def describe_object_type(value: int) -> str:
    return _lookup(_ET_NAMES, value)


def describe_machine(value: int) -> str:
    return _lookup(_EM_NAMES, value)


def describe_segment_type(value: int) -> str:
    return _lookup(_PT_NAMES, value)


def describe_section_type(value: int) -> str:
    return _lookup(_SHT_NAMES, value)


def describe_dynamic_tag(value: int) -> str:
    return _lookup(_DT_NAMES, value)


def describe_symbol_binding(value: int) -> str:
    return _lookup(_STB_NAMES, value)


def describe_symbol_type(value: int) -> str:
    return _lookup(_STT_NAMES, value)


def describe_symbol_visibility(value: int) -> str:
    return _lookup(_STV_NAMES, value)


def describe_section_index(value: int) -> str:
    """Render a symbol's ``st_shndx``: a reserved name or the plain index."""
    name = _SHN_NAMES.get(value)
    return name if name is not None else str(value)


def segment_flags_str(flags: int) -> str:
    """Convert program header flags to a fixed-width ``"RWX"`` string.

    Args:
        flags: Program header flags value (p_flags).

    Returns:
        String like ``"R-X"`` for Read+Execute.
    """
    return (
        ("R" if flags & PF_R else "-")
        + ("W" if flags & PF_W else "-")
        + ("X" if flags & PF_X else "-")
    )


def section_flags_str(flags: int) -> str:
    """Convert section flags bitmask to a readable string.

    Args:
        flags: Section header flags value (sh_flags).

    Returns:
        String like ``"WAX"`` for Write+Alloc+Exec, ``"-"`` when no
        known bit is set.
    """
    parts = [letter for bit, letter in _SHF_LETTERS if flags & bit]
    return "".join(parts) if parts else "-"
