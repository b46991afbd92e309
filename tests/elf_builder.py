"""
Synthetic ELF images for the test suite.

Packs records with explicit struct formats written out here, so the tests
do not share layout tables with the decoder they check.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional

SHT_NULL = 0
SHT_PROGBITS = 1
SHT_SYMTAB = 2
SHT_STRTAB = 3
SHT_RELA = 4
SHT_DYNAMIC = 6
SHT_NOBITS = 8
SHT_REL = 9
SHT_DYNSYM = 11

PT_LOAD = 1
PT_INTERP = 3

_FMT = {
    32: {
        "ehdr": "HHIIIIIHHHHHH",
        "phdr": "IIIIIIII",
        "shdr": "IIIIIIIIII",
        "sym": "IIIBBH",
        "dyn": "iI",
        "rel": "II",
        "rela": "IIi",
    },
    64: {
        "ehdr": "HHIQQQIHHHHHH",
        "phdr": "IIQQQQQQ",
        "shdr": "IIQQQQIIQQ",
        "sym": "IBBHQQ",
        "dyn": "qQ",
        "rel": "QQ",
        "rela": "QQq",
    },
}

EHDR_SIZE = {32: 52, 64: 64}
PHDR_SIZE = {32: 32, 64: 56}
SHDR_SIZE = {32: 40, 64: 64}
SYM_SIZE = {32: 16, 64: 24}
DYN_SIZE = {32: 8, 64: 16}
REL_SIZE = {32: 8, 64: 16}
RELA_SIZE = {32: 12, 64: 24}


def string_table(*names: str) -> tuple[bytes, dict[str, int]]:
    """Return ``(bytes, {name: offset})`` for a string table starting with NUL."""
    data = bytearray(b"\x00")
    offsets: dict[str, int] = {"": 0}
    for name in names:
        offsets[name] = len(data)
        data += name.encode() + b"\x00"
    return bytes(data), offsets


@dataclass
class _Segment:
    p_type: int
    flags: int
    offset: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    align: int
    section: Optional[str] = None


@dataclass
class _Section:
    name: str
    sh_type: int
    data: bytes
    flags: int = 0
    addr: int = 0
    link: int = 0
    info: int = 0
    align: int = 1
    entsize: int = 0
    size: Optional[int] = None
    offset: Optional[int] = None
    # filled in by build()
    final_offset: int = 0
    final_size: int = 0


@dataclass
class ElfBuilder:
    """Assemble an ELF image section by section.

    Sections are laid out after the header and program header table in
    the order they were added, unless an explicit ``offset`` is given.
    A ``.shstrtab`` is appended automatically and indexed by
    ``e_shstrndx`` unless *shstrndx* overrides it.
    """

    bits: int = 64
    endian: str = "little"
    elf_type: int = 2
    machine: int = 62
    entry: int = 0x401000
    osabi: int = 0
    abi_version: int = 0
    flags: int = 0
    ehsize: Optional[int] = None
    phentsize: Optional[int] = None
    shentsize: Optional[int] = None
    shstrndx: Optional[int] = None
    with_shstrtab: bool = True
    pad_to: int = 0
    segments: list[_Segment] = field(default_factory=list)
    sections: list[_Section] = field(default_factory=list)

    @property
    def prefix(self) -> str:
        return "<" if self.endian == "little" else ">"

    def pack(self, kind: str, *values: int) -> bytes:
        return struct.pack(self.prefix + _FMT[self.bits][kind], *values)

    # ------------------------------------------------------------------ #
    #  Record helpers
    # ------------------------------------------------------------------ #

    def sym(
        self,
        name: int = 0,
        value: int = 0,
        size: int = 0,
        info: int = 0,
        other: int = 0,
        shndx: int = 0,
    ) -> bytes:
        if self.bits == 64:
            return self.pack("sym", name, info, other, shndx, value, size)
        return self.pack("sym", name, value, size, info, other, shndx)

    def dyn(self, tag: int, value: int) -> bytes:
        return self.pack("dyn", tag, value)

    def rel(self, offset: int, sym: int, rtype: int) -> bytes:
        return self.pack("rel", offset, self.r_info(sym, rtype))

    def rela(self, offset: int, sym: int, rtype: int, addend: int) -> bytes:
        return self.pack("rela", offset, self.r_info(sym, rtype), addend)

    def r_info(self, sym: int, rtype: int) -> int:
        if self.bits == 64:
            return (sym << 32) | (rtype & 0xFFFFFFFF)
        return (sym << 8) | (rtype & 0xFF)

    # ------------------------------------------------------------------ #
    #  Content
    # ------------------------------------------------------------------ #

    def add_segment(
        self,
        p_type: int,
        offset: int,
        filesz: int,
        *,
        flags: int = 4,
        vaddr: int = 0,
        paddr: Optional[int] = None,
        memsz: Optional[int] = None,
        align: int = 0x1000,
        section: Optional[str] = None,
    ) -> int:
        """Add a segment; with *section* its offset and size follow that section."""
        self.segments.append(
            _Segment(
                p_type, flags, offset, vaddr,
                vaddr if paddr is None else paddr,
                filesz,
                filesz if memsz is None else memsz,
                align,
                section,
            )
        )
        return len(self.segments) - 1

    def add_section(self, name: str, sh_type: int, data: bytes = b"", **kwargs) -> int:
        """Add a section and return its index (index 0 is the null section)."""
        self.sections.append(_Section(name, sh_type, data, **kwargs))
        return len(self.sections)

    # ------------------------------------------------------------------ #
    #  Assembly
    # ------------------------------------------------------------------ #

    def build(self) -> bytes:
        bits = self.bits
        sections = list(self.sections)
        shstr_index = None
        if self.with_shstrtab:
            names = [s.name for s in sections] + [".shstrtab"]
            shstr_data, _ = string_table(*dict.fromkeys(n for n in names if n))
            sections.append(_Section(".shstrtab", SHT_STRTAB, shstr_data))
            shstr_index = len(sections)
        _, name_offsets = string_table(
            *dict.fromkeys(s.name for s in sections if s.name)
        )

        ehsize = EHDR_SIZE[bits]
        phentsize = PHDR_SIZE[bits] if self.phentsize is None else self.phentsize
        shentsize = SHDR_SIZE[bits] if self.shentsize is None else self.shentsize

        body = bytearray(ehsize)
        phoff = len(body) if self.segments else 0
        body += bytes(max(phentsize, PHDR_SIZE[bits]) * len(self.segments))

        for sec in sections:
            if sec.offset is not None:
                if sec.offset > len(body):
                    body += bytes(sec.offset - len(body))
                start = sec.offset
            else:
                while len(body) % 8:
                    body.append(0)
                start = len(body)
            sec.final_offset = start
            if sec.sh_type == SHT_NOBITS:
                sec.final_size = sec.size or 0
                continue
            end = start + len(sec.data)
            if end > len(body):
                body += bytes(end - len(body))
            body[start:end] = sec.data
            sec.final_size = len(sec.data) if sec.size is None else sec.size

        while len(body) % 8:
            body.append(0)
        shoff = len(body)
        body += self.pack("shdr", *([0] * 10))
        for sec in sections:
            body += self.pack(
                "shdr",
                name_offsets[sec.name] if sec.name else 0,
                sec.sh_type,
                sec.flags,
                sec.addr,
                sec.final_offset,
                sec.final_size,
                sec.link,
                sec.info,
                sec.align,
                sec.entsize,
            )

        by_name = {sec.name: sec for sec in sections}
        for i, seg in enumerate(self.segments):
            if seg.section is not None:
                target = by_name[seg.section]
                seg.offset = target.final_offset
                seg.filesz = seg.memsz = target.final_size
            if bits == 64:
                rec = self.pack(
                    "phdr", seg.p_type, seg.flags, seg.offset, seg.vaddr,
                    seg.paddr, seg.filesz, seg.memsz, seg.align,
                )
            else:
                rec = self.pack(
                    "phdr", seg.p_type, seg.offset, seg.vaddr, seg.paddr,
                    seg.filesz, seg.memsz, seg.flags, seg.align,
                )
            pos = phoff + i * max(phentsize, PHDR_SIZE[bits])
            body[pos:pos + len(rec)] = rec

        shstrndx = self.shstrndx if self.shstrndx is not None else (shstr_index or 0)
        ident = bytearray(16)
        ident[0:4] = b"\x7fELF"
        ident[4] = 1 if bits == 32 else 2
        ident[5] = 1 if self.endian == "little" else 2
        ident[6] = 1
        ident[7] = self.osabi
        ident[8] = self.abi_version
        body[0:16] = ident
        body[16:ehsize] = self.pack(
            "ehdr",
            self.elf_type,
            self.machine,
            1,
            self.entry,
            phoff,
            shoff,
            self.flags,
            ehsize if self.ehsize is None else self.ehsize,
            phentsize if self.segments else 0,
            len(self.segments),
            shentsize,
            len(sections) + 1,
            shstrndx,
        )

        if len(body) < self.pad_to:
            body += bytes(self.pad_to - len(body))
        return bytes(body)


# ---------------------------------------------------------------------------
# Sample image
# ---------------------------------------------------------------------------

INTERP = "/lib/ld-linux.so.2"


def build_sample(bits: int, endian: str) -> bytes:
    """An executable with every table the decoder understands.

    Section indices:
        1 .interp  2 .dynstr  3 .dynsym  4 .dynamic  5 .text  6 .bss
        7 .strtab  8 .symtab  9 .rela.text  10 .rel.dyn  11 .shstrtab
    """
    b = ElfBuilder(bits=bits, endian=endian)

    b.add_section(".interp", SHT_PROGBITS, INTERP.encode() + b"\x00", flags=0x2)

    dynstr, dyn_off = string_table("libc.so.6", "libm.so.6", "libsample.so", "puts")
    dynstr_idx = b.add_section(".dynstr", SHT_STRTAB, dynstr, flags=0x2)

    dynsym = b.sym() + b.sym(name=dyn_off["puts"], info=0x12)
    dynsym_idx = b.add_section(
        ".dynsym", SHT_DYNSYM, dynsym, link=dynstr_idx, info=1,
        entsize=len(b.sym()), flags=0x2,
    )

    dynamic = (
        b.dyn(1, dyn_off["libc.so.6"])
        + b.dyn(1, dyn_off["libm.so.6"])
        + b.dyn(14, dyn_off["libsample.so"])
        + b.dyn(0, 0)
        + b.dyn(0, 0)
    )
    b.add_section(
        ".dynamic", SHT_DYNAMIC, dynamic, link=dynstr_idx,
        entsize=len(b.dyn(0, 0)), flags=0x3,
    )

    text_idx = b.add_section(".text", SHT_PROGBITS, b"\x90" * 32, flags=0x6, addr=0x401000)
    b.add_section(".bss", SHT_NOBITS, size=0x100, flags=0x3, addr=0x402000)

    strtab, str_off = string_table("main", "counter")
    strtab_idx = b.add_section(".strtab", SHT_STRTAB, strtab)
    symtab = (
        b.sym()
        + b.sym(name=str_off["main"], value=0x401000, size=32, info=0x12, shndx=text_idx)
        + b.sym(name=str_off["counter"], value=0x402000, size=4, info=0x01, other=2, shndx=6)
    )
    symtab_idx = b.add_section(
        ".symtab", SHT_SYMTAB, symtab, link=strtab_idx, info=1, entsize=len(b.sym()),
    )

    rela = b.rela(0x401004, 2, 2, -4) + b.rela(0x401010, 1, 4, 0x10)
    b.add_section(
        ".rela.text", SHT_RELA, rela, link=symtab_idx, info=text_idx,
        entsize=len(b.rela(0, 0, 0, 0)),
    )

    rel = b.rel(0x403000, 1, 7)
    b.add_section(
        ".rel.dyn", SHT_REL, rel, link=dynsym_idx, entsize=len(b.rel(0, 0, 0)),
    )

    b.add_segment(PT_INTERP, 0, 0, section=".interp")
    b.add_segment(PT_LOAD, 0, 0, flags=5, vaddr=0x401000, section=".text")
    return b.build()
