"""
Symbol Table Decoder
====================

Decodes SYMTAB and DYNSYM sections.  ``Elf32_Sym`` and ``Elf64_Sym``
order their fields differently; see :mod:`elfspan.parsers.layouts`.

``st_info`` packs binding (high nibble) and type (low nibble) into one
byte, so both decoded values carry the span of that byte.  Visibility is
the low two bits of ``st_other`` and carries its span.

Every slot is kept so that relocation symbol indices stay valid.  Slots
with an empty name and a zero value are hidden from
:attr:`SymbolTable.symbols` when ``exclude_unused_symbols`` is set.
"""

from __future__ import annotations

from elfspan.core.models import (
    AnomalyKind,
    SectionHeaderEntry,
    SpanValue,
    SymbolEntry,
    SymbolTable,
)
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext
from elfspan.parsers.strings import resolver_for_link

_SYMBOL_SECTION_TYPES: frozenset[int] = frozenset({C.SHT_SYMTAB, C.SHT_DYNSYM})

_FALLBACK_NAMES: dict[int, str] = {
    C.SHT_SYMTAB: ".symtab",
    C.SHT_DYNSYM: ".dynsym",
}


def split_info(info: SpanValue) -> tuple[SpanValue, SpanValue]:
    """Split ``st_info`` into ``(binding, type)``, both on the info span."""
    return (
        SpanValue(value=info.value >> 4, span=info.span),
        SpanValue(value=info.value & 0xF, span=info.span),
    )


def visibility_of(other: SpanValue) -> SpanValue:
    return SpanValue(value=other.value & 0x3, span=other.span)


def decode_symbol_table(
    ctx: DecodeContext,
    section: SectionHeaderEntry,
    sections: tuple[SectionHeaderEntry, ...],
) -> SymbolTable:
    """Decode one symbol table section.

    Args:
        ctx: Decode context.
        section: The SYMTAB or DYNSYM section.
        sections: The full section table, for the ``sh_link`` string table.

    Returns:
        The decoded table; every slot is present in ``entries``.
    """
    section_type = section.section_type.value
    label = f"symbol table section {section.index}"
    layout = ctx.layouts.symbol
    size = 0 if section.is_nobits else section.size.value

    stride = ctx.entry_stride(
        section.entry_size.value,
        layout,
        label,
        offset=section.entry_size.span.offset,
        section_index=section.index,
    )
    count, remainder = divmod(size, stride)
    if remainder:
        ctx.anomaly(
            AnomalyKind.PARTIAL_ENTRY,
            f"{label}: size 0x{size:x} is not a multiple of entry size "
            f"{stride}; trailing {remainder} byte(s) ignored",
            offset=section.file_offset.value + count * stride,
            section_index=section.index,
        )

    span = ctx.data_span(section.file_offset.value, size, label, section_index=section.index)
    resolver = resolver_for_link(ctx, section, sections)

    entries: list[SymbolEntry] = []
    for i, entry_span, rec in ctx.table_rows(
        label, layout, section.file_offset.value, stride, count,
        section_index=section.index,
    ):
        name_index = rec["name"]
        name, name_span = "", None
        if resolver is not None and name_index.value != 0:
            name, name_span = resolver.lookup(name_index.value, f"{label} symbol {i}")

        binding, symbol_type = split_info(rec["info"])
        entries.append(
            SymbolEntry(
                index=i,
                entry_span=entry_span,
                name_index=name_index,
                name=name,
                name_span=name_span,
                value=rec["value"],
                size=rec["size"],
                info=rec["info"],
                binding=binding,
                symbol_type=symbol_type,
                other=rec["other"],
                visibility=visibility_of(rec["other"]),
                section_index=rec["shndx"],
            )
        )

    return SymbolTable(
        section_index=section.index,
        name=section.name or _FALLBACK_NAMES.get(section_type, ""),
        section_type=section_type,
        string_table_index=section.link.value,
        span=span,
        entries=tuple(entries),
        excludes_unused=ctx.settings.exclude_unused_symbols,
    )


def decode_symbol_tables(
    ctx: DecodeContext, sections: tuple[SectionHeaderEntry, ...]
) -> tuple[SymbolTable, ...]:
    tables = tuple(
        decode_symbol_table(ctx, sec, sections)
        for sec in sections
        if sec.section_type.value in _SYMBOL_SECTION_TYPES
    )
    ctx.logger.debug(
        "Decoded %d symbol table(s), %d symbol(s)",
        len(tables),
        sum(len(t.entries) for t in tables),
    )
    return tables
