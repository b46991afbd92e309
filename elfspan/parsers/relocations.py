"""
Relocation Table Decoder
========================

Decodes REL and RELA sections.  Four record shapes: 8/12 bytes for
``Elf32_Rel``/``Elf32_Rela`` and 16/24 bytes for the 64-bit forms.  Only
RELA entries carry an addend.

``r_info`` packs the symbol index and the relocation type at a
width-dependent position:

    ELF32: symbol = info >> 8,  type = info & 0xff
    ELF64: symbol = info >> 32, type = info & 0xffffffff

The section's ``sh_link`` names the symbol table used to resolve the
index.  Index zero means no symbol; an index past the end of the linked
table resolves to no symbol and is recorded.
"""

from __future__ import annotations

from typing import Mapping, Optional

from elfspan.core.models import (
    AddressWidth,
    AnomalyKind,
    RelocationEntry,
    RelocationTable,
    SectionHeaderEntry,
    SpanValue,
    SymbolTable,
)
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext

_RELOCATION_SECTION_TYPES: frozenset[int] = frozenset({C.SHT_REL, C.SHT_RELA})

# (symbol shift, type mask) per width
_INFO_SPLIT: dict[AddressWidth, tuple[int, int]] = {
    AddressWidth.BITS_32: (8, 0xFF),
    AddressWidth.BITS_64: (32, 0xFFFFFFFF),
}


def split_info(info: SpanValue, width: AddressWidth) -> tuple[SpanValue, SpanValue]:
    """Split ``r_info`` into ``(symbol_index, relocation_type)``."""
    shift, mask = _INFO_SPLIT[width]
    return (
        SpanValue(value=info.value >> shift, span=info.span),
        SpanValue(value=info.value & mask, span=info.span),
    )


def _linked_symbol_table(
    ctx: DecodeContext,
    section: SectionHeaderEntry,
    sections: tuple[SectionHeaderEntry, ...],
    symbol_tables: Mapping[int, SymbolTable],
) -> Optional[SymbolTable]:
    link = section.link.value
    if link == C.SHN_UNDEF:
        return None
    if link >= len(sections):
        ctx.anomaly(
            AnomalyKind.LINK_OUT_OF_RANGE,
            f"relocation section {section.index}: link {link} is outside the "
            f"section table ({len(sections)} entries)",
            offset=section.link.span.offset,
            section_index=section.index,
        )
        return None
    symtab = symbol_tables.get(link)
    if symtab is None:
        target = sections[link]
        ctx.anomaly(
            AnomalyKind.LINK_WRONG_TYPE,
            f"relocation section {section.index}: link {link} names a "
            f"{target.type_name} section, not a symbol table",
            offset=section.link.span.offset,
            section_index=section.index,
        )
    return symtab


def decode_relocation_table(
    ctx: DecodeContext,
    section: SectionHeaderEntry,
    sections: tuple[SectionHeaderEntry, ...],
    symbol_tables: Mapping[int, SymbolTable],
) -> RelocationTable:
    """Decode one REL or RELA section.

    Args:
        ctx: Decode context.
        section: The REL or RELA section.
        sections: The full section table.
        symbol_tables: Already-decoded symbol tables keyed by section index.
    """
    is_rela = section.section_type.value == C.SHT_RELA
    kind = "RELA" if is_rela else "REL"
    label = f"{kind} section {section.index}"
    layout = ctx.layouts.rela if is_rela else ctx.layouts.rel
    size = 0 if section.is_nobits else section.size.value
    width = ctx.reader.address_width

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
    symtab = _linked_symbol_table(ctx, section, sections, symbol_tables)

    entries: list[RelocationEntry] = []
    for i, entry_span, rec in ctx.table_rows(
        label, layout, section.file_offset.value, stride, count,
        section_index=section.index,
    ):
        symbol_index, relocation_type = split_info(rec["info"], width)
        symbol_name = None
        if symbol_index.value != 0 and symtab is not None:
            symbol = symtab.get(symbol_index.value)
            if symbol is None:
                ctx.anomaly(
                    AnomalyKind.SYMBOL_INDEX_OUT_OF_RANGE,
                    f"{label} entry {i}: symbol index {symbol_index.value} is "
                    f"outside symbol table section {symtab.section_index} "
                    f"({len(symtab.entries)} entries)",
                    offset=rec["info"].span.offset,
                    section_index=section.index,
                )
            else:
                symbol_name = symbol.name

        entries.append(
            RelocationEntry(
                index=i,
                entry_span=entry_span,
                target_offset=rec["offset"],
                info=rec["info"],
                symbol_index=symbol_index,
                relocation_type=relocation_type,
                addend=rec["addend"] if is_rela else None,
                symbol_name=symbol_name,
            )
        )

    return RelocationTable(
        section_index=section.index,
        name=section.name,
        is_rela=is_rela,
        symbol_table_index=section.link.value,
        target_section_index=section.info.value,
        span=span,
        entries=tuple(entries),
    )


def decode_relocation_tables(
    ctx: DecodeContext,
    sections: tuple[SectionHeaderEntry, ...],
    symbol_tables: tuple[SymbolTable, ...],
) -> tuple[RelocationTable, ...]:
    by_index = {table.section_index: table for table in symbol_tables}
    tables = tuple(
        decode_relocation_table(ctx, sec, sections, by_index)
        for sec in sections
        if sec.section_type.value in _RELOCATION_SECTION_TYPES
    )
    ctx.logger.debug(
        "Decoded %d relocation table(s), %d relocation(s)",
        len(tables),
        sum(len(t.entries) for t in tables),
    )
    return tables
