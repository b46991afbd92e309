"""
Section Header Table Decoder
============================

Decodes the section table and then resolves every section name in one
pass over the section named by ``e_shstrndx``.

Extended numbering from the gABI is honoured: when ``e_shnum`` is zero
and the table exists, the real count is ``sh_size`` of section 0; when
``e_shstrndx`` is ``SHN_XINDEX`` the real index is ``sh_link`` of
section 0.

NOBITS sections get no ``data_span``: their ``sh_size`` is a memory size
and must not be read as a byte range of the file.
"""

from __future__ import annotations

from elfspan.core.models import AnomalyKind, ElfHeader, SectionHeaderEntry
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext
from elfspan.parsers.strings import StringResolver


def decode_section_headers(
    ctx: DecodeContext, header: ElfHeader
) -> tuple[SectionHeaderEntry, ...]:
    """Decode every readable section header entry, names left empty."""
    geometry = header.section_header_table
    table_offset = geometry.offset.value
    if table_offset == 0:
        return ()

    layout = ctx.layouts.section_header
    count = geometry.count.value
    if count == 0:
        # Extended numbering: the count lives in section 0
        if not ctx.reader.in_bounds(table_offset, layout.size):
            return ()
        first = ctx.reader.read_record(layout, table_offset)
        count = first["size"].value
        if count == 0:
            return ()
        ctx.logger.debug("Extended section numbering: %d sections", count)

    stride = ctx.entry_stride(
        geometry.entry_size.value,
        layout,
        "section header table",
        offset=geometry.entry_size.span.offset,
    )

    entries: list[SectionHeaderEntry] = []
    for i, entry_span, rec in ctx.table_rows(
        "section header table", layout, table_offset, stride, count
    ):
        section_type = rec["type"].value
        size = rec["size"].value
        data_span = None
        if section_type != C.SHT_NOBITS and size > 0:
            data_span = ctx.data_span(
                rec["offset"].value, size, f"section {i}", section_index=i
            )
        entries.append(
            SectionHeaderEntry(
                index=i,
                entry_span=entry_span,
                name_index=rec["name"],
                section_type=rec["type"],
                flags=rec["flags"],
                virtual_address=rec["addr"],
                file_offset=rec["offset"],
                size=rec["size"],
                link=rec["link"],
                info=rec["info"],
                alignment=rec["addralign"],
                entry_size=rec["entsize"],
                data_span=data_span,
            )
        )

    ctx.logger.debug("Decoded %d section header(s)", len(entries))
    return tuple(entries)


def name_table_index(header: ElfHeader, sections: tuple[SectionHeaderEntry, ...]) -> int:
    """Return the effective section-name table index."""
    index = header.section_name_table_index.value
    if index == C.SHN_XINDEX and sections:
        return sections[0].link.value
    return index


def resolve_section_names(
    ctx: DecodeContext,
    header: ElfHeader,
    sections: tuple[SectionHeaderEntry, ...],
) -> tuple[SectionHeaderEntry, ...]:
    """Return *sections* with ``name`` and ``name_span`` filled in.

    Name index 0 is the empty name and is not looked up.

    An out-of-range name table index leaves every name empty and is
    recorded; it never fails the decode.
    """
    if not sections:
        return sections

    index = name_table_index(header, sections)
    if index == C.SHN_UNDEF:
        return sections
    if index >= len(sections):
        ctx.anomaly(
            AnomalyKind.NAME_TABLE_INDEX_OUT_OF_RANGE,
            f"section name table index {index} is outside the section "
            f"table ({len(sections)} entries); names left empty",
            offset=header.section_name_table_index.span.offset,
        )
        return sections

    resolver = StringResolver(ctx, sections[index])
    named: list[SectionHeaderEntry] = []
    for sec in sections:
        if sec.name_index.value == 0:
            named.append(sec)
            continue
        name, span = resolver.lookup(sec.name_index.value, f"section {sec.index}")
        named.append(sec.model_copy(update={"name": name, "name_span": span}))
    return tuple(named)
