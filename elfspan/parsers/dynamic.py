"""
Dynamic Section Decoder
=======================

Decodes ``Elf32_Dyn`` / ``Elf64_Dyn`` tag/value pairs.  ``d_tag`` is
signed and ``d_val`` unsigned, both address-sized.

Enumeration stops at the first DT_NULL entry, which is kept, or at the
end of the section.  Reaching the end without a terminator is recorded
as an anomaly.

Values of DT_NEEDED, DT_SONAME, DT_RPATH and DT_RUNPATH are offsets into
the string table named by the section's ``sh_link`` and are resolved to
text when ``resolve_dynamic_strings`` is set.
"""

from __future__ import annotations

from elfspan.core.models import (
    AnomalyKind,
    DynamicEntry,
    DynamicTable,
    SectionHeaderEntry,
)
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext
from elfspan.parsers.strings import resolver_for_link


def decode_dynamic_table(
    ctx: DecodeContext,
    section: SectionHeaderEntry,
    sections: tuple[SectionHeaderEntry, ...],
) -> DynamicTable:
    label = f"dynamic section {section.index}"
    layout = ctx.layouts.dynamic
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
    resolver = None
    if ctx.settings.resolve_dynamic_strings:
        resolver = resolver_for_link(ctx, section, sections)

    entries: list[DynamicEntry] = []
    terminated = False
    for i, entry_span, rec in ctx.table_rows(
        label, layout, section.file_offset.value, stride, count,
        section_index=section.index,
    ):
        tag, value = rec["tag"], rec["val"]
        string_value = None
        if resolver is not None and tag.value in C.DT_STRING_TAGS:
            string_value, _ = resolver.lookup(
                value.value, f"{label} entry {i} ({C.describe_dynamic_tag(tag.value)})"
            )
        entries.append(
            DynamicEntry(
                index=i,
                entry_span=entry_span,
                tag=tag,
                value=value,
                string_value=string_value,
            )
        )
        if tag.value == C.DT_NULL:
            terminated = True
            break

    if not terminated:
        ctx.anomaly(
            AnomalyKind.UNTERMINATED_DYNAMIC,
            f"{label}: no DT_NULL terminator within {len(entries)} entries",
            offset=span.end,
            section_index=section.index,
        )

    return DynamicTable(
        section_index=section.index,
        name=section.name,
        string_table_index=section.link.value,
        span=span,
        entries=tuple(entries),
        terminated=terminated,
    )


def decode_dynamic_tables(
    ctx: DecodeContext, sections: tuple[SectionHeaderEntry, ...]
) -> tuple[DynamicTable, ...]:
    tables = tuple(
        decode_dynamic_table(ctx, sec, sections)
        for sec in sections
        if sec.section_type.value == C.SHT_DYNAMIC
    )
    ctx.logger.debug("Decoded %d dynamic table(s)", len(tables))
    return tables
