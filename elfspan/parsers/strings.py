"""
String Table Decoder
====================

Two jobs over STRTAB sections:

    - :func:`decode_string_tables` enumerates every non-empty NUL-terminated
      run in each STRTAB section.
    - :class:`StringResolver` looks up a single name by index, for section
      names, symbol names and dynamic string values.

Both stay inside the section's declared extent clipped to the buffer end.
A run with no terminator is cut at that boundary and still returned,
flagged as truncated.
"""

from __future__ import annotations

from typing import Optional

from elfspan.core.models import (
    AnomalyKind,
    FieldSpan,
    SectionHeaderEntry,
    StringTable,
    StringTableEntry,
)
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext


# ---------------------------------------------------------------------------
# Name lookup
# ---------------------------------------------------------------------------

class StringResolver:
    """Resolve ``name_index`` values against one string table section.

    Lookups are cached per index, so resolving the same index twice
    returns the same string and records any anomaly once.
    """

    def __init__(self, ctx: DecodeContext, section: SectionHeaderEntry) -> None:
        self._ctx = ctx
        self._section_index = section.index
        self._start = section.file_offset.value
        self._size = 0 if section.is_nobits else section.size.value
        self._limit = min(self._start + self._size, ctx.reader.length)
        self._cache: dict[int, tuple[str, Optional[FieldSpan]]] = {}

    @property
    def section_index(self) -> int:
        return self._section_index

    def lookup(self, index: int, label: str) -> tuple[str, Optional[FieldSpan]]:
        """Return ``(text, span)`` for the string at *index*.

        An index outside the table yields ``("", None)`` and an anomaly.
        """
        cached = self._cache.get(index)
        if cached is not None:
            return cached

        position = self._start + index
        if index >= self._size or position >= self._limit:
            self._ctx.anomaly(
                AnomalyKind.NAME_INDEX_OUT_OF_RANGE,
                f"{label}: name index 0x{index:x} is outside string table "
                f"section {self._section_index} (size 0x{self._size:x})",
                offset=position,
                section_index=self._section_index,
            )
            result: tuple[str, Optional[FieldSpan]] = ("", None)
        else:
            text, span, terminated = self._ctx.reader.cstring(
                position, self._limit, self._ctx.settings.string_encoding
            )
            if not terminated:
                self._ctx.anomaly(
                    AnomalyKind.TRUNCATED_STRING,
                    f"{label}: name at 0x{position:x} runs to the end of "
                    f"string table section {self._section_index}",
                    offset=position,
                    section_index=self._section_index,
                )
            result = (text, span)

        self._cache[index] = result
        return result


def resolver_for_link(
    ctx: DecodeContext,
    owner: SectionHeaderEntry,
    sections: tuple[SectionHeaderEntry, ...],
) -> Optional[StringResolver]:
    """Build a resolver for the string table *owner*'s ``sh_link`` names."""
    link = owner.link.value
    if link >= len(sections):
        ctx.anomaly(
            AnomalyKind.LINK_OUT_OF_RANGE,
            f"section {owner.index} ({owner.name or owner.type_name}): link "
            f"{link} is outside the section table ({len(sections)} entries)",
            offset=owner.link.span.offset,
            section_index=owner.index,
        )
        return None
    if link == C.SHN_UNDEF:
        return None
    target = sections[link]
    if target.section_type.value != C.SHT_STRTAB:
        ctx.anomaly(
            AnomalyKind.LINK_WRONG_TYPE,
            f"section {owner.index} ({owner.name or owner.type_name}): link "
            f"{link} names a {target.type_name} section, not a string table",
            offset=owner.link.span.offset,
            section_index=owner.index,
        )
        return None
    return StringResolver(ctx, target)


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------

def decode_string_table(ctx: DecodeContext, section: SectionHeaderEntry) -> StringTable:
    """Enumerate the non-empty strings of one STRTAB section."""
    declared = section.size.value
    span = ctx.data_span(
        section.file_offset.value,
        declared,
        f"string table section {section.index}",
        section_index=section.index,
    )
    start, end = ctx.clipped_extent(span.offset, declared)

    cap = ctx.settings.max_table_entries
    entries: list[StringTableEntry] = []
    pos = start
    while pos < end:
        text, run, terminated = ctx.reader.cstring(
            pos, end, ctx.settings.string_encoding
        )
        if terminated and run.size == 1:
            pos += 1
            continue
        if len(entries) >= cap:
            ctx.anomaly(
                AnomalyKind.TABLE_TRUNCATED,
                f"string table section {section.index}: more than {cap} strings",
                offset=pos,
                section_index=section.index,
            )
            break
        if not terminated:
            ctx.anomaly(
                AnomalyKind.TRUNCATED_STRING,
                f"string table section {section.index}: string at 0x{pos:x} "
                f"has no terminator before 0x{end:x}",
                offset=pos,
                section_index=section.index,
            )
        entries.append(
            StringTableEntry(
                text=text,
                offset=run.offset,
                length=run.size,
                truncated=not terminated,
            )
        )
        pos = run.end

    return StringTable(
        section_index=section.index,
        name=section.name,
        span=span,
        entries=tuple(entries),
    )


def decode_string_tables(
    ctx: DecodeContext, sections: tuple[SectionHeaderEntry, ...]
) -> tuple[StringTable, ...]:
    tables = tuple(
        decode_string_table(ctx, sec)
        for sec in sections
        if sec.section_type.value == C.SHT_STRTAB
    )
    ctx.logger.debug("Decoded %d string table(s)", len(tables))
    return tables
