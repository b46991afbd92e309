"""
Program Header Table Decoder
============================

Decodes the segment table.  The 32-bit and 64-bit ``Phdr`` records put
``p_flags`` in different places (last vs. right after ``p_type``), so
each width has its own layout in :mod:`elfspan.parsers.layouts`.

A segment with ``p_filesz > 0`` also gets a ``segment_data`` span
covering its on-disk bytes.
"""

from __future__ import annotations

from typing import Optional

from elfspan.core.errors import OutOfBoundsError
from elfspan.core.models import AnomalyKind, ElfHeader, ProgramHeaderEntry
from elfspan.parsers import constants as C
from elfspan.parsers.context import DecodeContext


def decode_program_headers(
    ctx: DecodeContext, header: ElfHeader
) -> tuple[ProgramHeaderEntry, ...]:
    """Decode every readable program header entry."""
    geometry = header.program_header_table
    table_offset = geometry.offset.value
    count = geometry.count.value
    if table_offset == 0 or count == 0:
        return ()

    layout = ctx.layouts.program_header
    stride = ctx.entry_stride(
        geometry.entry_size.value,
        layout,
        "program header table",
        offset=geometry.entry_size.span.offset,
    )

    entries: list[ProgramHeaderEntry] = []
    for i, entry_span, rec in ctx.table_rows(
        "program header table", layout, table_offset, stride, count
    ):
        filesz = rec["filesz"].value
        segment_data = None
        if filesz > 0:
            segment_data = ctx.data_span(
                rec["offset"].value, filesz, f"segment {i}"
            )
        entries.append(
            ProgramHeaderEntry(
                index=i,
                entry_span=entry_span,
                segment_type=rec["type"],
                flags=rec["flags"],
                file_offset=rec["offset"],
                virtual_address=rec["vaddr"],
                physical_address=rec["paddr"],
                file_size=rec["filesz"],
                memory_size=rec["memsz"],
                alignment=rec["align"],
                segment_data=segment_data,
            )
        )

    ctx.logger.debug("Decoded %d program header(s)", len(entries))
    return tuple(entries)


def read_interpreter(
    ctx: DecodeContext, segments: tuple[ProgramHeaderEntry, ...]
) -> Optional[str]:
    """Return the path named by the first PT_INTERP segment, if any."""
    for seg in segments:
        if seg.segment_type.value != C.PT_INTERP or seg.segment_data is None:
            continue
        span = seg.segment_data
        try:
            text, _, terminated = ctx.reader.cstring(
                span.offset, span.end, ctx.settings.string_encoding
            )
        except OutOfBoundsError:
            return None
        if not terminated:
            ctx.anomaly(
                AnomalyKind.TRUNCATED_STRING,
                f"segment {seg.index}: interpreter path is not NUL-terminated",
                offset=span.offset,
            )
        return text
    return None
