"""
Decode Context
==============

State shared by the table decoders during one decode call: the reader,
the layout set chosen by the header, the decoder settings, the logger
and the anomaly list.  A context is created per call and discarded with
it; nothing here outlives the decode.

:meth:`DecodeContext.table_rows` holds the loop policy every table
decoder follows: entry-size substitution, clipping to the buffer, and
the ``max_table_entries`` cap.
"""

from __future__ import annotations

from typing import Iterator, Optional

from shared.config import DecoderConfig
from shared.logger import SpanLogger

from elfspan.core.models import Anomaly, AnomalyKind, FieldSpan, SpanValue
from elfspan.parsers.layouts import LayoutSet, RecordLayout
from elfspan.parsers.reader import PrimitiveReader


class DecodeContext:
    """Per-call decode state.

    Args:
        reader: Reader configured for the file's width and byte order.
        layouts: Record layouts for the file's width.
        settings: Decoder policy knobs.
        logger: Where anomalies and progress are logged.
    """

    def __init__(
        self,
        reader: PrimitiveReader,
        layouts: LayoutSet,
        settings: DecoderConfig,
        logger: SpanLogger,
    ) -> None:
        self.reader = reader
        self.layouts = layouts
        self.settings = settings
        self.logger = logger
        self.anomalies: list[Anomaly] = []

    # ------------------------------------------------------------------ #
    #  Anomalies
    # ------------------------------------------------------------------ #

    def anomaly(
        self,
        kind: AnomalyKind,
        message: str,
        *,
        offset: Optional[int] = None,
        section_index: Optional[int] = None,
    ) -> None:
        """Record a non-fatal irregularity and log it at WARNING."""
        self.anomalies.append(
            Anomaly(kind=kind, message=message, offset=offset, section_index=section_index)
        )
        self.logger.warning(
            message,
            anomaly=kind.value,
            offset=offset,
            section_index=section_index,
        )

    # ------------------------------------------------------------------ #
    #  Table iteration
    # ------------------------------------------------------------------ #

    def entry_stride(
        self,
        declared: int,
        layout: RecordLayout,
        label: str,
        *,
        offset: Optional[int] = None,
        section_index: Optional[int] = None,
    ) -> int:
        """Return the stride to use for a table whose entries use *layout*.

        A declared size of zero is replaced by the layout size, as is one
        too small to hold a whole record.  Both cases are recorded.
        """
        if declared == 0:
            self.anomaly(
                AnomalyKind.ZERO_ENTRY_SIZE,
                f"{label}: entry size is zero, using {layout.size}",
                offset=offset,
                section_index=section_index,
            )
            return layout.size
        if declared < layout.size:
            self.anomaly(
                AnomalyKind.ENTRY_SIZE_TOO_SMALL,
                f"{label}: entry size {declared} is smaller than "
                f"{layout.name} ({layout.size}), using {layout.size}",
                offset=offset,
                section_index=section_index,
            )
            return layout.size
        return declared

    def table_rows(
        self,
        label: str,
        layout: RecordLayout,
        offset: int,
        stride: int,
        count: int,
        *,
        section_index: Optional[int] = None,
    ) -> Iterator[tuple[int, FieldSpan, dict[str, SpanValue]]]:
        """Yield ``(index, entry_span, record)`` for each readable entry.

        Entries at increasing offsets: once one lies past the buffer end
        so does every later one, so the table is cut there and the number
        of skipped entries recorded.
        """
        length = self.reader.length
        if offset + layout.size > length:
            fits = 0
        else:
            fits = (length - offset - layout.size) // stride + 1

        if count > fits:
            self.anomaly(
                AnomalyKind.ENTRY_OUT_OF_BOUNDS,
                f"{label}: {count - fits} of {count} entries lie past the end "
                f"of the buffer and were skipped",
                offset=offset + fits * stride,
                section_index=section_index,
            )
            count = fits

        cap = self.settings.max_table_entries
        if count > cap:
            self.anomaly(
                AnomalyKind.TABLE_TRUNCATED,
                f"{label}: {count} entries exceed the limit of {cap}",
                offset=offset,
                section_index=section_index,
            )
            count = cap

        layout_size = layout.size
        for i in range(count):
            entry_offset = offset + i * stride
            record = self.reader.read_record(layout, entry_offset)
            yield i, FieldSpan(offset=entry_offset, size=layout_size), record

    def data_span(
        self,
        offset: int,
        size: int,
        label: str,
        *,
        section_index: Optional[int] = None,
    ) -> FieldSpan:
        """Span of a region's file bytes; a region past the buffer end is recorded."""
        span = FieldSpan(offset=offset, size=size)
        if span.end > self.reader.length:
            self.anomaly(
                AnomalyKind.DATA_OUT_OF_BOUNDS,
                f"{label}: data [0x{offset:x}, 0x{span.end:x}) extends past the "
                f"end of the buffer (0x{self.reader.length:x})",
                offset=offset,
                section_index=section_index,
            )
        return span

    def clipped_extent(self, offset: int, size: int) -> tuple[int, int]:
        """Clip ``[offset, offset+size)`` to the buffer; returns ``(start, end)``."""
        length = self.reader.length
        start = min(offset, length)
        return start, min(offset + size, length)
