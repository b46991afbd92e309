"""
elfspan Decode Engine
=====================

Orchestrates the decode pipeline over one byte buffer and produces a
:class:`~elfspan.core.models.DecodeResult` in one of two terminal states:

    DECODED   carries the complete :class:`ElfModel`
    REJECTED  carries a :class:`Rejection` (kind, message, offset)

Decode Pipeline:
    1. Identity: magic, class and data bytes select the variant
    2. File header
    3. Program header table
    4. Section header table, then section names in one pass
    5. Symbol tables
    6. Dynamic sections
    7. Relocation tables (after symbols, which they link to)
    8. String tables
    9. PT_INTERP path

The pipeline is pure and synchronous: it reads nothing but the buffer it
is handed and keeps no state between calls, so one :class:`ElfDecoder`
may serve concurrent callers.  :meth:`ElfDecoder.decode_path` is the only
method that touches the filesystem.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from shared.config import DecoderConfig, ElfspanConfig
from shared.logger import SpanLogger

from elfspan.core.errors import ElfDecodeError
from elfspan.core.models import (
    DecodeResult,
    DecodeStatus,
    ElfModel,
    Rejection,
)
from elfspan.parsers.context import DecodeContext
from elfspan.parsers.dynamic import decode_dynamic_tables
from elfspan.parsers.header import decode_file_header, decode_identity
from elfspan.parsers.layouts import LAYOUTS
from elfspan.parsers.program_headers import decode_program_headers, read_interpreter
from elfspan.parsers.relocations import decode_relocation_tables
from elfspan.parsers.section_headers import decode_section_headers, resolve_section_names
from elfspan.parsers.strings import decode_string_tables
from elfspan.parsers.symbols import decode_symbol_tables


Buffer = bytes | bytearray | memoryview


class ElfDecoder:
    """Decode ELF buffers into span-annotated models.

    Usage::

        decoder = ElfDecoder()
        result = decoder.decode(Path("/bin/ls").read_bytes())
        if result.ok:
            for sec in result.model.section_headers:
                print(sec.name, sec.size.span)

    Or, from a path::

        result = await decoder.decode_path("/bin/ls")
    """

    def __init__(
        self,
        config: ElfspanConfig | None = None,
        logger: SpanLogger | None = None,
    ) -> None:
        """Initialise the decoder.

        Args:
            config: elfspan configuration.  Defaults are used if not provided.
            logger: Logger instance.  Without one, records go to the
                ``elfspan.decoder`` stdlib logger as the application set it up.
        """
        self._config: ElfspanConfig = config or ElfspanConfig()
        self._logger: SpanLogger = logger or SpanLogger("decoder")

    @property
    def settings(self) -> DecoderConfig:
        return self._config.decoder

    # ------------------------------------------------------------------ #
    #  Entry points
    # ------------------------------------------------------------------ #

    def decode(self, data: Buffer) -> DecodeResult:
        """Decode *data*, turning fatal conditions into a rejection.

        Never raises for malformed input.
        """
        with self._logger.timed("decode") as timer:
            try:
                model = self._run_pipeline(data)
            except ElfDecodeError as exc:
                self._logger.info(
                    "Rejected: %s", exc.message, kind=exc.kind.value, offset=exc.offset
                )
                model = None
                rejection = Rejection(kind=exc.kind, message=exc.message, offset=exc.offset)

        if model is None:
            return DecodeResult(
                status=DecodeStatus.REJECTED,
                rejection=rejection,
                duration_seconds=timer.elapsed,
            )
        return DecodeResult(
            status=DecodeStatus.DECODED,
            model=model,
            duration_seconds=timer.elapsed,
        )

    def decode_or_raise(self, data: Buffer) -> ElfModel:
        """Decode *data* and return the model.

        Raises:
            NotElfError: Not an ELF buffer.
            UnsupportedVariantError: Unknown class or data byte.
            OutOfBoundsError: Header truncated.
        """
        return self._run_pipeline(data)

    async def decode_path(self, file_path: str | Path) -> DecodeResult:
        """Read *file_path* and decode it off the event loop.

        Raises:
            OSError: The file cannot be read.
            ValueError: The file exceeds ``decoder.max_file_size``.
        """
        path = Path(file_path)
        file_size = path.stat().st_size
        max_size = self.settings.max_file_size
        if file_size > max_size:
            raise ValueError(
                f"File too large: {file_size:,} bytes (max: {max_size:,} bytes)"
            )

        data = path.read_bytes()
        self._logger.debug("Read %d bytes from %s", len(data), path)
        return await asyncio.get_running_loop().run_in_executor(None, self.decode, data)

    # ------------------------------------------------------------------ #
    #  Pipeline implementation
    # ------------------------------------------------------------------ #

    def _run_pipeline(self, data: Buffer) -> ElfModel:
        log = self._logger

        with log.stage("header"):
            identity, reader = decode_identity(data)
            ctx = DecodeContext(reader, LAYOUTS[identity.address_width], self.settings, log)
            header = decode_file_header(ctx, identity)
            log.debug(
                "ELF%d %s-endian %s %s",
                identity.address_width.value,
                identity.endianness.value,
                header.object_type_name,
                header.machine_name,
            )

        with log.stage("program_headers"):
            segments = decode_program_headers(ctx, header)

        with log.stage("section_headers"):
            sections = decode_section_headers(ctx, header)
            sections = resolve_section_names(ctx, header, sections)

        with log.stage("symbols"):
            symbol_tables = decode_symbol_tables(ctx, sections)

        with log.stage("dynamic"):
            dynamic_tables = decode_dynamic_tables(ctx, sections)

        with log.stage("relocations"):
            relocation_tables = decode_relocation_tables(ctx, sections, symbol_tables)

        with log.stage("strings"):
            string_tables = decode_string_tables(ctx, sections)

        with log.stage("interpreter"):
            interpreter = read_interpreter(ctx, segments)

        if ctx.anomalies:
            log.debug("Decode finished with %d anomaly(ies)", len(ctx.anomalies))

        return ElfModel(
            file_size=reader.length,
            header=header,
            program_headers=segments,
            section_headers=sections,
            symbol_tables=symbol_tables,
            dynamic_tables=dynamic_tables,
            relocation_tables=relocation_tables,
            string_tables=string_tables,
            interpreter=interpreter,
            anomalies=tuple(ctx.anomalies),
        )


# ========================= Module-level convenience ========================

def decode_elf(data: Buffer, config: ElfspanConfig | None = None) -> DecodeResult:
    """Decode *data* with a default :class:`ElfDecoder`."""
    return ElfDecoder(config=config).decode(data)
