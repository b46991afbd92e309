"""
elfspan Console Output
======================

Rich-powered terminal display of a decode result: a header panel, then
one table per decoded structure, each row showing the file offset of the
entry it came from.

Uses the :class:`~shared.console.SpanConsole` abstraction for consistent
styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shared.config import OutputConfig
from shared.console import SpanConsole

from elfspan.core.models import (
    Anomaly,
    DecodeResult,
    DynamicTable,
    ElfModel,
    ProgramHeaderEntry,
    Rejection,
    RelocationTable,
    SectionHeaderEntry,
    StringTable,
    SymbolTable,
)


def _hex(value: int) -> str:
    return f"0x{value:x}" if value >= 0 else f"-0x{-value:x}"


def _new_table(title: str = "") -> Table:
    return Table(
        title=title,
        border_style="bright_cyan",
        header_style="bold bright_magenta",
        show_lines=False,
        padding=(0, 1),
    )


class ElfspanConsoleOutput:
    """Rich terminal display for decode results.

    Usage::

        output = ElfspanConsoleOutput()
        output.display(result, source="/bin/ls")
    """

    def __init__(
        self,
        console: SpanConsole | None = None,
        settings: OutputConfig | None = None,
    ) -> None:
        self._console: SpanConsole = console or SpanConsole()
        self._settings: OutputConfig = settings or OutputConfig()

    def display(self, result: DecodeResult, source: str = "<memory>") -> None:
        """Display a complete decode result."""
        self._console.section("elfspan -- ELF Structure Decoder")

        if result.rejection is not None:
            self.display_rejection(result.rejection, source)
            return

        model = result.model
        assert model is not None
        self.display_header(model, source)

        if model.program_headers:
            self.display_segments(model.program_headers)
        if model.section_headers:
            self.display_sections(model.section_headers)
        for symtab in model.symbol_tables:
            self.display_symbols(symtab)
        for dyn in model.dynamic_tables:
            self.display_dynamic(dyn)
        for rel in model.relocation_tables:
            self.display_relocations(rel)
        if model.string_tables:
            self.display_strings(model.string_tables)
        if model.anomalies:
            self.display_anomalies(model.anomalies)

        self._console.divider()
        self._console.info(f"Decoded in {result.duration_seconds * 1000:.1f} ms")

    # ------------------------------------------------------------------ #
    #  Header / rejection
    # ------------------------------------------------------------------ #

    def display_rejection(self, rejection: Rejection, source: str) -> None:
        where = f" at offset {_hex(rejection.offset)}" if rejection.offset is not None else ""
        self._console.error(
            f"{escape(source)}: {rejection.kind.value}{where}: {escape(rejection.message)}"
        )

    def display_header(self, model: ElfModel, source: str) -> None:
        """Display the file header panel."""
        identity = model.identity
        header = model.header
        lines: list[str] = [
            f"[bold]File:[/bold]          {escape(source)}",
            f"[bold]Size:[/bold]          {model.file_size:,} bytes",
            f"[bold]Class:[/bold]         ELF{identity.address_width.value}, "
            f"{identity.endianness.value}-endian",
            f"[bold]OS/ABI:[/bold]        {identity.os_abi_name} "
            f"(ABI version {identity.abi_version.value})",
            f"[bold]Type:[/bold]          {header.object_type_name}",
            f"[bold]Machine:[/bold]       {header.machine_name}",
            f"[bold]Entry Point:[/bold]   {_hex(header.entry_point.value)}",
            f"[bold]Flags:[/bold]         {_hex(header.flags.value)}",
            f"[bold]Segments:[/bold]      {header.program_header_table.count.value} "
            f"at {_hex(header.program_header_table.offset.value)}",
            f"[bold]Sections:[/bold]      {header.section_header_table.count.value} "
            f"at {_hex(header.section_header_table.offset.value)}",
        ]
        if model.interpreter:
            lines.append(f"[bold]Interpreter:[/bold]   {escape(model.interpreter)}")
        needed = model.needed_libraries
        if needed:
            lines.append(f"[bold]Needed:[/bold]        {escape(', '.join(needed))}")

        panel = Panel(
            "\n".join(lines),
            title="[bold bright_cyan]ELF Header[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.print(panel)
        self._console.blank()

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def display_segments(self, segments: tuple[ProgramHeaderEntry, ...]) -> None:
        self._console.section("Program Headers")
        tbl = _new_table()
        tbl.add_column("#", style="dim", justify="right")
        tbl.add_column("At", style="span.offset", justify="right")
        tbl.add_column("Type", style="bold")
        tbl.add_column("Flags")
        tbl.add_column("Offset", justify="right")
        tbl.add_column("VAddr", justify="right")
        tbl.add_column("FileSz", justify="right")
        tbl.add_column("MemSz", justify="right")
        tbl.add_column("Align", justify="right")

        for seg in segments:
            tbl.add_row(
                str(seg.index),
                _hex(seg.entry_span.offset),
                seg.type_name,
                seg.flags_str,
                _hex(seg.file_offset.value),
                _hex(seg.virtual_address.value),
                _hex(seg.file_size.value),
                _hex(seg.memory_size.value),
                _hex(seg.alignment.value),
            )
        self._console.print(tbl)
        self._console.blank()

    def display_sections(self, sections: tuple[SectionHeaderEntry, ...]) -> None:
        self._console.section("Section Headers")
        tbl = _new_table()
        tbl.add_column("#", style="dim", justify="right")
        tbl.add_column("Name", style="bold", min_width=12)
        tbl.add_column("Type")
        tbl.add_column("Flags")
        tbl.add_column("Addr", justify="right")
        tbl.add_column("Offset", justify="right")
        tbl.add_column("Size", justify="right")
        tbl.add_column("Link", justify="right")
        tbl.add_column("Info", justify="right")
        tbl.add_column("EntSz", justify="right")

        for sec in sections:
            tbl.add_row(
                str(sec.index),
                escape(sec.name) or "[dim]<unnamed>[/dim]",
                sec.type_name,
                sec.flags_str,
                _hex(sec.virtual_address.value),
                _hex(sec.file_offset.value) if sec.data_span else "[dim]--[/dim]",
                _hex(sec.size.value),
                str(sec.link.value),
                str(sec.info.value),
                str(sec.entry_size.value),
            )
        self._console.print(tbl)
        self._console.blank()

    def display_symbols(self, table: SymbolTable) -> None:
        symbols = table.entries if self._settings.show_unused_symbols else table.symbols
        limit = self._settings.max_symbols_shown
        self._console.section(f"Symbols: {table.name} ({len(symbols)})")

        tbl = _new_table()
        tbl.add_column("#", style="dim", justify="right")
        tbl.add_column("Value", justify="right")
        tbl.add_column("Size", justify="right")
        tbl.add_column("Type")
        tbl.add_column("Bind")
        tbl.add_column("Vis")
        tbl.add_column("Ndx", justify="right")
        tbl.add_column("Name", style="bold", overflow="ellipsis")

        for sym in symbols[:limit]:
            tbl.add_row(
                str(sym.index),
                _hex(sym.value.value),
                str(sym.size.value),
                sym.type_name,
                sym.binding_name,
                sym.visibility_name,
                sym.section_index_name,
                escape(sym.name),
            )
        self._console.print(tbl)
        if len(symbols) > limit:
            self._console.info(
                f"Showing {limit} of {len(symbols)} symbols. "
                f"Use --json to export all of them."
            )
        self._console.blank()

    def display_dynamic(self, table: DynamicTable) -> None:
        self._console.section(f"Dynamic Section: {table.name or table.section_index}")
        tbl = _new_table()
        tbl.add_column("At", style="span.offset", justify="right")
        tbl.add_column("Tag", style="bold")
        tbl.add_column("Value", justify="right")
        tbl.add_column("String")

        for entry in table.entries:
            tbl.add_row(
                _hex(entry.entry_span.offset),
                entry.tag_name,
                _hex(entry.value.value),
                escape(entry.string_value or ""),
            )
        self._console.print(tbl)
        if not table.terminated:
            self._console.warning("No DT_NULL terminator before the end of the section")
        self._console.blank()

    def display_relocations(self, table: RelocationTable) -> None:
        kind = "RELA" if table.is_rela else "REL"
        self._console.section(
            f"Relocations: {table.name or table.section_index} ({kind}, {len(table.entries)})"
        )
        tbl = _new_table()
        tbl.add_column("Offset", justify="right")
        tbl.add_column("Info", justify="right")
        tbl.add_column("Type", justify="right")
        tbl.add_column("Sym", justify="right")
        tbl.add_column("Symbol", style="bold")
        if table.is_rela:
            tbl.add_column("Addend", justify="right")

        for entry in table.entries:
            row = [
                _hex(entry.target_offset.value),
                _hex(entry.info.value),
                str(entry.relocation_type.value),
                str(entry.symbol_index.value),
                escape(entry.symbol_name or ""),
            ]
            if entry.addend is not None:
                row.append(_hex(entry.addend.value))
            tbl.add_row(*row)
        self._console.print(tbl)
        self._console.blank()

    def display_strings(self, tables: tuple[StringTable, ...]) -> None:
        """Display string table contents, capped at ``max_strings_shown`` overall."""
        self._console.section("Strings")
        limit = self._settings.max_strings_shown
        total = sum(len(t.entries) for t in tables)

        tbl = _new_table()
        tbl.add_column("Table", style="dim")
        tbl.add_column("Offset", style="span.offset", justify="right")
        tbl.add_column("Len", justify="right")
        tbl.add_column("Text", ratio=1, overflow="ellipsis", no_wrap=True)

        shown = 0
        for table in tables:
            for entry in table.entries:
                if shown >= limit:
                    break
                text = escape(entry.text)
                if entry.truncated:
                    text += " [span.warning](truncated)[/span.warning]"
                tbl.add_row(
                    escape(table.name) or str(table.section_index),
                    _hex(entry.offset),
                    str(entry.length),
                    text,
                )
                shown += 1
        self._console.print(tbl)
        if total > shown:
            self._console.info(f"Showing {shown} of {total} strings.")
        self._console.blank()

    def display_anomalies(self, anomalies: tuple[Anomaly, ...]) -> None:
        self._console.section(f"Anomalies ({len(anomalies)})")
        rows = [
            (
                a.kind.value,
                _hex(a.offset) if a.offset is not None else "--",
                str(a.section_index) if a.section_index is not None else "--",
                escape(a.message),
            )
            for a in anomalies
        ]
        self._console.table(
            "",
            ["Kind", "Offset", "Section", "Message"],
            rows,
            styles=["span.warning", "span.offset", "dim", ""],
        )
        self._console.blank()
