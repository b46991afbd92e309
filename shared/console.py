"""
elfspan Console Interface
==========================

Rich-powered console abstraction providing a unified presentation layer
for the elfspan command-line shell.

The class wraps :class:`rich.console.Console` and adds convenience methods
for section headers, severity-coloured messages and tables, all with
consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- consistent palette across all elfspan output
# ---------------------------------------------------------------------------
_SPAN_THEME = Theme(
    {
        "span.section": "bold bright_magenta",
        "span.success": "bold green",
        "span.warning": "bold yellow",
        "span.error": "bold red",
        "span.info": "bold bright_blue",
        "span.dim": "dim white",
        "span.highlight": "bold bright_white",
        "span.offset": "bright_cyan",
    }
)


class SpanConsole:
    """Unified console interface for elfspan output.

    Usage::

        con = SpanConsole()
        con.section("Section Headers")
        con.success("Decoded 29 sections")
    """

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #

    def __init__(
        self, *, quiet: bool = False, record: bool = False, width: int | None = None
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for text export.
            width:  Fixed line width; the terminal width when ``None``.
        """
        self._console = Console(
            theme=_SPAN_THEME,
            quiet=quiet,
            record=record,
            width=width,
            highlight=False,
        )

    # ------------------------------------------------------------------ #
    #  Section header
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(
            f"  {title}  ",
            style="span.section",
            characters="─",
        )

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        """Print a success message."""
        self._console.print(
            f"[span.success][✔] OK:[/span.success] {message}"
        )

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self._console.print(
            f"[span.warning][⚠] WARNING:[/span.warning] {message}"
        )

    def error(self, message: str) -> None:
        """Print an error message."""
        self._console.print(
            f"[span.error][✘] ERROR:[/span.error] {message}"
        )

    def info(self, message: str) -> None:
        """Print an informational message."""
        self._console.print(
            f"[span.info][ℹ] INFO:[/span.info] {message}"
        )

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Iterable of row tuples; each element is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()

    def divider(self, style: str = "dim") -> None:
        """Print a thin horizontal rule."""
        self._console.rule(style=style)

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
