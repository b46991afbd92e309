"""
elfspan CLI -- ELF Structure Decoder
=====================================

Click-based command-line interface around :class:`ElfDecoder`.

Usage::

    # Decode and display as tables
    elfspan /usr/bin/ls

    # JSON to stdout
    elfspan /usr/bin/ls --json

    # JSON report to a file
    elfspan /usr/bin/ls --output ls.json

    # Debug logging of every pipeline stage
    elfspan /usr/bin/ls --verbose

Exit status is 0 when the file decoded, 2 when it was rejected (not ELF,
unsupported variant, truncated header) and 1 when it could not be read.

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import asyncio
import sys

import click

from shared.config import ElfspanConfig
from shared.console import SpanConsole
from shared.logger import SpanLogger

from elfspan.core.engine import ElfDecoder
from elfspan.output.console import ElfspanConsoleOutput
from elfspan.output.report import ElfspanReportGenerator

EXIT_REJECTED = 2
EXIT_IO_ERROR = 1


@click.command("elfspan")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output the decode result as JSON to stdout.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging of each decode stage.",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to an elfspan.toml configuration file.",
)
def elfspan_cli(
    path: str,
    json_output: bool,
    output_path: str | None,
    verbose: bool,
    config_path: str | None,
) -> None:
    """elfspan -- decode an ELF file with the byte span of every field.

    PATH is the file to decode.

    Examples:

    \b
        elfspan /usr/bin/ls
        elfspan libc.so.6 --json > libc.json
        elfspan kernel.o --output report.json --verbose
    """
    config = ElfspanConfig.load(config_path)
    console = SpanConsole(quiet=json_output)

    log_level = "DEBUG" if verbose or config.global_settings.debug else config.global_settings.log_level
    logger = SpanLogger(
        "decoder",
        log_level=log_level,
        log_file=config.global_settings.log_file or None,
        json_logs=config.global_settings.log_json,
        console_output=True,
    )

    decoder = ElfDecoder(config=config, logger=logger)
    try:
        result = asyncio.run(decoder.decode_path(path))
    except KeyboardInterrupt:
        console.warning("Decode interrupted by user.")
        sys.exit(130)
    except (OSError, ValueError) as exc:
        if json_output:
            click.echo(f"error: {exc}", err=True)
        else:
            console.error(str(exc))
        sys.exit(EXIT_IO_ERROR)
    finally:
        logger.close()

    report_gen = ElfspanReportGenerator(
        indent=config.output.report_indent,
        version=config.global_settings.version,
    )

    if json_output:
        click.echo(report_gen.to_json(result, source=path))
    else:
        ElfspanConsoleOutput(console=console, settings=config.output).display(result, source=path)

    if output_path:
        report_path = report_gen.generate_json(result, output_path, source=path)
        console.success(f"JSON report saved: {report_path}")

    if not result.ok:
        sys.exit(EXIT_REJECTED)


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for ``elfspan`` and ``python -m elfspan``."""
    elfspan_cli()


if __name__ == "__main__":
    main()
