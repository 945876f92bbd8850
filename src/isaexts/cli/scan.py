"""isaexts FILE: report the instruction set extensions used by a binary."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from isaexts.version import __version__

EXIT_SETUP_FAULT = 1
EXIT_TABLE_FAULT = 3


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"isaexts {__version__}")
        raise typer.Exit()


def scan_cmd(
    binary: Path = typer.Argument(..., metavar="FILE", help="The path of the file to analyze"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True
    ),
) -> None:
    """Analyze an executable to see which instruction set extensions it uses."""
    from isaexts.analysis.decoder import CapstoneDecoder
    from isaexts.analysis.dispatch import dispatch
    from isaexts.analysis.report import analyze_container, generation_line, header_line
    from isaexts.cli.app import get_context
    from isaexts.errors import SetupError, TableConsistencyError
    from isaexts.extraction.loader import load_container
    from isaexts.utils.formatters import print_error, print_internal_error, print_warning
    from isaexts.utils.logging import bind_scan_context, get_logger, setup_logging

    ctx = get_context()
    try:
        config = ctx.ensure_config()
    except SetupError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_SETUP_FAULT)
    setup_logging(level=config.logging.level, json_output=config.logging.json_output)
    bind_scan_context(str(binary))
    log = get_logger(__name__)

    try:
        container = load_container(binary)

        arch = dispatch(container.architecture, container.bits, container.little_endian)
        if arch is None:
            typer.echo(header_line(container.format, container.architecture, supported=False))
            return

        decoder = CapstoneDecoder(arch, skip_data=config.scan.skip_data)
        typer.echo(header_line(container.format, container.architecture))
        report = analyze_container(
            container,
            config.scan,
            on_extension=lambda ext: typer.echo(ext.describe()),
            decoder=decoder,
            arch=arch,
        )
    except SetupError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_SETUP_FAULT)
    except TableConsistencyError as exc:
        log.critical("table_consistency_fault", error=str(exc))
        print_internal_error(str(exc))
        raise typer.Exit(EXIT_TABLE_FAULT)

    typer.echo(report.summary)
    if report.generation is not None:
        typer.echo(generation_line(report.generation))

    for name in report.stats.truncated_sections:
        print_warning(f"scan of section {name} stopped at the instruction ceiling")
