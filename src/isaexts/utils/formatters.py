"""Rich output helpers for CLI diagnostics."""

from __future__ import annotations

from rich.console import Console

err_console = Console(stderr=True)


def print_error(msg: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {msg}", highlight=False)


def print_internal_error(msg: str) -> None:
    err_console.print(f"[bold magenta]Internal error:[/bold magenta] {msg}", highlight=False)


def print_warning(msg: str) -> None:
    err_console.print(f"[bold yellow]Warning:[/bold yellow] {msg}", highlight=False)
