"""Root Typer application."""

from __future__ import annotations

import typer

from isaexts import IsaExtsContext

app = typer.Typer(
    name="isaexts",
    help="Analyze a binary to understand which instruction set extensions it uses.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared state across commands
_ctx = IsaExtsContext()


def get_context() -> IsaExtsContext:
    return _ctx


# -- Command registration --
from isaexts.cli.scan import scan_cmd  # noqa: E402

app.command(name="scan")(scan_cmd)
