"""Structured logging setup using structlog.

The report is written to stdout, so all log output goes to stderr.
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """Configure structlog with console or JSON rendering on stderr."""
    shared_processors: list[structlog.types.Processor] = [
        # Drop filtered records before any rendering work; the scanner logs
        # from its inner loop.
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))


def bind_scan_context(binary: str) -> None:
    """Attach the binary being analyzed to every subsequent log record."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(binary=binary)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
