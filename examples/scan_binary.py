"""Scan a binary through the library API instead of the CLI."""

import sys
from pathlib import Path

from isaexts import IsaExtsContext
from isaexts.analysis.report import analyze_container, render_report
from isaexts.extraction.loader import load_container
from isaexts.utils.logging import setup_logging


def main():
    # 1. Load configuration
    ctx = IsaExtsContext()
    config = ctx.ensure_config()
    setup_logging(level=config.logging.level, json_output=config.logging.json_output)

    # 2. Parse the container
    path = Path(sys.argv[1] if len(sys.argv) > 1 else sys.executable)
    container = load_container(path)

    # 3. Scan and print
    report = analyze_container(container, config.scan)
    for line in render_report(report):
        print(line)

    if report.supported:
        print(
            f"\n{report.stats.sections_scanned} code section(s), "
            f"{report.stats.instructions_decoded} instructions, "
            f"{report.stats.bytes_skipped} bytes skipped"
        )


if __name__ == "__main__":
    main()
