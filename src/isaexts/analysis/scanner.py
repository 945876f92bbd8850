"""Resynchronizing instruction scan over a container's code sections.

Decoding a whole section in one call stops at the first byte sequence the
decoder cannot interpret (inline data, padding, unknown encodings) and
loses everything after it. Instead the scanner walks each section with a
byte cursor, decoding a few instructions at a time. When nothing decodes
at the cursor it moves forward by the architecture's resync step and tries
again, so every iteration makes progress and the scan always terminates.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from isaexts.analysis.accumulator import ExtensionAccumulator, ObservedExtension
from isaexts.analysis.decoder import Decoder
from isaexts.extraction.container import Section
from isaexts.utils.logging import get_logger

log = get_logger(__name__)

ExtensionCallback = Callable[[ObservedExtension], None]


@dataclass
class ScanStats:
    sections_scanned: int = 0
    instructions_decoded: int = 0
    bytes_skipped: int = 0
    truncated_sections: tuple[str, ...] = ()


def scan_section(
    section: Section,
    decoder: Decoder,
    accumulator: ExtensionAccumulator,
    stats: ScanStats,
    *,
    resync_step: int,
    batch_size: int = 1,
    max_instructions: int | None = None,
    on_extension: ExtensionCallback | None = None,
) -> None:
    """Scan one code section, feeding every instruction group to ``accumulator``."""
    if resync_step < 1 or batch_size < 1:
        raise ValueError("resync_step and batch_size must be positive")

    # Writable view lets capstone decode each slice in place.
    view = memoryview(bytearray(section.data))
    end = len(view)
    offset = 0
    decoded = 0
    skipped = 0

    while offset < end:
        if max_instructions is not None and decoded >= max_instructions:
            log.warning(
                "section_scan_truncated",
                section=section.name,
                offset=offset,
                size=end,
                max_instructions=max_instructions,
            )
            stats.truncated_sections += (section.name,)
            break

        progressed = False
        for insn in decoder.decode(view[offset:], section.address + offset, batch_size):
            if insn.size <= 0:
                break
            step = min(insn.size, end - offset)
            offset += step
            progressed = True

            if insn.is_data:
                skipped += step
                continue

            decoded += 1
            for group in insn.groups:
                observed = accumulator.record(group, insn.mnemonic, insn.address)
                if observed is not None and on_extension is not None:
                    on_extension(observed)

        if not progressed:
            step = min(resync_step, end - offset)
            offset += step
            skipped += step

    stats.sections_scanned += 1
    stats.instructions_decoded += decoded
    stats.bytes_skipped += skipped
    log.debug(
        "section_scanned",
        section=section.name,
        address=hex(section.address),
        size=end,
        instructions=decoded,
        skipped=skipped,
    )


def scan_sections(
    sections: Iterable[Section],
    decoder: Decoder,
    accumulator: ExtensionAccumulator,
    *,
    resync_step: int,
    batch_size: int = 1,
    max_instructions: int | None = None,
    on_extension: ExtensionCallback | None = None,
) -> ScanStats:
    """Scan every code section in order; non-code sections are ignored."""
    stats = ScanStats()
    for section in sections:
        if not section.is_code:
            continue
        scan_section(
            section,
            decoder,
            accumulator,
            stats,
            resync_step=resync_step,
            batch_size=batch_size,
            max_instructions=max_instructions,
            on_extension=on_extension,
        )
    return stats
