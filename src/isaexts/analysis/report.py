"""End-to-end analysis of a parsed container and report rendering."""

from __future__ import annotations

from dataclasses import dataclass, field

from isaexts.analysis.accumulator import ExtensionAccumulator, ObservedExtension
from isaexts.analysis.decoder import CapstoneDecoder, Decoder
from isaexts.analysis.dispatch import ArchConfig, dispatch
from isaexts.analysis.generations import infer_generation
from isaexts.analysis.scanner import ExtensionCallback, ScanStats, scan_sections
from isaexts.config.models import ScanConfig
from isaexts.extraction.container import ContainerInfo
from isaexts.utils.logging import get_logger

log = get_logger(__name__)


def header_line(fmt: str, architecture: str, supported: bool = True) -> str:
    if not supported:
        return f"Unsupported architecture: {fmt}, {architecture}"
    return f"File format and CPU architecture: {fmt}, {architecture}"


@dataclass(frozen=True)
class ScanReport:
    format: str
    architecture: str
    supported: bool = True
    extensions: tuple[ObservedExtension, ...] = ()
    extension_names: tuple[str, ...] = ()
    generation: str | None = None
    stats: ScanStats = field(default_factory=ScanStats)

    @property
    def header(self) -> str:
        return header_line(self.format, self.architecture, self.supported)

    @property
    def summary(self) -> str:
        return f"Instruction set extensions used: {', '.join(self.extension_names)}"


def analyze_container(
    container: ContainerInfo,
    config: ScanConfig | None = None,
    on_extension: ExtensionCallback | None = None,
    decoder: Decoder | None = None,
    arch: ArchConfig | None = None,
) -> ScanReport:
    """Scan a container's code and infer the extensions (and x86 generation) it needs.

    ``on_extension`` is called once per newly observed extension while the
    scan is running. ``arch`` skips dispatch when the caller already has
    it. An unsupported architecture yields a report with ``supported=False``
    and no scan.
    """
    config = config or ScanConfig()
    if arch is None:
        arch = dispatch(container.architecture, container.bits, container.little_endian)
    if arch is None:
        log.info("unsupported_architecture", format=container.format, architecture=container.architecture)
        return ScanReport(format=container.format, architecture=container.architecture, supported=False)

    if decoder is None:
        decoder = CapstoneDecoder(arch, skip_data=config.skip_data)

    return _scan(container, arch, decoder, config, on_extension)


def _scan(
    container: ContainerInfo,
    arch: ArchConfig,
    decoder: Decoder,
    config: ScanConfig,
    on_extension: ExtensionCallback | None,
) -> ScanReport:
    accumulator = ExtensionAccumulator(
        arch.groups, report_unclassified=config.report_unclassified_groups
    )
    stats = scan_sections(
        container.sections,
        decoder,
        accumulator,
        resync_step=arch.resync_step,
        batch_size=config.batch_size,
        max_instructions=config.max_instructions_per_section,
        on_extension=on_extension,
    )
    extensions, names = accumulator.finalize()

    generation = infer_generation(names) if arch.infers_generation else None

    log.info(
        "scan_complete",
        family=arch.family.value,
        sections=stats.sections_scanned,
        instructions=stats.instructions_decoded,
        skipped=stats.bytes_skipped,
        extensions=len(names),
        generation=generation,
    )
    return ScanReport(
        format=container.format,
        architecture=container.architecture,
        extensions=extensions,
        extension_names=names,
        generation=generation,
        stats=stats,
    )


def render_report(report: ScanReport) -> list[str]:
    """Render the full line-oriented report."""
    if not report.supported:
        return [report.header]
    lines = [report.header]
    lines.extend(ext.describe() for ext in report.extensions)
    lines.append(report.summary)
    if report.generation is not None:
        lines.append(generation_line(report.generation))
    return lines


def generation_line(generation: str) -> str:
    return f"CPU Generation: {generation}"
