"""Container format detection and dispatch to the per-format readers."""

from __future__ import annotations

from pathlib import Path

from isaexts.errors import ContainerError
from isaexts.extraction.container import ContainerInfo
from isaexts.extraction.elf_loader import load_elf_bytes
from isaexts.extraction.macho_loader import load_macho_bytes
from isaexts.extraction.pe_loader import load_pe_bytes
from isaexts.utils.logging import get_logger

log = get_logger(__name__)

MAGIC_ELF = b"\x7fELF"
MAGIC_PE = b"MZ"
MAGIC_MACHO = (
    b"\xfe\xed\xfa\xce",
    b"\xce\xfa\xed\xfe",
    b"\xfe\xed\xfa\xcf",
    b"\xcf\xfa\xed\xfe",
    b"\xca\xfe\xba\xbe",
    b"\xca\xfe\xba\xbf",
)


def detect_format(data: bytes) -> str | None:
    """Return "ELF", "PE" or "Mach-O" from the leading magic bytes."""
    if data[:4] == MAGIC_ELF:
        return "ELF"
    if data[:2] == MAGIC_PE:
        return "PE"
    if data[:4] in MAGIC_MACHO:
        return "Mach-O"
    return None


def load_container_bytes(data: bytes) -> ContainerInfo:
    fmt = detect_format(data)
    if fmt == "ELF":
        return load_elf_bytes(data)
    if fmt == "PE":
        return load_pe_bytes(data)
    if fmt == "Mach-O":
        return load_macho_bytes(data)
    raise ContainerError("unrecognized executable format (expected ELF, PE or Mach-O)")


def load_container(path: Path) -> ContainerInfo:
    """Read a file from disk and parse it into a ContainerInfo."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        log.error("file_read_failed", path=str(path), error=str(exc))
        raise ContainerError(f"couldn't open {path}: {exc.strerror or exc}") from exc

    if not data:
        raise ContainerError(f"{path} is empty")

    log.debug("file_read", path=str(path), size=len(data))
    return load_container_bytes(data)
