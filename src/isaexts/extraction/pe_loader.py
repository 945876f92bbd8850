"""PE/COFF container reader using pefile."""

from __future__ import annotations

import pefile

from isaexts.errors import ContainerError
from isaexts.extraction.container import ContainerInfo, Section, SectionKind
from isaexts.utils.logging import get_logger

log = get_logger(__name__)

IMAGE_SCN_CNT_CODE = 0x00000020
IMAGE_SCN_MEM_EXECUTE = 0x20000000
PE32_PLUS_MAGIC = 0x20B

_MACHINE_TAGS = {
    "IMAGE_FILE_MACHINE_I386": "x86",
    "IMAGE_FILE_MACHINE_AMD64": "x86_64",
    "IMAGE_FILE_MACHINE_ARM64": "aarch64",
    "IMAGE_FILE_MACHINE_ARM64EC": "arm64ec",
    "IMAGE_FILE_MACHINE_ARM": "arm",
    "IMAGE_FILE_MACHINE_ARMNT": "arm",
    "IMAGE_FILE_MACHINE_THUMB": "arm",
    "IMAGE_FILE_MACHINE_IA64": "ia64",
    "IMAGE_FILE_MACHINE_POWERPC": "ppc",
    "IMAGE_FILE_MACHINE_RISCV64": "riscv",
}


def load_pe_bytes(data: bytes) -> ContainerInfo:
    """Parse an in-memory PE image into a ContainerInfo."""
    try:
        pe = pefile.PE(data=data, fast_load=True)
    except pefile.PEFormatError as exc:
        log.error("pe_load_failed", error=str(exc))
        raise ContainerError(f"couldn't parse as a PE file: {exc}") from exc

    try:
        arch = _get_arch(pe.FILE_HEADER.Machine)
        bits = 64 if pe.OPTIONAL_HEADER.Magic == PE32_PLUS_MAGIC else 32
        image_base = pe.OPTIONAL_HEADER.ImageBase
        sections = tuple(_iter_sections(pe, image_base))
    finally:
        pe.close()

    container = ContainerInfo(
        format="PE",
        architecture=arch,
        bits=bits,
        little_endian=True,
        sections=sections,
    )
    log.info(
        "container_loaded",
        format="PE",
        architecture=arch,
        sections=len(sections),
        code_sections=len(container.code_sections),
    )
    return container


def _get_arch(machine: int) -> str:
    name = pefile.MACHINE_TYPE.get(machine)
    if name is None:
        return f"machine_{machine:#x}"
    return _MACHINE_TAGS.get(name, name.removeprefix("IMAGE_FILE_MACHINE_").lower())


def _iter_sections(pe: pefile.PE, image_base: int):
    for section in pe.sections:
        name = section.Name.decode("utf-8", errors="ignore").rstrip("\x00")
        is_code = bool(
            section.Characteristics & (IMAGE_SCN_CNT_CODE | IMAGE_SCN_MEM_EXECUTE)
        )
        yield Section(
            name=name,
            kind=SectionKind.CODE if is_code else SectionKind.OTHER,
            address=image_base + section.VirtualAddress,
            data=section.get_data() if is_code else b"",
        )
