"""ELF container reader using pyelftools."""

from __future__ import annotations

import io

from elftools.common.exceptions import ELFError
from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile

from isaexts.errors import ContainerError
from isaexts.extraction.container import ContainerInfo, Section, SectionKind
from isaexts.utils.logging import get_logger

log = get_logger(__name__)


_MACHINE_TAGS = {
    "EM_X86_64": "x86_64",
    "EM_386": "x86",
    "EM_IAMCU": "x86",
    "EM_AARCH64": "aarch64",
    "EM_ARM": "arm",
    "EM_MIPS": "mips",
    "EM_PPC": "ppc",
    "EM_PPC64": "ppc64",
    "EM_RISCV": "riscv",
    "EM_S390": "s390",
    "EM_SPARC": "sparc",
    "EM_SPARCV9": "sparcv9",
    "EM_LOONGARCH": "loongarch",
}


def load_elf_bytes(data: bytes) -> ContainerInfo:
    """Parse an in-memory ELF image into a ContainerInfo."""
    try:
        elf = ELFFile(io.BytesIO(data))
        arch = _get_arch(elf)
        sections = tuple(_iter_sections(elf))
        container = ContainerInfo(
            format="ELF",
            architecture=arch,
            bits=elf.elfclass,
            little_endian=elf.little_endian,
            sections=sections,
        )
    except (ELFError, ValueError, OverflowError, OSError) as exc:
        log.error("elf_load_failed", error=str(exc))
        raise ContainerError(f"couldn't parse as an ELF file: {exc}") from exc

    log.info(
        "container_loaded",
        format="ELF",
        architecture=arch,
        sections=len(sections),
        code_sections=len(container.code_sections),
    )
    return container


def _get_arch(elf: ELFFile) -> str:
    machine = elf.header.e_machine
    if isinstance(machine, str):
        return _MACHINE_TAGS.get(machine, machine.removeprefix("EM_").lower())
    return f"machine_{machine}"


def _iter_sections(elf: ELFFile):
    for section in elf.iter_sections():
        # Section 0 is the reserved null entry.
        if section["sh_type"] == "SHT_NULL":
            continue
        is_code = (
            section["sh_type"] == "SHT_PROGBITS"
            and bool(section["sh_flags"] & SH_FLAGS.SHF_EXECINSTR)
        )
        yield Section(
            name=section.name,
            kind=SectionKind.CODE if is_code else SectionKind.OTHER,
            address=section["sh_addr"],
            data=section.data() if is_code else b"",
        )
