"""Shared test fixtures."""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator

import pytest
import structlog

from isaexts.analysis.decoder import DecodedInstruction
from isaexts.extraction.container import ContainerInfo, Section, SectionKind

# vpaddd ymm0, ymm1, ymm2 (AVX2)
AVX2_VPADDD = bytes.fromhex("c5f5fec2")
# push es: not encodable in 64-bit mode
INVALID_X64 = b"\x06"
NOP = b"\x90"
# movaps xmm0, xmm1 (SSE1)
SSE_MOVAPS = bytes.fromhex("0f28c1")

EM_386 = 3
EM_MIPS = 8
EM_X86_64 = 62
EM_AARCH64 = 183

SHT_PROGBITS = 1
SHT_STRTAB = 3
SHF_ALLOC = 0x2
SHF_EXECINSTR = 0x4


def build_elf(
    code: bytes,
    machine: int = EM_X86_64,
    bits: int = 64,
    rodata: bytes = b"",
    text_addr: int = 0x401000,
    text_size: int | None = None,
) -> bytes:
    """Build a minimal little-endian ELF image with .text, .rodata and .shstrtab.

    ``text_size`` overrides the .text header size to produce malformed images.
    """
    shstrtab = b"\x00.text\x00.rodata\x00.shstrtab\x00"
    name_text, name_rodata, name_shstrtab = 1, 7, 15

    if bits == 64:
        ehdr_size, shdr_fmt, ehdr_fmt = 64, "<IIQQQQIIQQ", "<HHIQQQIHHHHHH"
    else:
        ehdr_size, shdr_fmt, ehdr_fmt = 52, "<IIIIIIIIII", "<HHIIIIIHHHHHH"
    shdr_size = struct.calcsize(shdr_fmt)

    text_off = ehdr_size
    rodata_off = text_off + len(code)
    shstrtab_off = rodata_off + len(rodata)
    shoff = (shstrtab_off + len(shstrtab) + 7) & ~7

    ident = b"\x7fELF" + bytes([2 if bits == 64 else 1, 1, 1, 0]) + b"\x00" * 8
    ehdr = ident + struct.pack(
        ehdr_fmt,
        2,  # ET_EXEC
        machine,
        1,
        text_addr,
        0,
        shoff,
        0,
        ehdr_size,
        0,
        0,
        shdr_size,
        4,
        3,  # index of .shstrtab
    )

    sections = [
        struct.pack(shdr_fmt, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0),
        struct.pack(
            shdr_fmt, name_text, SHT_PROGBITS, SHF_ALLOC | SHF_EXECINSTR,
            text_addr, text_off, len(code) if text_size is None else text_size, 0, 0, 16, 0,
        ),
        struct.pack(
            shdr_fmt, name_rodata, SHT_PROGBITS, SHF_ALLOC,
            text_addr + 0x1000, rodata_off, len(rodata), 0, 0, 8, 0,
        ),
        struct.pack(
            shdr_fmt, name_shstrtab, SHT_STRTAB, 0,
            0, shstrtab_off, len(shstrtab), 0, 0, 1, 0,
        ),
    ]

    body = ehdr + code + rodata + shstrtab
    body += b"\x00" * (shoff - len(body))
    return body + b"".join(sections)


def build_macho64(code: bytes, cputype: int = 0x01000007) -> bytes:
    """Build a minimal thin little-endian 64-bit Mach-O with one __TEXT,__text section."""
    header_size, seg_size, sect_size = 32, 72, 80
    code_off = header_size + seg_size + sect_size

    header = struct.pack("<IiiIIIII", 0xFEEDFACF, cputype, 3, 2, 1, seg_size + sect_size, 0, 0)
    segment = struct.pack(
        "<II16sQQQQiiII",
        0x19, seg_size + sect_size, b"__TEXT",
        0x100000000, 0x1000, 0, code_off + len(code),
        5, 5, 1, 0,
    )
    section = struct.pack(
        "<16s16sQQIIIIIIII",
        b"__text", b"__TEXT",
        0x100000000 + code_off, len(code), code_off,
        4, 0, 0, 0x80000400, 0, 0, 0,
    )
    return header + segment + section + code


def build_fat(*slices: tuple[int, bytes], wide: bool = False) -> bytes:
    """Wrap thin Mach-O images into a universal binary (fat_arch_64 records if ``wide``)."""
    header = struct.pack(">II", 0xCAFEBABF if wide else 0xCAFEBABE, len(slices))
    offset = 4096
    arch_entries = b""
    bodies = b""
    for cputype, image in slices:
        if wide:
            arch_entries += struct.pack(">iiQQII", cputype, 3, offset + len(bodies), len(image), 12, 0)
        else:
            arch_entries += struct.pack(">iiIII", cputype, 3, offset + len(bodies), len(image), 12)
        bodies += image
    head = header + arch_entries
    return head + b"\x00" * (offset - len(head)) + bodies


class ScriptedDecoder:
    """Decoder double driven by a byte -> instruction table.

    Each key is the first byte of an instruction; bytes not in the table
    fail to decode.
    """

    def __init__(self, script: dict[int, DecodedInstruction]) -> None:
        self.script = script
        self.calls = 0

    def decode(self, code: memoryview, address: int, count: int = 1) -> Iterator[DecodedInstruction]:
        self.calls += 1
        offset = 0
        for _ in range(count):
            if offset >= len(code):
                return
            insn = self.script.get(code[offset])
            if insn is None:
                return
            yield DecodedInstruction(
                address=address + offset,
                size=insn.size,
                mnemonic=insn.mnemonic,
                groups=insn.groups,
                is_data=insn.is_data,
            )
            offset += insn.size


class FailingDecoder:
    """Decoder that never decodes anything."""

    def __init__(self) -> None:
        self.calls = 0

    def decode(self, code: memoryview, address: int, count: int = 1) -> Iterator[DecodedInstruction]:
        self.calls += 1
        return iter(())


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


@pytest.fixture
def x86_64_container() -> ContainerInfo:
    return ContainerInfo(
        format="ELF",
        architecture="x86_64",
        bits=64,
        sections=(
            Section(name=".text", kind=SectionKind.CODE, address=0x401000,
                    data=AVX2_VPADDD + INVALID_X64 + NOP),
            Section(name=".rodata", kind=SectionKind.OTHER, address=0x402000,
                    data=SSE_MOVAPS),
        ),
    )
