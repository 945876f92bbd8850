"""Tests for container format detection and the per-format readers."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from conftest import (
    AVX2_VPADDD,
    EM_386,
    EM_AARCH64,
    EM_MIPS,
    NOP,
    SSE_MOVAPS,
    build_elf,
    build_fat,
    build_macho64,
)
from isaexts.errors import ContainerError
from isaexts.extraction.container import ContainerInfo, Section, SectionKind
from isaexts.extraction.loader import detect_format, load_container, load_container_bytes


def test_detect_format():
    assert detect_format(b"\x7fELF\x02\x01") == "ELF"
    assert detect_format(b"MZ\x90\x00") == "PE"
    assert detect_format(b"\xcf\xfa\xed\xfe") == "Mach-O"
    assert detect_format(b"\xca\xfe\xba\xbe") == "Mach-O"
    assert detect_format(b"#!/bin/sh\n") is None
    assert detect_format(b"") is None


def test_elf64_sections():
    image = build_elf(AVX2_VPADDD + NOP, rodata=SSE_MOVAPS)
    container = load_container_bytes(image)

    assert container.format == "ELF"
    assert container.architecture == "x86_64"
    assert container.bits == 64
    assert container.little_endian

    code = container.code_sections
    assert [s.name for s in code] == [".text"]
    assert code[0].address == 0x401000
    assert code[0].data == AVX2_VPADDD + NOP

    other = {s.name: s for s in container.sections if not s.is_code}
    assert set(other) == {".rodata", ".shstrtab"}


def test_elf32_x86():
    container = load_container_bytes(build_elf(NOP, machine=EM_386, bits=32))
    assert container.architecture == "x86"
    assert container.bits == 32


@pytest.mark.parametrize(
    "machine,expected", [(EM_AARCH64, "aarch64"), (EM_MIPS, "mips"), (4242, "machine_4242")]
)
def test_elf_machine_tags(machine, expected):
    assert load_container_bytes(build_elf(NOP, machine=machine)).architecture == expected


def test_truncated_elf_is_container_error():
    image = build_elf(NOP)
    with pytest.raises(ContainerError, match="ELF"):
        load_container_bytes(image[:40])


def test_elf_oversized_section_is_container_error():
    image = build_elf(AVX2_VPADDD, text_size=0xFFFFFFFFFFFFFFF0)
    with pytest.raises(ContainerError, match="ELF"):
        load_container_bytes(image)


def test_macho64_thin():
    container = load_container_bytes(build_macho64(AVX2_VPADDD))
    assert container.format == "Mach-O"
    assert container.architecture == "x86_64"
    assert container.bits == 64
    assert len(container.code_sections) == 1
    section = container.code_sections[0]
    assert section.name == "__TEXT,__text"
    assert section.data == AVX2_VPADDD


def test_macho_arm64():
    container = load_container_bytes(build_macho64(b"\x1f\x20\x03\xd5", cputype=0x0100000C))
    assert container.architecture == "arm64"


def test_fat_prefers_x86_64_slice():
    image = build_fat(
        (0x0100000C, build_macho64(b"\x1f\x20\x03\xd5", cputype=0x0100000C)),
        (0x01000007, build_macho64(AVX2_VPADDD)),
    )
    container = load_container_bytes(image)
    assert container.architecture == "x86_64"
    assert container.code_sections[0].data == AVX2_VPADDD


def test_fat64_selects_slice():
    image = build_fat(
        (0x0100000C, build_macho64(b"\x1f\x20\x03\xd5", cputype=0x0100000C)),
        (0x01000007, build_macho64(AVX2_VPADDD)),
        wide=True,
    )
    assert detect_format(image) == "Mach-O"
    container = load_container_bytes(image)
    assert container.architecture == "x86_64"
    assert container.code_sections[0].data == AVX2_VPADDD


def test_java_class_magic_rejected():
    java = b"\xca\xfe\xba\xbe\x00\x00\x00\x34" + b"\x00" * 32
    with pytest.raises(ContainerError, match="universal"):
        load_container_bytes(java)


def test_truncated_macho_is_container_error():
    image = build_macho64(AVX2_VPADDD)
    with pytest.raises(ContainerError):
        load_container_bytes(image[:60])


def test_garbage_pe_is_container_error():
    with pytest.raises(ContainerError, match="PE"):
        load_container_bytes(b"MZ" + b"\x00" * 16)


def test_unknown_format():
    with pytest.raises(ContainerError, match="unrecognized"):
        load_container_bytes(b"just some text")


def test_load_container_missing_file():
    with pytest.raises(ContainerError, match="couldn't open"):
        load_container(Path("/nonexistent/path/binary"))


def test_load_container_empty_file(tmp_path):
    empty = tmp_path / "empty"
    empty.write_bytes(b"")
    with pytest.raises(ContainerError, match="empty"):
        load_container(empty)


def test_load_container_from_disk(tmp_path):
    path = tmp_path / "a.out"
    path.write_bytes(build_elf(NOP))
    assert load_container(path).architecture == "x86_64"


def test_container_frozen():
    container = ContainerInfo(format="ELF", architecture="x86_64")
    with pytest.raises(FrozenInstanceError):
        container.bits = 32


def test_code_sections_filter():
    container = ContainerInfo(
        format="PE",
        architecture="x86",
        sections=(
            Section(name=".text", kind=SectionKind.CODE, address=0x1000, data=NOP),
            Section(name=".data", kind=SectionKind.OTHER, address=0x2000),
        ),
    )
    assert [s.name for s in container.code_sections] == [".text"]
