"""Mach-O container reader.

Only the pieces needed to locate instruction-bearing sections are parsed:
the mach header, LC_SEGMENT / LC_SEGMENT_64 load commands and their
section records. Universal ("fat") images are reduced to a single slice.
"""

from __future__ import annotations

import struct

from isaexts.errors import ContainerError
from isaexts.extraction.container import ContainerInfo, Section, SectionKind
from isaexts.utils.logging import get_logger

log = get_logger(__name__)

MH_MAGIC = 0xFEEDFACE
MH_MAGIC_64 = 0xFEEDFACF
FAT_MAGIC = 0xCAFEBABE
FAT_MAGIC_64 = 0xCAFEBABF

LC_SEGMENT = 0x1
LC_SEGMENT_64 = 0x19

S_ATTR_PURE_INSTRUCTIONS = 0x80000000
S_ATTR_SOME_INSTRUCTIONS = 0x00000400
SECTION_TYPE_MASK = 0x000000FF
S_ZEROFILL = 0x1

CPU_ARCH_ABI64 = 0x01000000
CPU_ARCH_ABI64_32 = 0x02000000

CPU_TYPES = {
    7: "x86",
    7 | CPU_ARCH_ABI64: "x86_64",
    12: "arm",
    12 | CPU_ARCH_ABI64: "arm64",
    12 | CPU_ARCH_ABI64_32: "arm64_32",
    18: "ppc",
    18 | CPU_ARCH_ABI64: "ppc64",
}

# Slices tried first when picking from a universal binary.
_PREFERRED_SLICES = ("x86_64", "arm64", "x86", "arm64_32")

# Real fat headers carry a handful of slices; Java class files share the
# magic and put their version number where nfat_arch lives.
_MAX_FAT_ARCHS = 32

# fat_arch and fat_arch_64 records following the 8-byte fat header.
_FAT_ARCH_FORMATS = {FAT_MAGIC: ">iiIII", FAT_MAGIC_64: ">iiQQII"}

_HEADER_SIZE = {MH_MAGIC: 28, MH_MAGIC_64: 32}
_SEGMENT_FORMATS = {
    LC_SEGMENT: ("16sIIIIiiII", "16s16sIIIIIIIII"),
    LC_SEGMENT_64: ("16sQQQQiiII", "16s16sQQIIIIIIII"),
}


def load_macho_bytes(data: bytes) -> ContainerInfo:
    """Parse an in-memory Mach-O (thin or universal) image."""
    try:
        container = _parse(data)
    except struct.error as exc:
        log.error("macho_load_failed", error=str(exc))
        raise ContainerError(f"truncated or malformed Mach-O file: {exc}") from exc

    log.info(
        "container_loaded",
        format="Mach-O",
        architecture=container.architecture,
        sections=len(container.sections),
        code_sections=len(container.code_sections),
    )
    return container


def _parse(data: bytes) -> ContainerInfo:
    if len(data) < 4:
        raise ContainerError("file too small to be a Mach-O image")

    (magic,) = struct.unpack_from(">I", data)
    if magic in _FAT_ARCH_FORMATS:
        offset, size = _select_fat_slice(data, _FAT_ARCH_FORMATS[magic])
        return _parse_thin(data[offset : offset + size])
    return _parse_thin(data)


def _select_fat_slice(data: bytes, arch_fmt: str) -> tuple[int, int]:
    (nfat_arch,) = struct.unpack_from(">I", data, 4)
    if nfat_arch == 0 or nfat_arch > _MAX_FAT_ARCHS:
        raise ContainerError("not a universal Mach-O binary (possibly a Java class file)")

    arch_size = struct.calcsize(arch_fmt)
    slices: list[tuple[str, int, int]] = []
    for i in range(nfat_arch):
        cputype, _subtype, offset, size, *_ = struct.unpack_from(arch_fmt, data, 8 + i * arch_size)
        tag = CPU_TYPES.get(cputype & 0xFFFFFFFF, f"cputype_{cputype & 0xFFFFFFFF:#x}")
        slices.append((tag, offset, size))

    for preferred in _PREFERRED_SLICES:
        for tag, offset, size in slices:
            if tag == preferred:
                log.debug("fat_slice_selected", architecture=tag, slices=len(slices))
                return offset, size

    tag, offset, size = slices[0]
    log.debug("fat_slice_selected", architecture=tag, slices=len(slices))
    return offset, size


def _parse_thin(data: bytes) -> ContainerInfo:
    (magic_le,) = struct.unpack_from("<I", data)
    if magic_le in _HEADER_SIZE:
        endian, magic = "<", magic_le
    else:
        (magic_be,) = struct.unpack_from(">I", data)
        if magic_be not in _HEADER_SIZE:
            raise ContainerError("bad Mach-O magic")
        endian, magic = ">", magic_be

    _, cputype, _subtype, _filetype, ncmds, _sizeofcmds, _flags = struct.unpack_from(
        endian + "IiiIIII", data
    )
    cputype &= 0xFFFFFFFF
    arch = CPU_TYPES.get(cputype, f"cputype_{cputype:#x}")
    bits = 64 if magic == MH_MAGIC_64 else 32

    sections: list[Section] = []
    offset = _HEADER_SIZE[magic]
    for _ in range(ncmds):
        cmd, cmdsize = struct.unpack_from(endian + "II", data, offset)
        if cmdsize < 8:
            raise ContainerError(f"invalid load command size {cmdsize} at offset {offset:#x}")
        if cmd in _SEGMENT_FORMATS:
            sections.extend(_parse_segment(data, offset + 8, endian, cmd))
        offset += cmdsize

    return ContainerInfo(
        format="Mach-O",
        architecture=arch,
        bits=bits,
        little_endian=endian == "<",
        sections=tuple(sections),
    )


def _parse_segment(data: bytes, offset: int, endian: str, cmd: int) -> list[Section]:
    seg_fmt, sect_fmt = (endian + f for f in _SEGMENT_FORMATS[cmd])
    segment = struct.unpack_from(seg_fmt, data, offset)
    nsects = segment[7]
    offset += struct.calcsize(seg_fmt)
    sect_size = struct.calcsize(sect_fmt)

    sections = []
    for _ in range(nsects):
        sectname, segname, addr, size, file_offset, _align, _reloff, _nreloc, flags, *_ = (
            struct.unpack_from(sect_fmt, data, offset)
        )
        offset += sect_size

        name = f"{_cstr(segname)},{_cstr(sectname)}"
        is_code = bool(flags & (S_ATTR_PURE_INSTRUCTIONS | S_ATTR_SOME_INSTRUCTIONS)) and (
            flags & SECTION_TYPE_MASK
        ) != S_ZEROFILL
        body = b""
        if is_code:
            if file_offset + size > len(data):
                raise ContainerError(f"section {name} extends past end of file")
            body = bytes(data[file_offset : file_offset + size])
        sections.append(
            Section(
                name=name,
                kind=SectionKind.CODE if is_code else SectionKind.OTHER,
                address=addr,
                data=body,
            )
        )
    return sections


def _cstr(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")
