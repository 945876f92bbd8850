"""Map a container architecture to a decoder configuration and group table."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from capstone import (
    CS_ARCH_ARM64,
    CS_ARCH_X86,
    CS_MODE_32,
    CS_MODE_64,
    CS_MODE_ARM,
    CS_MODE_BIG_ENDIAN,
)

from isaexts.analysis.tables import AARCH64_GROUPS, X86_GROUPS


class IsaFamily(Enum):
    X86 = "x86"
    AARCH64 = "aarch64"


@dataclass(frozen=True)
class ArchConfig:
    family: IsaFamily
    cs_arch: int
    cs_mode: int
    groups: Mapping[int, str]
    resync_step: int  # bytes to skip when nothing decodes at the cursor
    infers_generation: bool = False


_X86_64_ALIASES = frozenset({"x86_64", "amd64", "x64", "x86-64"})
_X86_32_ALIASES = frozenset({"x86", "i386", "i486", "i586", "i686", "ia32"})
_AARCH64_ALIASES = frozenset(
    {"aarch64", "arm64", "arm64e", "arm64_32", "arm64ec", "aarch64_be"}
)


def dispatch(architecture: str, bits: int, little_endian: bool = True) -> ArchConfig | None:
    """Select decoder settings for an architecture tag, or None if unsupported.

    The instruction set decides the mode, not the pointer width: x32 images
    (x86_64 with 32-bit ELF class) decode in 64-bit mode and arm64_32 images
    decode as AArch64.
    """
    tag = architecture.lower()

    if tag in _X86_64_ALIASES:
        return ArchConfig(
            family=IsaFamily.X86,
            cs_arch=CS_ARCH_X86,
            cs_mode=CS_MODE_64,
            groups=X86_GROUPS,
            resync_step=1,
            infers_generation=True,
        )

    if tag in _X86_32_ALIASES:
        return ArchConfig(
            family=IsaFamily.X86,
            cs_arch=CS_ARCH_X86,
            cs_mode=CS_MODE_32,
            groups=X86_GROUPS,
            resync_step=1,
            infers_generation=True,
        )

    if tag in _AARCH64_ALIASES:
        big_endian = tag == "aarch64_be" or not little_endian
        return ArchConfig(
            family=IsaFamily.AARCH64,
            cs_arch=CS_ARCH_ARM64,
            cs_mode=CS_MODE_ARM | (CS_MODE_BIG_ENDIAN if big_endian else 0),
            groups=AARCH64_GROUPS,
            resync_step=4,
        )

    return None
