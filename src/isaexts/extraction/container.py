"""Frozen dataclasses describing a parsed executable container."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SectionKind(Enum):
    CODE = "code"
    OTHER = "other"


@dataclass(frozen=True)
class Section:
    name: str
    kind: SectionKind
    address: int
    data: bytes = b""

    @property
    def is_code(self) -> bool:
        return self.kind is SectionKind.CODE


@dataclass(frozen=True)
class ContainerInfo:
    format: str  # "ELF", "PE", "Mach-O"
    architecture: str  # normalized lower-case tag, e.g. "x86_64", "aarch64"
    bits: int = 64
    little_endian: bool = True
    sections: tuple[Section, ...] = ()

    @property
    def code_sections(self) -> tuple[Section, ...]:
        return tuple(s for s in self.sections if s.is_code)
