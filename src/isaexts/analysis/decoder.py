"""Instruction decoder adapter around capstone."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from capstone import Cs, CsError

from isaexts.analysis.dispatch import ArchConfig
from isaexts.errors import DecoderSetupError
from isaexts.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class DecodedInstruction:
    address: int
    size: int
    mnemonic: str | None = None
    groups: tuple[int, ...] = ()
    is_data: bool = False  # bytes passed over by the decoder's skip-data mode


class Decoder(Protocol):
    def decode(self, code: memoryview, address: int, count: int = 1) -> Iterator[DecodedInstruction]:
        """Yield at most ``count`` instructions decoded from the start of ``code``."""
        ...


class CapstoneDecoder:
    """Decode instructions with capstone in detail mode.

    With ``skip_data`` enabled capstone emits ``.byte`` pseudo-instructions
    for undecodable input instead of stopping; those come back with
    ``is_data`` set and no groups.
    """

    def __init__(self, arch: ArchConfig, skip_data: bool = True) -> None:
        try:
            self._md = Cs(arch.cs_arch, arch.cs_mode)
            self._md.detail = True
            self._md.skipdata = skip_data
        except CsError as exc:
            log.error("decoder_init_failed", family=arch.family.value, error=str(exc))
            raise DecoderSetupError(f"couldn't set up capstone for {arch.family.value}: {exc}") from exc
        self.arch = arch

    def decode(self, code: memoryview, address: int, count: int = 1) -> Iterator[DecodedInstruction]:
        try:
            for insn in self._md.disasm(code, address, count):
                # Instruction id 0 marks a skip-data pseudo-instruction.
                if insn.id == 0:
                    yield DecodedInstruction(address=insn.address, size=insn.size, is_data=True)
                    continue
                yield DecodedInstruction(
                    address=insn.address,
                    size=insn.size,
                    mnemonic=insn.mnemonic or None,
                    groups=tuple(insn.groups),
                )
        except CsError as exc:
            # Treated by the scanner like an empty decode: it resyncs past the cursor.
            log.debug("decode_failed", address=hex(address), error=str(exc))
