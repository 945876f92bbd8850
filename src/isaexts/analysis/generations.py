"""x86 CPU generation inference.

Each x86 extension is attributed to the microarchitecture that introduced
it, and each microarchitecture carries an ordinal used only for ordering.
The inferred generation is the one with the highest ordinal among the
observed extensions, floored at BASELINE_GENERATION.

Intel and AMD lines are interleaved by release date, so the ordering is
approximate. A binary using both an AMD-only and an Intel-only extension
is reported with whichever generation sorts later; the model cannot
express two incompatible vendor baselines.

Sources: https://en.wikipedia.org/wiki/List_of_Intel_CPU_microarchitectures
and https://en.wikipedia.org/wiki/List_of_AMD_CPU_microarchitectures
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from isaexts.analysis.tables import X86_EXTENSION_NAMES
from isaexts.errors import TableConsistencyError

BASELINE_GENERATION = "Intel 386"

GENERATION_ORDINALS: Mapping[str, int] = MappingProxyType(
    {
        "Intel 8086": 1,
        "Intel 386": 3,
        "Intel 486": 4,
        "Pentium": 5,
        "Pentium MMX": 6,
        "Pentium Pro": 7,
        "K6-2": 8,
        "Pentium III": 9,
        "Pentium 4": 10,
        "Prescott": 11,
        "Core": 12,
        "K10": 13,
        "Penryn": 14,
        "Nehalem": 15,
        "Westmere": 16,
        "Sandy Bridge": 17,
        "Bulldozer": 18,
        "Ivy Bridge": 19,
        "Piledriver": 20,
        "Haswell": 21,
        "Broadwell": 22,
        "Skylake": 23,
        "Goldmont": 24,
        "Knights Landing": 25,
    }
)

EXTENSION_GENERATIONS: Mapping[str, str] = MappingProxyType(
    {
        "16BITMODE": "Intel 8086",
        "MODE32": "Intel 386",
        "NOT64BITMODE": "Intel 386",
        "FPU": "Intel 486",
        "MMX": "Pentium MMX",
        "CMOV": "Pentium Pro",
        "3DNow": "K6-2",
        "SSE1": "Pentium III",
        "SSE2": "Pentium 4",
        "SSE3": "Prescott",
        "MODE64": "Prescott",
        "VT-x/AMD-V": "Prescott",
        "SSSE3": "Core",
        "SSE4A": "K10",
        "SSE41": "Penryn",
        "SSE42": "Nehalem",
        "AES": "Westmere",
        "PCLMUL": "Westmere",
        "AVX": "Sandy Bridge",
        "NOVLX": "Sandy Bridge",
        "FMA4": "Bulldozer",
        "XOP": "Bulldozer",
        "F16C": "Ivy Bridge",
        "FSGSBASE": "Ivy Bridge",
        "TBM": "Piledriver",
        "AVX2": "Haswell",
        "BMI": "Haswell",
        "BMI2": "Haswell",
        "FMA": "Haswell",
        "HLE": "Haswell",
        "RTM": "Haswell",
        "ADX": "Broadwell",
        "SMAP": "Broadwell",
        "SGX": "Skylake",
        "AVX512": "Skylake",
        "BWI": "Skylake",
        "DQI": "Skylake",
        "VLX": "Skylake",
        "SHA": "Goldmont",
        "CDI": "Knights Landing",
        "ERI": "Knights Landing",
        "PFI": "Knights Landing",
    }
)


def build_reverse_table(ordinals: Mapping[str, int]) -> Mapping[int, str]:
    """Invert a generation -> ordinal table, rejecting shared ordinals."""
    reverse: dict[int, str] = {}
    for name, code in ordinals.items():
        if code in reverse:
            raise TableConsistencyError(
                f"generations {reverse[code]!r} and {name!r} share ordinal {code}"
            )
        reverse[code] = name
    return MappingProxyType(reverse)


ORDINAL_GENERATIONS: Mapping[int, str] = build_reverse_table(GENERATION_ORDINALS)


def _ordinal_for(extension: str) -> int:
    try:
        generation = EXTENSION_GENERATIONS[extension]
    except KeyError:
        raise TableConsistencyError(
            f"extension {extension!r} has no introducing generation"
        ) from None
    try:
        return GENERATION_ORDINALS[generation]
    except KeyError:
        raise TableConsistencyError(
            f"generation {generation!r} (for {extension!r}) has no ordinal"
        ) from None


def infer_generation(extensions: Iterable[str]) -> str:
    """Return the oldest generation able to run code using ``extensions``."""
    max_code = GENERATION_ORDINALS[BASELINE_GENERATION]
    for name in extensions:
        max_code = max(max_code, _ordinal_for(name))

    try:
        return ORDINAL_GENERATIONS[max_code]
    except KeyError:
        raise TableConsistencyError(f"ordinal {max_code} has no generation name") from None


def check_tables() -> None:
    """Verify the x86 tables cover one another; raise TableConsistencyError if not."""
    if BASELINE_GENERATION not in GENERATION_ORDINALS:
        raise TableConsistencyError(f"baseline {BASELINE_GENERATION!r} has no ordinal")
    for name in sorted(X86_EXTENSION_NAMES):
        _ordinal_for(name)
    build_reverse_table(GENERATION_ORDINALS)
