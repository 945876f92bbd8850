"""Instruction-group classification tables.

Capstone reports instruction groups as small integers whose values are
only meaningful per architecture and which have shifted between capstone
releases. Each table here is declared against capstone's own constant
names and resolved once at import, so the numeric keys always agree with
the installed decoder. Constants missing from the installed capstone are
left out of the table; an instruction in such a group is then simply
unclassified.

The x86 and AArch64 tables share numeric ranges (both start at 128) and
must never be consulted for the other architecture.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType, ModuleType

from capstone import arm64_const, x86_const

_X86_GROUP_NAMES = {
    "X86_GRP_VM": "VT-x/AMD-V",
    "X86_GRP_3DNOW": "3DNow",
    "X86_GRP_AES": "AES",
    "X86_GRP_ADX": "ADX",
    "X86_GRP_AVX": "AVX",
    "X86_GRP_AVX2": "AVX2",
    "X86_GRP_AVX512": "AVX512",
    "X86_GRP_BMI": "BMI",
    "X86_GRP_BMI2": "BMI2",
    "X86_GRP_CMOV": "CMOV",
    "X86_GRP_F16C": "F16C",
    "X86_GRP_FMA": "FMA",
    "X86_GRP_FMA4": "FMA4",
    "X86_GRP_FSGSBASE": "FSGSBASE",
    "X86_GRP_HLE": "HLE",
    "X86_GRP_MMX": "MMX",
    "X86_GRP_MODE32": "MODE32",
    "X86_GRP_MODE64": "MODE64",
    "X86_GRP_RTM": "RTM",
    "X86_GRP_SHA": "SHA",
    "X86_GRP_SSE1": "SSE1",
    "X86_GRP_SSE2": "SSE2",
    "X86_GRP_SSE3": "SSE3",
    "X86_GRP_SSE41": "SSE41",
    "X86_GRP_SSE42": "SSE42",
    "X86_GRP_SSE4A": "SSE4A",
    "X86_GRP_SSSE3": "SSSE3",
    "X86_GRP_PCLMUL": "PCLMUL",
    "X86_GRP_XOP": "XOP",
    "X86_GRP_CDI": "CDI",
    "X86_GRP_ERI": "ERI",
    "X86_GRP_TBM": "TBM",
    "X86_GRP_16BITMODE": "16BITMODE",
    "X86_GRP_NOT64BITMODE": "NOT64BITMODE",
    "X86_GRP_SGX": "SGX",
    "X86_GRP_DQI": "DQI",
    "X86_GRP_BWI": "BWI",
    "X86_GRP_PFI": "PFI",
    "X86_GRP_VLX": "VLX",
    "X86_GRP_SMAP": "SMAP",
    "X86_GRP_NOVLX": "NOVLX",
    "X86_GRP_FPU": "FPU",
}

_AARCH64_GROUP_NAMES = {
    "ARM64_GRP_PAC": "PAC",
    "ARM64_GRP_CRYPTO": "Crypto",
    "ARM64_GRP_FPARMV8": "FPARMV8",
    "ARM64_GRP_NEON": "NEON",
    "ARM64_GRP_CRC": "CRC",
    "ARM64_GRP_AES": "AES",
    "ARM64_GRP_DOTPROD": "DotProd",
    "ARM64_GRP_FULLFP16": "FullFP16",
    "ARM64_GRP_LSE": "LSE",
    "ARM64_GRP_RCPC": "RCPC",
    "ARM64_GRP_RDM": "RDM",
    "ARM64_GRP_SHA2": "SHA2",
    "ARM64_GRP_SHA3": "SHA3",
    "ARM64_GRP_SM4": "SM4",
    "ARM64_GRP_SVE": "SVE",
    "ARM64_GRP_SVE2": "SVE2",
    "ARM64_GRP_SVE2AES": "SVE2-AES",
    "ARM64_GRP_SVE2BitPerm": "SVE2-BitPerm",
    "ARM64_GRP_SVE2SHA3": "SVE2-SHA3",
    "ARM64_GRP_SVE2SM4": "SVE2-SM4",
    "ARM64_GRP_SME": "SME",
    "ARM64_GRP_SMEF64": "SME-F64",
    "ARM64_GRP_SMEI64": "SME-I64",
    "ARM64_GRP_MatMulFP32": "F32MM",
    "ARM64_GRP_MatMulFP64": "F64MM",
    "ARM64_GRP_MatMulInt8": "I8MM",
    "ARM64_GRP_V8_1A": "ARMv8.1-A",
    "ARM64_GRP_V8_3A": "ARMv8.3-A",
    "ARM64_GRP_V8_4A": "ARMv8.4-A",
}


def _resolve(module: ModuleType, names: Mapping[str, str]) -> Mapping[int, str]:
    table: dict[int, str] = {}
    for const_name, ext_name in names.items():
        code = getattr(module, const_name, None)
        if code is not None:
            table[code] = ext_name
    return MappingProxyType(table)


X86_GROUPS: Mapping[int, str] = _resolve(x86_const, _X86_GROUP_NAMES)
AARCH64_GROUPS: Mapping[int, str] = _resolve(arm64_const, _AARCH64_GROUP_NAMES)

# Every name the x86 table can produce, whether or not the installed
# capstone defines the matching group.
X86_EXTENSION_NAMES: frozenset[str] = frozenset(_X86_GROUP_NAMES.values())
