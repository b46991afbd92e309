"""
elfspan -- ELF Structure Decoder
================================

Decodes a byte buffer holding an ELF object into an immutable,
cross-referenced model in which every field carries the byte offset and
width it was read from.

Capabilities:
    - All four variants: ELF32/ELF64, little/big endian
    - File header, program headers, section headers and section names
    - Symbol tables (.symtab, .dynsym) with binding, type and visibility
    - Dynamic sections, with DT_NEEDED/SONAME/RPATH/RUNPATH resolved
    - REL/RELA relocations with symbol names
    - String table enumeration
    - Non-fatal anomalies for malformed tables, typed rejections for
      files that cannot be decoded at all
    - Rich console tables and JSON reports

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

from elfspan.core.engine import ElfDecoder, decode_elf
from elfspan.core.errors import (
    ElfDecodeError,
    NotElfError,
    OutOfBoundsError,
    UnsupportedVariantError,
)
from elfspan.core.models import DecodeResult, DecodeStatus, ElfModel, FieldSpan, SpanValue

__version__ = "1.0.0"
__all__ = [
    "ElfDecoder",
    "decode_elf",
    "DecodeResult",
    "DecodeStatus",
    "ElfModel",
    "FieldSpan",
    "SpanValue",
    "ElfDecodeError",
    "NotElfError",
    "OutOfBoundsError",
    "UnsupportedVariantError",
]
