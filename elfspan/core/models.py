"""
elfspan Data Models
====================

Pydantic v2 models describing a decoded ELF object.  Every numeric field
read from the file is a :class:`SpanValue`: the integer together with the
:class:`FieldSpan` (byte offset, byte width) it was read from.  Spans are
produced by the primitive reader at read time and are never reconstructed
from table geometry afterwards, so presentation layers need no format
knowledge to highlight the bytes behind a value.

All models are frozen and all collections are tuples: a model is built
once per decode call and never mutated.  A host that edits the underlying
bytes must decode again.

References:
    - TIS Committee. (1995). Executable and Linkable Format (ELF) Specification.
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from elfspan.parsers import constants as C


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Endianness(str, enum.Enum):
    """Byte order declared by ``e_ident[EI_DATA]``."""
    LITTLE = "little"
    BIG = "big"

    @property
    def struct_prefix(self) -> str:
        return "<" if self is Endianness.LITTLE else ">"


class AddressWidth(int, enum.Enum):
    """Address width declared by ``e_ident[EI_CLASS]``."""
    BITS_32 = 32
    BITS_64 = 64

    @property
    def address_bytes(self) -> int:
        return 4 if self is AddressWidth.BITS_32 else 8


class AnomalyKind(str, enum.Enum):
    """Non-fatal irregularities recorded alongside the model."""
    ZERO_ENTRY_SIZE = "zero_entry_size"
    UNTERMINATED_DYNAMIC = "unterminated_dynamic"
    TRUNCATED_STRING = "truncated_string"
    HEADER_SIZE_MISMATCH = "header_size_mismatch"
    SYMBOL_INDEX_OUT_OF_RANGE = "symbol_index_out_of_range"
    NAME_TABLE_INDEX_OUT_OF_RANGE = "name_table_index_out_of_range"
    NAME_INDEX_OUT_OF_RANGE = "name_index_out_of_range"
    LINK_OUT_OF_RANGE = "link_out_of_range"
    LINK_WRONG_TYPE = "link_wrong_type"
    ENTRY_OUT_OF_BOUNDS = "entry_out_of_bounds"
    PARTIAL_ENTRY = "partial_entry"
    ENTRY_SIZE_TOO_SMALL = "entry_size_too_small"
    DATA_OUT_OF_BOUNDS = "data_out_of_bounds"
    TABLE_TRUNCATED = "table_truncated"


class RejectionKind(str, enum.Enum):
    """Fatal conditions that abort a decode."""
    NOT_ELF = "not_elf"
    UNSUPPORTED_VARIANT = "unsupported_variant"
    OUT_OF_BOUNDS = "out_of_bounds"


class DecodeStatus(str, enum.Enum):
    """Terminal states of the decode orchestrator."""
    DECODED = "decoded"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Spans
# ---------------------------------------------------------------------------

class FieldSpan(BaseModel):
    """A byte range ``[offset, offset + size)`` in the source buffer.

    Attributes:
        offset: File offset of the first byte.
        size: Number of bytes covered.
    """
    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)
    size: int = Field(ge=0)

    @property
    def end(self) -> int:
        """Offset one past the last byte."""
        return self.offset + self.size

    def contains(self, position: int) -> bool:
        return self.offset <= position < self.end

    def slice(self, data: bytes | bytearray | memoryview) -> bytes:
        """Return the bytes this span designates in *data*."""
        return bytes(data[self.offset:self.end])


class SpanValue(BaseModel):
    """A decoded integer and the span it was read from."""
    model_config = ConfigDict(frozen=True)

    value: int
    span: FieldSpan

    def __int__(self) -> int:
        return self.value


# ---------------------------------------------------------------------------
# File header
# ---------------------------------------------------------------------------

class FileIdentity(BaseModel):
    """The ``e_ident`` bytes that select one of the four variants.

    Attributes:
        address_width: 32 or 64, from the class byte.
        endianness: Little or big, from the data byte.
        magic: Span of the four magic bytes.
        elf_class: Raw class byte.
        data_encoding: Raw data byte.
        ident_version: ``e_ident[EI_VERSION]``.
        os_abi: ``e_ident[EI_OSABI]``.
        abi_version: ``e_ident[EI_ABIVERSION]``.
    """
    model_config = ConfigDict(frozen=True)

    address_width: AddressWidth
    endianness: Endianness
    magic: FieldSpan
    elf_class: SpanValue
    data_encoding: SpanValue
    ident_version: SpanValue
    os_abi: SpanValue
    abi_version: SpanValue

    @property
    def os_abi_name(self) -> str:
        return C.describe_osabi(self.os_abi.value)


class TableGeometry(BaseModel):
    """Offset, entry size and entry count of a header table."""
    model_config = ConfigDict(frozen=True)

    offset: SpanValue
    entry_size: SpanValue
    count: SpanValue

    @property
    def span(self) -> FieldSpan:
        """Byte range the table occupies as declared."""
        return FieldSpan(
            offset=self.offset.value,
            size=self.entry_size.value * self.count.value,
        )


class ElfHeader(BaseModel):
    """Decoded ELF file header (``Elf32_Ehdr`` / ``Elf64_Ehdr``)."""
    model_config = ConfigDict(frozen=True)

    identity: FileIdentity
    object_type: SpanValue
    machine: SpanValue
    version: SpanValue
    entry_point: SpanValue
    program_header_table: TableGeometry
    section_header_table: TableGeometry
    flags: SpanValue
    header_size: SpanValue
    section_name_table_index: SpanValue

    @property
    def object_type_name(self) -> str:
        return C.describe_object_type(self.object_type.value)

    @property
    def machine_name(self) -> str:
        return C.describe_machine(self.machine.value)


# ---------------------------------------------------------------------------
# Table entries
# ---------------------------------------------------------------------------

class ProgramHeaderEntry(BaseModel):
    """A segment descriptor.

    ``segment_data`` is the span of the segment's on-disk bytes and is
    only present when ``file_size > 0``.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    entry_span: FieldSpan
    segment_type: SpanValue
    flags: SpanValue
    file_offset: SpanValue
    virtual_address: SpanValue
    physical_address: SpanValue
    file_size: SpanValue
    memory_size: SpanValue
    alignment: SpanValue
    segment_data: Optional[FieldSpan] = None

    @property
    def type_name(self) -> str:
        return C.describe_segment_type(self.segment_type.value)

    @property
    def flags_str(self) -> str:
        return C.segment_flags_str(self.flags.value)


class SectionHeaderEntry(BaseModel):
    """A section descriptor.

    A NOBITS section occupies no file bytes: ``data_span`` is ``None``
    for it, whatever its ``size`` says.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    entry_span: FieldSpan
    name_index: SpanValue
    name: str = ""
    name_span: Optional[FieldSpan] = None
    section_type: SpanValue
    flags: SpanValue
    virtual_address: SpanValue
    file_offset: SpanValue
    size: SpanValue
    link: SpanValue
    info: SpanValue
    alignment: SpanValue
    entry_size: SpanValue
    data_span: Optional[FieldSpan] = None

    @property
    def type_name(self) -> str:
        return C.describe_section_type(self.section_type.value)

    @property
    def flags_str(self) -> str:
        return C.section_flags_str(self.flags.value)

    @property
    def is_nobits(self) -> bool:
        return self.section_type.value == C.SHT_NOBITS


class SymbolEntry(BaseModel):
    """A symbol table entry.

    ``binding`` and ``symbol_type`` are the two nibbles of ``info`` and
    carry its span; ``visibility`` is the low two bits of ``other`` and
    carries that span.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    entry_span: FieldSpan
    name_index: SpanValue
    name: str = ""
    name_span: Optional[FieldSpan] = None
    value: SpanValue
    size: SpanValue
    info: SpanValue
    binding: SpanValue
    symbol_type: SpanValue
    other: SpanValue
    visibility: SpanValue
    section_index: SpanValue

    @property
    def is_unused(self) -> bool:
        """Empty name and zero value: a placeholder slot."""
        return not self.name and self.value.value == 0

    @property
    def binding_name(self) -> str:
        return C.describe_symbol_binding(self.binding.value)

    @property
    def type_name(self) -> str:
        return C.describe_symbol_type(self.symbol_type.value)

    @property
    def visibility_name(self) -> str:
        return C.describe_symbol_visibility(self.visibility.value)

    @property
    def section_index_name(self) -> str:
        return C.describe_section_index(self.section_index.value)


class DynamicEntry(BaseModel):
    """A ``d_tag`` / ``d_val`` pair.

    ``string_value`` holds the resolved text for tags whose value is an
    offset into the dynamic string table (NEEDED, SONAME, RPATH, RUNPATH).
    """
    model_config = ConfigDict(frozen=True)

    index: int
    entry_span: FieldSpan
    tag: SpanValue
    value: SpanValue
    string_value: Optional[str] = None

    @property
    def tag_name(self) -> str:
        return C.describe_dynamic_tag(self.tag.value)

    @property
    def is_terminator(self) -> bool:
        return self.tag.value == C.DT_NULL


class RelocationEntry(BaseModel):
    """A REL or RELA entry.

    ``symbol_index`` and ``relocation_type`` are unpacked from ``info``
    and carry its span.  ``addend`` is present only for RELA entries.
    ``symbol_name`` is ``None`` when the entry references no symbol or
    the reference could not be resolved.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    entry_span: FieldSpan
    target_offset: SpanValue
    info: SpanValue
    symbol_index: SpanValue
    relocation_type: SpanValue
    addend: Optional[SpanValue] = None
    symbol_name: Optional[str] = None


class StringTableEntry(BaseModel):
    """A non-empty NUL-terminated run inside a string table.

    ``length`` includes the terminator unless ``truncated`` is set, in
    which case the run hit the section or buffer boundary first.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    offset: int
    length: int
    truncated: bool = False

    @property
    def span(self) -> FieldSpan:
        return FieldSpan(offset=self.offset, size=self.length)


# ---------------------------------------------------------------------------
# Per-section tables
# ---------------------------------------------------------------------------

class SymbolTable(BaseModel):
    """Symbols decoded from one SYMTAB or DYNSYM section.

    ``entries`` holds every slot so that relocation indices stay valid;
    :attr:`symbols` is the queryable set.
    """
    model_config = ConfigDict(frozen=True)

    section_index: int
    name: str
    section_type: int
    string_table_index: int
    span: FieldSpan
    entries: tuple[SymbolEntry, ...] = ()
    excludes_unused: bool = True

    @property
    def symbols(self) -> tuple[SymbolEntry, ...]:
        if not self.excludes_unused:
            return self.entries
        return tuple(s for s in self.entries if not s.is_unused)

    def get(self, index: int) -> Optional[SymbolEntry]:
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def find(self, name: str) -> Optional[SymbolEntry]:
        """Return the first symbol called *name*, if any."""
        for sym in self.entries:
            if sym.name == name:
                return sym
        return None


class DynamicTable(BaseModel):
    """Entries decoded from one DYNAMIC section."""
    model_config = ConfigDict(frozen=True)

    section_index: int
    name: str
    string_table_index: int
    span: FieldSpan
    entries: tuple[DynamicEntry, ...] = ()
    terminated: bool = False

    def values_for(self, tag: int) -> tuple[DynamicEntry, ...]:
        return tuple(e for e in self.entries if e.tag.value == tag)


class RelocationTable(BaseModel):
    """Entries decoded from one REL or RELA section."""
    model_config = ConfigDict(frozen=True)

    section_index: int
    name: str
    is_rela: bool
    symbol_table_index: int
    target_section_index: int
    span: FieldSpan
    entries: tuple[RelocationEntry, ...] = ()


class StringTable(BaseModel):
    """Strings enumerated from one STRTAB section."""
    model_config = ConfigDict(frozen=True)

    section_index: int
    name: str
    span: FieldSpan
    entries: tuple[StringTableEntry, ...] = ()

    def texts(self) -> list[str]:
        return [e.text for e in self.entries]


# ---------------------------------------------------------------------------
# Diagnostics and results
# ---------------------------------------------------------------------------

class Anomaly(BaseModel):
    """A non-fatal irregularity found while decoding.

    Attributes:
        kind: Category of the irregularity.
        message: Human-readable description.
        offset: File offset where it was detected, when known.
        section_index: Section the anomaly belongs to, when applicable.
    """
    model_config = ConfigDict(frozen=True)

    kind: AnomalyKind
    message: str
    offset: Optional[int] = None
    section_index: Optional[int] = None


class ElfModel(BaseModel):
    """The complete, cross-referenced decode of one ELF buffer."""
    model_config = ConfigDict(frozen=True)

    file_size: int
    header: ElfHeader
    program_headers: tuple[ProgramHeaderEntry, ...] = ()
    section_headers: tuple[SectionHeaderEntry, ...] = ()
    symbol_tables: tuple[SymbolTable, ...] = ()
    dynamic_tables: tuple[DynamicTable, ...] = ()
    relocation_tables: tuple[RelocationTable, ...] = ()
    string_tables: tuple[StringTable, ...] = ()
    interpreter: Optional[str] = None
    anomalies: tuple[Anomaly, ...] = ()

    @property
    def identity(self) -> FileIdentity:
        return self.header.identity

    def section_by_name(self, name: str) -> Optional[SectionHeaderEntry]:
        for sec in self.section_headers:
            if sec.name == name:
                return sec
        return None

    def symbol_table_for(self, section_index: int) -> Optional[SymbolTable]:
        for table in self.symbol_tables:
            if table.section_index == section_index:
                return table
        return None

    @property
    def needed_libraries(self) -> list[str]:
        """DT_NEEDED names in table order."""
        libs: list[str] = []
        for table in self.dynamic_tables:
            for entry in table.values_for(C.DT_NEEDED):
                if entry.string_value is not None:
                    libs.append(entry.string_value)
        return libs

    @property
    def soname(self) -> Optional[str]:
        for table in self.dynamic_tables:
            for entry in table.values_for(C.DT_SONAME):
                if entry.string_value is not None:
                    return entry.string_value
        return None

    def anomalies_of(self, kind: AnomalyKind) -> list[Anomaly]:
        return [a for a in self.anomalies if a.kind == kind]

    def iter_field_spans(self) -> Iterator[tuple[str, SpanValue]]:
        """Yield ``(path, value)`` for every decoded field in the model.

        Paths use attribute and index notation, for example
        ``"section_headers[3].size"``.
        """
        yield from _walk_spans(self, "")


def _walk_spans(obj: object, prefix: str) -> Iterator[tuple[str, SpanValue]]:
    if isinstance(obj, SpanValue):
        yield prefix, obj
    elif isinstance(obj, BaseModel):
        for name in type(obj).model_fields:
            path = f"{prefix}.{name}" if prefix else name
            yield from _walk_spans(getattr(obj, name), path)
    elif isinstance(obj, tuple):
        for i, item in enumerate(obj):
            yield from _walk_spans(item, f"{prefix}[{i}]")


class Rejection(BaseModel):
    """Why a buffer could not be decoded at all."""
    model_config = ConfigDict(frozen=True)

    kind: RejectionKind
    message: str
    offset: Optional[int] = None


class DecodeResult(BaseModel):
    """Terminal state of one decode call: a model or a rejection."""
    model_config = ConfigDict(frozen=True)

    status: DecodeStatus
    model: Optional[ElfModel] = None
    rejection: Optional[Rejection] = None
    duration_seconds: float = 0.0

    @model_validator(mode="after")
    def _check_state(self) -> DecodeResult:
        if self.status is DecodeStatus.DECODED and self.model is None:
            raise ValueError("a decoded result must carry a model")
        if self.status is DecodeStatus.REJECTED and self.rejection is None:
            raise ValueError("a rejected result must carry a rejection")
        return self

    @property
    def ok(self) -> bool:
        return self.status is DecodeStatus.DECODED
