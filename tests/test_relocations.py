"""Tests for the relocation table decoder."""

from __future__ import annotations

import pytest

from elfspan.core.models import AddressWidth, AnomalyKind, FieldSpan, SpanValue
from elfspan.parsers.relocations import split_info

from elf_builder import SHT_PROGBITS, SHT_REL, SHT_RELA, SHT_SYMTAB, ElfBuilder


@pytest.mark.parametrize(
    "width, info, expected",
    [
        (AddressWidth.BITS_32, 0x00000207, (2, 7)),
        (AddressWidth.BITS_32, 0xFFFFFF01, (0xFFFFFF, 1)),
        (AddressWidth.BITS_64, 0x0000000200000007, (2, 7)),
        (AddressWidth.BITS_64, 0x00000001FFFFFFFF, (1, 0xFFFFFFFF)),
    ],
)
def test_info_split_by_width(width, info: int, expected: tuple[int, int]) -> None:
    span = FieldSpan(offset=8, size=width.address_bytes)
    symbol, rtype = split_info(SpanValue(value=info, span=span), width)
    assert (symbol.value, rtype.value) == expected
    assert symbol.span == rtype.span == span


def test_sample_rela_entries(sample_model) -> None:
    rela = next(t for t in sample_model.relocation_tables if t.is_rela)
    assert rela.name == ".rela.text"
    assert rela.symbol_table_index == 8
    assert rela.target_section_index == 5

    first, second = rela.entries
    assert first.target_offset.value == 0x401004
    assert first.symbol_index.value == 2
    assert first.relocation_type.value == 2
    assert first.addend.value == -4
    assert first.symbol_name == "counter"

    assert second.target_offset.value == 0x401010
    assert second.relocation_type.value == 4
    assert second.addend.value == 0x10
    assert second.symbol_name == "main"


def test_sample_rel_entries_have_no_addend(sample_model) -> None:
    rel = next(t for t in sample_model.relocation_tables if not t.is_rela)
    assert rel.name == ".rel.dyn"
    (entry,) = rel.entries
    assert entry.addend is None
    assert entry.symbol_name == "puts"
    assert entry.relocation_type.value == 7
    assert entry.target_offset.value == 0x403000


def test_entry_sizes_per_shape(sample_model) -> None:
    bits = sample_model.identity.address_width.value
    sizes = {t.is_rela: t.entries[0].entry_span.size for t in sample_model.relocation_tables}
    if bits == 32:
        assert sizes == {False: 8, True: 12}
    else:
        assert sizes == {False: 16, True: 24}


def _with_symtab(bits: int, endian: str) -> tuple[ElfBuilder, int]:
    b = ElfBuilder(bits=bits, endian=endian)
    symtab = b.add_section(
        ".symtab", SHT_SYMTAB, b.sym() + b.sym(value=1), entsize=len(b.sym()),
    )
    return b, symtab


def test_symbol_index_past_table_resolves_to_none(decoder, variant) -> None:
    bits, endian = variant
    b, symtab = _with_symtab(bits, endian)
    b.add_section(
        ".rel.text", SHT_REL, b.rel(0x10, 9, 1), link=symtab,
        entsize=len(b.rel(0, 0, 0)),
    )
    model = decoder.decode_or_raise(b.build())
    entry = model.relocation_tables[0].entries[0]
    assert entry.symbol_index.value == 9
    assert entry.symbol_name is None
    assert [a.kind for a in model.anomalies] == [AnomalyKind.SYMBOL_INDEX_OUT_OF_RANGE]


def test_symbol_zero_means_no_symbol(decoder) -> None:
    b, symtab = _with_symtab(64, "little")
    b.add_section(".rela.dyn", SHT_RELA, b.rela(0x20, 0, 8, 0x1000), link=symtab, entsize=24)
    model = decoder.decode_or_raise(b.build())
    entry = model.relocation_tables[0].entries[0]
    assert entry.symbol_name is None
    assert entry.addend.value == 0x1000
    assert model.anomalies == ()


def test_unlinked_table_has_no_names(decoder) -> None:
    b = ElfBuilder(bits=32, endian="big")
    b.add_section(".rel.plt", SHT_REL, b.rel(0x30, 1, 7), entsize=8)
    model = decoder.decode_or_raise(b.build())
    assert model.relocation_tables[0].entries[0].symbol_name is None
    assert model.anomalies == ()


def test_link_out_of_range_is_recorded(decoder) -> None:
    b = ElfBuilder(bits=32, endian="little")
    b.add_section(".rel.plt", SHT_REL, b.rel(0x30, 1, 7), link=50, entsize=8)
    model = decoder.decode_or_raise(b.build())
    assert model.relocation_tables[0].entries[0].symbol_name is None
    assert model.anomalies_of(AnomalyKind.LINK_OUT_OF_RANGE)


def test_link_to_non_symbol_section_is_recorded(decoder) -> None:
    b = ElfBuilder(bits=64, endian="little")
    text = b.add_section(".text", SHT_PROGBITS, b"\x90" * 16)
    b.add_section(".rela.text", SHT_RELA, b.rela(0x4, 1, 2, 0), link=text, entsize=24)
    model = decoder.decode_or_raise(b.build())
    table = model.relocation_tables[0]
    assert table.symbol_table_index == text
    assert table.entries[0].symbol_name is None
    (anomaly,) = model.anomalies
    assert anomaly.kind == AnomalyKind.LINK_WRONG_TYPE
    assert anomaly.section_index == table.section_index


def test_entry_size_too_small_uses_layout(decoder) -> None:
    b = ElfBuilder(bits=64, endian="little")
    b.add_section(".rela.dyn", SHT_RELA, b.rela(0x20, 0, 8, 1) * 2, entsize=8)
    model = decoder.decode_or_raise(b.build())
    assert len(model.relocation_tables[0].entries) == 2
    assert model.anomalies_of(AnomalyKind.ENTRY_SIZE_TOO_SMALL)
