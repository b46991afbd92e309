"""Tests for string table enumeration and name lookup."""

from __future__ import annotations

from shared.config import ElfspanConfig

from elfspan.core.engine import ElfDecoder
from elfspan.core.models import AnomalyKind, FieldSpan

from elf_builder import SHT_STRTAB, ElfBuilder


def _strtab_model(decoder, data: bytes, **kwargs):
    b = ElfBuilder(bits=32, endian="little")
    b.add_section(".strtab", SHT_STRTAB, data, **kwargs)
    model = decoder.decode_or_raise(b.build())
    return model, next(t for t in model.string_tables if t.name == ".strtab")


def test_runs_with_offsets_and_lengths(decoder) -> None:
    data = b"abc\x00\x00de\x00" + bytes(12)
    _, table = _strtab_model(decoder, data, offset=100)
    assert table.span == FieldSpan(offset=100, size=20)
    assert [(e.text, e.offset, e.length) for e in table.entries] == [
        ("abc", 100, 4),
        ("de", 105, 3),
    ]
    assert table.entries[1].span == FieldSpan(offset=105, size=3)
    assert not any(e.truncated for e in table.entries)


def test_unterminated_tail_is_truncated(decoder) -> None:
    model, table = _strtab_model(decoder, b"\x00ok\x00tail")
    assert table.texts() == ["ok", "tail"]
    assert table.entries[-1].truncated
    assert table.entries[-1].length == 4
    assert model.anomalies_of(AnomalyKind.TRUNCATED_STRING)


def test_sample_string_tables(sample_model) -> None:
    names = {t.name: t.texts() for t in sample_model.string_tables}
    assert names[".dynstr"] == ["libc.so.6", "libm.so.6", "libsample.so", "puts"]
    assert names[".strtab"] == ["main", "counter"]
    assert ".text" in names[".shstrtab"]


def test_string_spans_cover_text_and_terminator(sample_bytes, sample_model) -> None:
    for table in sample_model.string_tables:
        for entry in table.entries:
            assert entry.span.slice(sample_bytes) == entry.text.encode() + b"\x00"


def test_strings_past_buffer_are_clipped(decoder) -> None:
    model, table = _strtab_model(decoder, b"\x00x\x00", size=0x1000)
    assert table.texts()[0] == "x"
    assert table.span.size == 0x1000
    assert model.anomalies_of(AnomalyKind.DATA_OUT_OF_BOUNDS)


def test_string_count_is_capped() -> None:
    config = ElfspanConfig()
    config.decoder.max_table_entries = 2
    b = ElfBuilder(bits=64, endian="big")
    b.add_section(".strtab", SHT_STRTAB, b"\x00a\x00b\x00c\x00")
    model = ElfDecoder(config=config).decode_or_raise(b.build())
    (strtab,) = [t for t in model.string_tables if t.section_index == 1]
    assert strtab.texts() == ["a", "b"]
    truncated = model.anomalies_of(AnomalyKind.TABLE_TRUNCATED)
    assert any(a.section_index == 1 for a in truncated)


def test_undecodable_bytes_are_replaced(decoder) -> None:
    _, table = _strtab_model(decoder, b"\x00\xffname\x00")
    assert table.texts() == ["\ufffdname"]
