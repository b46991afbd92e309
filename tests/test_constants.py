"""Tests for the ELF constant lookups."""

from __future__ import annotations

import pytest

from elfspan.parsers import constants as C


@pytest.mark.parametrize(
    "describe, value, expected",
    [
        (C.describe_object_type, 3, "DYN"),
        (C.describe_machine, 62, "x86_64"),
        (C.describe_machine, 0xBEEF, "Unknown (0xbeef)"),
        (C.describe_segment_type, C.PT_INTERP, "INTERP"),
        (C.describe_segment_type, 0x6474E553, "GNU_PROPERTY"),
        (C.describe_section_type, C.SHT_NOBITS, "NOBITS"),
        (C.describe_dynamic_tag, C.DT_RUNPATH, "RUNPATH"),
        (C.describe_dynamic_tag, -1, "Unknown (-0x1)"),
        (C.describe_symbol_binding, 1, "GLOBAL"),
        (C.describe_symbol_type, 2, "FUNC"),
        (C.describe_symbol_visibility, 3, "PROTECTED"),
        (C.describe_osabi, 0, "SYSV"),
    ],
)
def test_describe(describe, value: int, expected: str) -> None:
    assert describe(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(0, "UND"), (0xFFF1, "ABS"), (0xFFF2, "COM"), (7, "7")],
)
def test_section_index_names(value: int, expected: str) -> None:
    assert C.describe_section_index(value) == expected


@pytest.mark.parametrize(
    "flags, expected",
    [(0, "---"), (C.PF_R, "R--"), (C.PF_R | C.PF_X, "R-X"), (7, "RWX")],
)
def test_segment_flags(flags: int, expected: str) -> None:
    assert C.segment_flags_str(flags) == expected


@pytest.mark.parametrize(
    "flags, expected",
    [(0, "-"), (0x1, "W"), (0x6, "AX"), (0x7, "WAX"), (0x30, "MS")],
)
def test_section_flags(flags: int, expected: str) -> None:
    assert C.section_flags_str(flags) == expected


def test_string_valued_tags() -> None:
    assert C.DT_STRING_TAGS == frozenset(
        {C.DT_NEEDED, C.DT_SONAME, C.DT_RPATH, C.DT_RUNPATH}
    )
