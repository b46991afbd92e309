"""Tests for the elfspan command line."""

from __future__ import annotations

import json

from click.testing import CliRunner

from elfspan.cli import EXIT_IO_ERROR, EXIT_REJECTED, elfspan_cli

from elf_builder import build_sample


def _write_sample(tmp_path, bits: int = 64, endian: str = "little"):
    path = tmp_path / "sample.so"
    path.write_bytes(build_sample(bits, endian))
    return path


def test_table_output(tmp_path) -> None:
    path = _write_sample(tmp_path)
    result = CliRunner().invoke(elfspan_cli, [str(path)])
    assert result.exit_code == 0, result.output
    assert "ELF Header" in result.output
    assert "ELF64" in result.output
    assert "Section Headers" in result.output


def test_json_output(tmp_path) -> None:
    path = _write_sample(tmp_path, 32, "big")
    result = CliRunner().invoke(elfspan_cli, [str(path), "--json"])
    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["status"] == "decoded"
    assert report["summary"]["class"] == "ELF32"
    assert report["summary"]["endianness"] == "big"
    assert report["summary"]["needed"] == ["libc.so.6", "libm.so.6"]


def test_report_file(tmp_path) -> None:
    path = _write_sample(tmp_path)
    out = tmp_path / "reports" / "sample.json"
    result = CliRunner().invoke(elfspan_cli, [str(path), "--output", str(out)])
    assert result.exit_code == 0
    assert json.loads(out.read_text())["source"] == str(path)


def test_rejected_file_exits_2(tmp_path) -> None:
    path = tmp_path / "notes.txt"
    path.write_bytes(b"just some text, long enough to pass the length check" * 2)
    result = CliRunner().invoke(elfspan_cli, [str(path), "--json"])
    assert result.exit_code == EXIT_REJECTED
    report = json.loads(result.output)
    assert report["status"] == "rejected"
    assert report["rejection"]["kind"] == "not_elf"


def test_missing_file_exits_1(tmp_path) -> None:
    result = CliRunner().invoke(elfspan_cli, [str(tmp_path / "absent")])
    assert result.exit_code == EXIT_IO_ERROR


def test_config_option(tmp_path) -> None:
    path = _write_sample(tmp_path)
    cfg = tmp_path / "elfspan.toml"
    cfg.write_text("[decoder]\nmax_file_size = 16\n")
    result = CliRunner().invoke(elfspan_cli, [str(path), "-c", str(cfg)])
    assert result.exit_code == EXIT_IO_ERROR
    assert "File too large" in result.output
