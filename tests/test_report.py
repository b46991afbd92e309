"""Tests for JSON report generation."""

from __future__ import annotations

import json

from elfspan.output.report import ElfspanReportGenerator


def test_summary_of_sample(decoder, sample_bytes) -> None:
    report = ElfspanReportGenerator().build(decoder.decode(sample_bytes), source="sample")
    summary = report["summary"]
    assert report["status"] == "decoded"
    assert report["source"] == "sample"
    assert summary["type"] == "EXEC"
    assert summary["machine"] == "x86_64"
    assert summary["interpreter"] == "/lib/ld-linux.so.2"
    assert summary["soname"] == "libsample.so"
    assert summary["counts"]["sections"] == 12
    assert summary["counts"]["symbols"] == 3
    assert summary["counts"]["relocations"] == 3
    assert summary["anomalies"] == {}
    assert [s["name"] for s in summary["sections"]][5] == ".text"


def test_model_dump_keeps_spans(decoder, sample_bytes) -> None:
    data = json.loads(ElfspanReportGenerator(indent=0).to_json(decoder.decode(sample_bytes)))
    entry = data["model"]["header"]["entry_point"]
    assert entry["value"] == 0x401000
    assert entry["span"] == {"offset": 24, "size": entry["span"]["size"]}


def test_rejection_report(decoder) -> None:
    report = ElfspanReportGenerator().build(decoder.decode(b"\x7fELF"))
    assert report["status"] == "rejected"
    assert report["rejection"]["kind"] == "not_elf"
    assert "model" not in report


def test_generate_json_writes_file(decoder, sample_bytes, tmp_path) -> None:
    out = ElfspanReportGenerator().generate_json(
        decoder.decode(sample_bytes), tmp_path / "out" / "r.json", source="s"
    )
    assert json.loads(open(out, encoding="utf-8").read())["source"] == "s"
