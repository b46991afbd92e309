"""
elfspan Report Generator
=========================

JSON reports of a :class:`~elfspan.core.models.DecodeResult`.  The report
embeds the full model (every field with its span) via pydantic's JSON
dump, plus a ``summary`` block with the rendered enumeration names that
the model exposes only as properties.
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from elfspan.core.models import DecodeResult, ElfModel


class ElfspanReportGenerator:
    """Build and write JSON decode reports.

    Usage::

        generator = ElfspanReportGenerator()
        generator.generate_json(result, "ls.json", source="/bin/ls")
    """

    def __init__(self, indent: int = 2, version: str = "1.0.0") -> None:
        self._indent = indent
        self._version = version

    def build(self, result: DecodeResult, source: str = "<memory>") -> dict[str, Any]:
        """Return the report as a JSON-ready dictionary."""
        report: dict[str, Any] = {
            "report_type": "elfspan_decode",
            "version": self._version,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "source": source,
            "status": result.status.value,
            "duration_seconds": round(result.duration_seconds, 6),
        }
        if result.rejection is not None:
            report["rejection"] = result.rejection.model_dump(mode="json")
        if result.model is not None:
            report["summary"] = self._summary(result.model)
            report["model"] = result.model.model_dump(mode="json")
        return report

    def to_json(self, result: DecodeResult, source: str = "<memory>") -> str:
        return json.dumps(
            self.build(result, source),
            indent=self._indent,
            ensure_ascii=False,
            default=str,
        )

    def generate_json(
        self,
        result: DecodeResult,
        output_path: str | Path,
        source: str = "<memory>",
    ) -> str:
        """Write the JSON report to *output_path*.

        Returns:
            The absolute path of the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(result, source), encoding="utf-8")
        return str(path.resolve())

    # ------------------------------------------------------------------ #
    #  Summary
    # ------------------------------------------------------------------ #

    @staticmethod
    def _summary(model: ElfModel) -> dict[str, Any]:
        identity = model.identity
        header = model.header
        return {
            "class": f"ELF{identity.address_width.value}",
            "endianness": identity.endianness.value,
            "os_abi": identity.os_abi_name,
            "type": header.object_type_name,
            "machine": header.machine_name,
            "entry_point": header.entry_point.value,
            "interpreter": model.interpreter,
            "soname": model.soname,
            "needed": model.needed_libraries,
            "segments": [
                {"index": seg.index, "type": seg.type_name, "flags": seg.flags_str}
                for seg in model.program_headers
            ],
            "sections": [
                {
                    "index": sec.index,
                    "name": sec.name,
                    "type": sec.type_name,
                    "flags": sec.flags_str,
                }
                for sec in model.section_headers
            ],
            "counts": {
                "segments": len(model.program_headers),
                "sections": len(model.section_headers),
                "symbols": sum(len(t.symbols) for t in model.symbol_tables),
                "dynamic_entries": sum(len(t.entries) for t in model.dynamic_tables),
                "relocations": sum(len(t.entries) for t in model.relocation_tables),
                "strings": sum(len(t.entries) for t in model.string_tables),
            },
            "anomalies": dict(Counter(a.kind.value for a in model.anomalies)),
        }
