"""JSON Lines formatter: one decoded record per line.

WHY: Large inputs produce many records; line-delimited output can be
streamed into other tools (jq, log shippers, bulk loaders) without
parsing one huge document.

HOW: Each record's to_dict() is validated against the record definition
of records_schema.json and written as compact JSON on its own line.

RULES:
- One record per line, newline-terminated; no header line
- Each line is validated; raises on invalid output
- Output suffix: "-records.jsonl"
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from vertical_csv.core.ir import DecodeResult
from vertical_csv.formatters.base import BaseFormatter, FormatterOutput, get_records_schema


def _record_schema() -> dict[str, Any]:
    full = get_records_schema()
    return {
        "$schema": full["$schema"],
        "$ref": "#/$defs/record",
        "$defs": full["$defs"],
    }


class JsonLinesFormatter(BaseFormatter):
    """Formatter producing newline-delimited JSON records."""

    @property
    def name(self) -> str:
        return "JSON Lines"

    def format(self, result: DecodeResult) -> list[FormatterOutput]:
        schema = _record_schema()
        lines = []
        for record in result.records:
            item = record.to_dict()
            jsonschema.validate(instance=item, schema=schema)
            lines.append(json.dumps(item, ensure_ascii=False) + "\n")
        return [
            FormatterOutput(
                suffix="-records.jsonl",
                content="".join(lines),
                media_type="application/x-ndjson",
            )
        ]
