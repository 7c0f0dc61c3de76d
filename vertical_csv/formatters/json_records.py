"""JSON document formatter for decoded records.

WHY: Decoded records are nested (lists, an address object, a list of
projects), which JSON represents directly. One self-describing document
per input file is the default output of the CLI and the shape the HTTP
API returns.

HOW: Builds {"schema_version", "layout", "source", "count", "records"}
from the DecodeResult, validates it against records_schema.json, and
serializes it with two-space indentation.

RULES:
- Schema validation is mandatory; raises on invalid output
- Dates are ISO-8601 strings, missing optional values are null
- Non-ASCII text is written as-is (ensure_ascii=False)
- Output suffix: "-records.json"
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from vertical_csv.core.ir import DecodeResult
from vertical_csv.formatters.base import BaseFormatter, FormatterOutput, get_records_schema


def build_document(result: DecodeResult) -> dict[str, Any]:
    """The JSON-ready document for a decode result (not yet validated)."""
    return {
        "schema_version": result.schema_version,
        "layout": result.layout,
        "source": result.source_filename,
        "count": len(result.records),
        "records": [record.to_dict() for record in result.records],
    }


class JsonRecordsFormatter(BaseFormatter):
    """Formatter producing one validated JSON document."""

    @property
    def name(self) -> str:
        return "JSON document"

    def format(self, result: DecodeResult) -> list[FormatterOutput]:
        """Render all records into a single JSON document.

        Raises:
            jsonschema.ValidationError: If the document does not conform
                to records_schema.json.
        """
        document = build_document(result)
        jsonschema.validate(instance=document, schema=get_records_schema())
        return [
            FormatterOutput(
                suffix="-records.json",
                content=json.dumps(document, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
