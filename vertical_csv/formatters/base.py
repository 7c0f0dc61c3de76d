"""Abstract base formatter and output container.

WHY: The CLI and the HTTP API both need to turn decoded records into a
document. This base class gives every output format the same interface
so callers can work with any formatter generically.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; current formatters return one item
- ``suffix`` starts with a hyphen, e.g. ``"-records.json"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vertical_csv.core.ir import DecodeResult

_SCHEMA_PATH = Path(__file__).resolve().parent / "records_schema.json"

_CACHED_SCHEMA: dict[str, Any] | None = None


def get_records_schema() -> dict[str, Any]:
    """Load the output JSON schema, cached after the first call."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-records.json"`` → ``"people-records.json"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable formatter name (e.g. "JSON document")."""

    @abstractmethod
    def format(self, result: DecodeResult) -> list[FormatterOutput]:
        """Render the decoded records into one or more output files."""
