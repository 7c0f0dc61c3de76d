"""Output formatter registry.

WHY: The CLI and the API need a single lookup to find the right
formatter by name. Adding a format means one new module and one line
here.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["json"]()``.

RULES:
- Keys are short lowercase identifiers (used in CLI flags and the API)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vertical_csv.formatters.json_lines import JsonLinesFormatter
from vertical_csv.formatters.json_records import JsonRecordsFormatter

if TYPE_CHECKING:
    from vertical_csv.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "json": JsonRecordsFormatter,
    "jsonl": JsonLinesFormatter,
}
