"""Vertical CSV: decode row-major and transposed CSV into nested records.

WHY: Wide tables are hard to read and edit; writing them transposed
(one line per field, one column per record) keeps every label visible
and makes schema changes obvious in a diff. Either way, the labels
carry structure ("Skills[2]", "Address.City", "Projects[1].Role") that
must be rebuilt into nested records, and successive schema revisions
must be accepted by the same decoder.

HOW: Five-stage pipeline. Source (bytes, buffered or memory-mapped
files), tokenizer (quoting and escaping), layout assembler (row-major
or transposed), path decoder (labels to nested Record), schema gate
(required fields). Each stage is independently testable.

RULES:
- Decoding is schema-independent; the schema only gates acceptance
- Both layouts decode the same table to the same records
- Parse operations are async generators with cooperative cancellation
"""

__version__ = "0.1.0"

from vertical_csv.core.ir import Address, DecodeResult, Project, Record  # noqa: E402
from vertical_csv.core.parser import (  # noqa: E402
    ParseCancelled,
    VerticalCsvError,
    parse_horizontal,
    parse_horizontal_file,
    parse_path,
    parse_text,
    parse_vertical,
    parse_vertical_file,
)
from vertical_csv.core.schema import (  # noqa: E402
    V1,
    V2,
    V3,
    V4,
    SchemaVersion,
    get_schema,
    load_schema,
)

__all__ = [
    "Address",
    "DecodeResult",
    "ParseCancelled",
    "Project",
    "Record",
    "SchemaVersion",
    "V1",
    "V2",
    "V3",
    "V4",
    "VerticalCsvError",
    "get_schema",
    "load_schema",
    "parse_horizontal",
    "parse_horizontal_file",
    "parse_path",
    "parse_text",
    "parse_vertical",
    "parse_vertical_file",
]
