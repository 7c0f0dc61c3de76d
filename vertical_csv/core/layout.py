"""Layout assembly: turning tokenized lines into raw (label, value) records.

WHY: The same records can be written row-major (a header line, then one
line per record) or transposed (one line per field: the label followed
by that field's value for every record). The path decoder should not
care which; it receives an ordered list of (label, value) pairs per
record either way.

HOW: Each layout is an assembler class with a ``records(lines)`` async
generator and a ``labels`` attribute listing the labels seen.
HorizontalAssembler streams: it pairs each line with the header as soon
as the line arrives. VerticalAssembler cannot: a record is a column
across every line, and line lengths may differ, so the number of
records is only known at end of input. It buffers one (label, value)
list per column and emits the columns after the last line.

RULES:
- Blank lines ([] from the tokenizer) are skipped in both layouts
- Horizontal: the first non-empty line is the header; values pair with
  labels positionally up to the shorter of the two
- Vertical: column i becomes record i; a line without a value at
  column i contributes nothing to record i
- Pairs keep line order, so a label repeated later overwrites earlier
  writes during decoding
- Vertical emits records in increasing column order; labels keep the
  order of first appearance
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List, Tuple

logger = logging.getLogger(__name__)

RawRecord = List[Tuple[str, str]]


class HorizontalAssembler:
    """Row-major layout: header line, then one record per line."""

    def __init__(self) -> None:
        self.labels: List[str] = []

    async def records(self, lines: AsyncIterator[List[str]]) -> AsyncIterator[RawRecord]:
        header: List[str] = []
        async for line in lines:
            if not line:
                continue
            if not header:
                header = line
                self.labels = list(header)
                logger.debug("Horizontal header with %d labels", len(header))
                continue
            yield list(zip(header, line))


class VerticalAssembler:
    """Transposed layout: one line per field, one column per record.

    Holds the whole input in memory before the first record is emitted.
    """

    def __init__(self) -> None:
        self.labels: List[str] = []

    async def records(self, lines: AsyncIterator[List[str]]) -> AsyncIterator[RawRecord]:
        columns: List[RawRecord] = []
        seen: Dict[str, None] = {}

        async for line in lines:
            if not line:
                continue
            label = line[0]
            seen.setdefault(label, None)
            for i, value in enumerate(line[1:]):
                if i >= len(columns):
                    columns.append([])
                columns[i].append((label, value))

        self.labels = list(seen)
        logger.debug(
            "Vertical input: %d labels, %d records", len(self.labels), len(columns)
        )
        for column in columns:
            yield column


ASSEMBLERS = {
    "horizontal": HorizontalAssembler,
    "vertical": VerticalAssembler,
}
