"""Caller-facing parse operations for horizontal and vertical CSV.

WHY: Callers want one call per layout that takes bytes in and gives
accepted Records out, lazily, with cooperative cancellation. This
module wires the stages together: source → tokenizer → layout
assembler → path decoder → schema gate.

HOW: _parse() is the shared async generator. A _Run object carries the
cancellation event and the count of records emitted so far; it checks
the event after every tokenized line (by wrapping the line iterator)
and after every decoded record, before that record is yielded. The
file variants choose a buffered or memory-mapped source by file size
and delegate to the stream variants.

RULES:
- Row-major output preserves input row order; transposed output is in
  column order
- Rejected records are dropped silently; on_reject, when given, is
  called with each one and has no effect on the output
- Cancellation raises ParseCancelled; records already yielded stay valid
- Transposed parses cancelled before end of input yield nothing
- I/O errors propagate unchanged and end the sequence
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Union

from vertical_csv.config import HORIZONTAL, MMAP_THRESHOLD_BYTES, SUPPORTED_LAYOUTS, VERTICAL
from vertical_csv.core.ir import Record
from vertical_csv.core.layout import ASSEMBLERS
from vertical_csv.core.paths import classify_path, decode_record
from vertical_csv.core.schema import SchemaVersion, accepts
from vertical_csv.core.sources import ByteSource, CharCursor, as_source, open_file_source
from vertical_csv.core.tokenizer import iter_lines

logger = logging.getLogger(__name__)

SourceLike = Union[ByteSource, bytes, str]
RejectHook = Callable[[Record], None]


class VerticalCsvError(Exception):
    """Base class for errors raised by the decoder."""


class ParseCancelled(VerticalCsvError):
    """Raised when the caller's cancellation event is set mid-parse.

    WHY: Cancellation is not a failure of the input; callers need to tell
    it apart from I/O errors and keep the records they already received.

    RULES:
    - records_emitted is the number of records yielded before the stop
    """

    def __init__(self, records_emitted: int) -> None:
        self.records_emitted = records_emitted
        super().__init__(
            "Parse cancelled after {} record(s)".format(records_emitted)
        )


class _Run:
    """Per-call cancellation state."""

    def __init__(self, cancel: Optional[asyncio.Event]) -> None:
        self.cancel = cancel
        self.emitted = 0

    def check(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise ParseCancelled(self.emitted)

    async def guard(self, lines: AsyncIterator[List[str]]) -> AsyncIterator[List[str]]:
        async for line in lines:
            self.check()
            yield line


def _log_labels(labels: List[str], schema: SchemaVersion) -> None:
    """Log, at DEBUG, labels the decoder ignores or the schema does not declare."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for label in labels:
        if classify_path(label) is None:
            logger.debug("Ignoring unrecognized label %r", label)
        elif not schema.acknowledges(label):
            logger.debug(
                "Label %r is not declared by schema version %d", label, schema.version
            )


async def _parse(
    source: SourceLike,
    schema: SchemaVersion,
    layout: str,
    cancel: Optional[asyncio.Event],
    on_reject: Optional[RejectHook],
) -> AsyncIterator[Record]:
    assembler = ASSEMBLERS[layout]()
    run = _Run(cancel)
    cursor = CharCursor(as_source(source))
    labels_logged = False

    async for raw in assembler.records(run.guard(iter_lines(cursor))):
        if not labels_logged:
            _log_labels(assembler.labels, schema)
            labels_logged = True
        run.check()
        record = decode_record(raw)
        run.check()
        if accepts(record, schema):
            run.emitted += 1
            yield record
        elif on_reject is not None:
            on_reject(record)

    logger.info(
        "Parsed %s input: %d record(s) accepted under schema version %d",
        layout, run.emitted, schema.version,
    )


def parse_horizontal(
    source: SourceLike,
    schema: SchemaVersion,
    cancel: Optional[asyncio.Event] = None,
    on_reject: Optional[RejectHook] = None,
) -> AsyncIterator[Record]:
    """Decode row-major CSV: a header line followed by one line per record.

    Args:
        source: A ByteSource, or the raw bytes/str of the document.
        schema: Schema revision deciding which records are accepted.
        cancel: Optional event; setting it stops the parse with
            ParseCancelled at the next line or record boundary.
        on_reject: Optional callback receiving each rejected Record.

    Returns:
        An async iterator of accepted Records in input row order.
    """
    return _parse(source, schema, HORIZONTAL, cancel, on_reject)


def parse_vertical(
    source: SourceLike,
    schema: SchemaVersion,
    cancel: Optional[asyncio.Event] = None,
    on_reject: Optional[RejectHook] = None,
) -> AsyncIterator[Record]:
    """Decode transposed CSV: one line per field, one column per record.

    The whole input is read before the first record is produced. Same
    arguments as parse_horizontal().
    """
    return _parse(source, schema, VERTICAL, cancel, on_reject)


async def _parse_file(
    path: Union[str, Path],
    schema: SchemaVersion,
    layout: str,
    cancel: Optional[asyncio.Event],
    on_reject: Optional[RejectHook],
    threshold: int,
) -> AsyncIterator[Record]:
    async with open_file_source(path, threshold) as source:
        async for record in _parse(source, schema, layout, cancel, on_reject):
            yield record


def parse_horizontal_file(
    path: Union[str, Path],
    schema: SchemaVersion,
    cancel: Optional[asyncio.Event] = None,
    on_reject: Optional[RejectHook] = None,
    threshold: int = MMAP_THRESHOLD_BYTES,
) -> AsyncIterator[Record]:
    """parse_horizontal() over a file, memory-mapped when size >= threshold."""
    return _parse_file(path, schema, HORIZONTAL, cancel, on_reject, threshold)


def parse_vertical_file(
    path: Union[str, Path],
    schema: SchemaVersion,
    cancel: Optional[asyncio.Event] = None,
    on_reject: Optional[RejectHook] = None,
    threshold: int = MMAP_THRESHOLD_BYTES,
) -> AsyncIterator[Record]:
    """parse_vertical() over a file, memory-mapped when size >= threshold."""
    return _parse_file(path, schema, VERTICAL, cancel, on_reject, threshold)


LAYOUTS = {
    HORIZONTAL: parse_horizontal,
    VERTICAL: parse_vertical,
}

FILE_LAYOUTS = {
    HORIZONTAL: parse_horizontal_file,
    VERTICAL: parse_vertical_file,
}


def _check_layout(layout: str) -> None:
    if layout not in SUPPORTED_LAYOUTS:
        raise ValueError(
            "Unknown layout '{}'. Available: {}".format(layout, ", ".join(SUPPORTED_LAYOUTS))
        )


async def collect(records: AsyncIterator[Record]) -> List[Record]:
    """Drain an async record iterator into a list."""
    return [record async for record in records]


def parse_text(
    text: str,
    schema: SchemaVersion,
    layout: str = HORIZONTAL,
) -> List[Record]:
    """Decode an in-memory document synchronously.

    Runs its own event loop, so it must not be called from async code.
    Raises ValueError for an unknown layout name.
    """
    _check_layout(layout)
    return asyncio.run(collect(LAYOUTS[layout](text, schema)))


def parse_path(
    path: Union[str, Path],
    schema: SchemaVersion,
    layout: str = HORIZONTAL,
    threshold: int = MMAP_THRESHOLD_BYTES,
) -> List[Record]:
    """Decode a file synchronously (same event-loop caveat as parse_text)."""
    _check_layout(layout)
    return asyncio.run(
        collect(FILE_LAYOUTS[layout](path, schema, threshold=threshold))
    )
