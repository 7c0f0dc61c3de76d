"""Character-level CSV tokenizer: quoting, escaping, multi-line fields.

WHY: Field values can contain commas, quotes, and line breaks (notes
are often multi-line). Splitting on "," and "\\n" would corrupt them.
A small state machine reads the character stream and emits one logical
line at a time, each as a list of field strings, without knowing
anything about headers, layouts, or schemas.

HOW: Two states, outside quotes and inside quotes, plus an escape flag.
read_line() consumes characters from a CharCursor until an unquoted
line terminator or end of input. iter_lines() repeats read_line() until
the input is exhausted.

RULES:
- '"' toggles the quoted state; inside quotes '""' is a literal '"'
- Inside quotes '\\' makes the next character literal (both escapes
  are active at the same time)
- Outside quotes ',' ends a field; '\\r', '\\n', and '\\r\\n' end a line
  (CRLF counts as one terminator)
- Inside quotes ',' and line terminators are field content
- Each completed field is stripped of surrounding whitespace once
- A line whose fields are all blank is returned as [] (callers skip it)
- End of input mid-line still yields the accumulated line
- Never raises on malformed quoting: an unterminated quote swallows the
  rest of the input as quoted content
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional

from vertical_csv.core.sources import BytesSource, CharCursor

_DELIMITER = ","
_QUOTE = '"'
_ESCAPE = "\\"


def _finish(fields: List[str]) -> List[str]:
    """Collapse an all-blank line to []."""
    return fields if any(fields) else []


async def read_line(cursor: CharCursor) -> Optional[List[str]]:
    """Read one logical line from the cursor.

    Returns:
        The stripped field strings, [] for a blank line, or None once
        the input is exhausted.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    escape_next = False

    while True:
        ch = await cursor.read()
        if ch is None:
            break

        if escape_next:
            current.append(ch)
            escape_next = False
            continue

        if ch == _ESCAPE and in_quotes:
            escape_next = True
            continue

        if ch == _QUOTE:
            if in_quotes and await cursor.peek() == _QUOTE:
                current.append(_QUOTE)
                await cursor.read()
                continue
            in_quotes = not in_quotes
            continue

        if not in_quotes:
            if ch == _DELIMITER:
                fields.append("".join(current).strip())
                current = []
                continue
            if ch == "\r" or ch == "\n":
                if ch == "\r" and await cursor.peek() == "\n":
                    await cursor.read()
                fields.append("".join(current).strip())
                return _finish(fields)

        current.append(ch)

    # End of input without a trailing terminator
    if current or fields:
        fields.append("".join(current).strip())
        return _finish(fields)
    return None


async def iter_lines(cursor: CharCursor) -> AsyncIterator[List[str]]:
    """Yield every logical line until the input is exhausted.

    Blank lines are yielded as [] so callers decide how to skip them.
    """
    while True:
        line = await read_line(cursor)
        if line is None:
            return
        yield line


def tokenize_text(text: str) -> List[List[str]]:
    """Tokenize an in-memory string into lines (blank lines included as []).

    Runs its own event loop, so it must not be called from async code;
    use iter_lines() with a CharCursor there.
    """

    async def _collect() -> List[List[str]]:
        cursor = CharCursor(BytesSource(text))
        return [line async for line in iter_lines(cursor)]

    return asyncio.run(_collect())
