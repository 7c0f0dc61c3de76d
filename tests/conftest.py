"""Shared test fixtures for the vertical_csv test suite.

WHY: Several test modules decode the same small tables in both layouts.
Centralizing the documents here keeps the horizontal and vertical
versions in sync, which the layout-equivalence tests depend on.

HOW: Module-level constants hold the raw documents; pytest fixtures
hand them out and write them to tmp_path when a test needs a file.
drain() runs an async record iterator to completion from sync tests.

RULES:
- PEOPLE_HORIZONTAL and PEOPLE_VERTICAL describe the same table
- Carol has no age, so every built-in schema rejects her
- SCENARIO_VERTICAL is the Alice/Bob sparse-skills example
"""

import asyncio
from typing import AsyncIterator, List

import pytest

from vertical_csv.core.ir import Record


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

PEOPLE_HORIZONTAL = (
    "Name,Age,Email,Phone,Skills[0],Skills[2],Address.City,Address.ZipCode,"
    "Projects[0].Name,Projects[0].StartDate,Notes\n"
    'Alice,30,a@x.com,555-0100,Go,,Paris,75001,Apollo,2020-01-15,"Line one\n'
    'line two"\n'
    "Bob,41,b@x.com,,Rust,SQL,,,,,\n"
    "Carol,,c@x.com,,,,,,,,\n"
)

PEOPLE_VERTICAL = (
    "Name,Alice,Bob,Carol\n"
    "Age,30,41,\n"
    "Email,a@x.com,b@x.com,c@x.com\n"
    "Phone,555-0100,,\n"
    "Skills[0],Go,Rust,\n"
    "Skills[2],,SQL,\n"
    "Address.City,Paris,,\n"
    "Address.ZipCode,75001,,\n"
    "Projects[0].Name,Apollo,,\n"
    "Projects[0].StartDate,2020-01-15,,\n"
    'Notes,"Line one\nline two",,\n'
)

SCENARIO_VERTICAL = (
    "Name,Alice,Bob\n"
    "Age,30,41\n"
    "Email,a@x.com,b@x.com\n"
    "Skills[0],Go,Rust\n"
    "Skills[2],,SQL\n"
)


def drain(records: AsyncIterator[Record]) -> List[Record]:
    """Collect every record of an async iterator (sync test helper)."""

    async def _collect() -> List[Record]:
        return [r async for r in records]

    return asyncio.run(_collect())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def people_horizontal():
    """Row-major people table (Alice, Bob, Carol)."""
    return PEOPLE_HORIZONTAL


@pytest.fixture
def people_vertical():
    """The same people table, transposed."""
    return PEOPLE_VERTICAL


@pytest.fixture
def scenario_vertical():
    """Two-record vertical document with a sparse Skills[2] row."""
    return SCENARIO_VERTICAL


@pytest.fixture
def people_files(tmp_path):
    """Both people documents written to disk as UTF-8 files."""
    horizontal = tmp_path / "people-horizontal.csv"
    horizontal.write_text(PEOPLE_HORIZONTAL, encoding="utf-8")
    vertical = tmp_path / "people-vertical.csv"
    vertical.write_text(PEOPLE_VERTICAL, encoding="utf-8")
    return {"horizontal": horizontal, "vertical": vertical}
