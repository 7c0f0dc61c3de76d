"""Configuration constants, layout names, and .env loading.

WHY: Centralizes the tunables of the decoder (read chunk size, the
memory-mapping threshold, CLI/API defaults) so they are easy to find,
update, and override without touching parsing logic.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values read from the environment with sensible defaults.
Integer settings go through _int_env() so a typo in .env fails loudly
with the variable name instead of a bare int() traceback. The default
layout goes through _layout_env() for the same reason.

RULES:
- MMAP_THRESHOLD_BYTES: files at or above this size are memory-mapped
- READ_CHUNK_SIZE: bytes requested from a source per read
- DEFAULT_SCHEMA_VERSION / DEFAULT_LAYOUT: used by CLI and API when
  the caller does not choose
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _int_env(name: str, default: int) -> int:
    """Read a non-negative integer setting from the environment.

    RULES:
    - Missing or blank variable → default
    - Non-integer or negative value → ValueError naming the variable
    """
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}".format(name, raw)
        ) from None
    if value < 0:
        raise ValueError("{} must not be negative, got {}".format(name, value))
    return value


def _layout_env(name: str, default: str) -> str:
    """Read a layout name from the environment.

    RULES:
    - Missing or blank variable → default
    - Case-insensitive; a name outside SUPPORTED_LAYOUTS → ValueError
      naming the variable
    """
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    if value not in SUPPORTED_LAYOUTS:
        raise ValueError(
            "{} must be one of {}, got {!r}".format(
                name, ", ".join(SUPPORTED_LAYOUTS), value
            )
        )
    return value


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------

HORIZONTAL = "horizontal"
VERTICAL = "vertical"

SUPPORTED_LAYOUTS: tuple[str, ...] = (HORIZONTAL, VERTICAL)
"""Layout names accepted by the CLI, the API, and parse_text()."""

# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

MMAP_THRESHOLD_BYTES = _int_env("VERTICAL_CSV_MMAP_THRESHOLD", 100 * 1024 * 1024)
"""Files of this size or larger are read through a read-only mmap view."""

READ_CHUNK_SIZE = _int_env("VERTICAL_CSV_CHUNK_SIZE", 8192) or 8192

# ---------------------------------------------------------------------------
# CLI / API defaults
# ---------------------------------------------------------------------------

DEFAULT_SCHEMA_VERSION = _int_env("VERTICAL_CSV_SCHEMA_VERSION", 4)
DEFAULT_LAYOUT = _layout_env("VERTICAL_CSV_LAYOUT", HORIZONTAL)

API_HOST = os.getenv("VERTICAL_CSV_HOST", "0.0.0.0")
API_PORT = _int_env("VERTICAL_CSV_PORT", 8000)
