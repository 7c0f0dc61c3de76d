"""Command-line interface for decoding CSV files into JSON.

WHY: Users need a quick way to check what a horizontal or vertical CSV
file decodes to under a given schema revision, and to hand the result
to other tools, without writing Python.

HOW: Uses argparse to accept an input file, the layout, a built-in
schema version or a schema JSON file, an output format, and an output
path. Runs the async file parser via asyncio.run(), bundles the
accepted records into a DecodeResult, runs the chosen formatter, and
writes the result to stdout or a file. Status messages go to stderr.

RULES:
- Positional argument: input CSV file path
- --schema N selects a preset; --schema-file overrides it
- --format: a key of FORMATTERS (default: json)
- --output: file path; omitted or "-" writes to stdout
- Exit code 0 on success, 1 on any error, 130 on Ctrl-C
- --verbose enables DEBUG logging on stderr
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from vertical_csv.config import (
    DEFAULT_LAYOUT,
    DEFAULT_SCHEMA_VERSION,
    MMAP_THRESHOLD_BYTES,
    SUPPORTED_LAYOUTS,
)
from vertical_csv.core.ir import DecodeResult
from vertical_csv.core.parser import FILE_LAYOUTS, collect
from vertical_csv.core.schema import SchemaVersion, get_schema, load_schema
from vertical_csv.formatters import FORMATTERS


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


class _CliError(Exception):
    """A user-facing error; main() prints it and exits with code 1."""


def _fail(msg: str) -> None:
    raise _CliError(msg)


def _resolve_schema(args: argparse.Namespace) -> SchemaVersion:
    """Pick the schema from --schema-file or --schema."""
    if args.schema_file:
        try:
            return load_schema(args.schema_file)
        except OSError as e:
            _fail("Cannot read schema file: {}".format(e))
        except ValidationError as e:
            _fail("Invalid schema file {}: {}".format(args.schema_file, e))
    try:
        return get_schema(args.schema)
    except KeyError as e:
        _fail(e.args[0])


async def _run(args: argparse.Namespace) -> None:
    """Decode the input file and write the formatted output.

    RULES:
    - Validate the input path before opening anything
    - I/O errors while reading end the run with exit code 1
    """
    input_path = Path(args.input_file)
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    schema = _resolve_schema(args)

    _status("Decoding {} ({} layout, schema version {})...".format(
        input_path.name, args.layout, schema.version
    ))
    parse = FILE_LAYOUTS[args.layout]
    try:
        records = await collect(
            parse(input_path, schema, threshold=args.mmap_threshold)
        )
    except OSError as e:
        _fail("Cannot read {}: {}".format(input_path, e))

    result = DecodeResult(
        records=records,
        layout=args.layout,
        schema_version=schema.version,
        source_filename=input_path.name,
    )
    _status("  Accepted {} record(s)".format(len(records)))

    formatter = FORMATTERS[args.format]()
    outputs = formatter.format(result)

    if args.output in (None, "-"):
        for output in outputs:
            sys.stdout.write(output.content)
            if not output.content.endswith("\n"):
                sys.stdout.write("\n")
        sys.stdout.flush()
        return

    output_path = Path(args.output)
    if not output_path.parent.is_dir():
        _fail("Output directory does not exist: {}".format(output_path.parent))
    output_path.write_text("".join(o.content for o in outputs), encoding="utf-8")
    _status("  Saved: {}".format(output_path))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect the parser without
    decoding anything.
    """
    parser = argparse.ArgumentParser(
        prog="vertical-csv",
        description="Decode horizontal or vertical CSV files into nested JSON records.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the CSV file to decode.",
    )

    parser.add_argument(
        "--layout",
        choices=SUPPORTED_LAYOUTS,
        default=DEFAULT_LAYOUT,
        help="Physical layout of the input (default: %(default)s).",
    )

    parser.add_argument(
        "--schema",
        type=int,
        default=DEFAULT_SCHEMA_VERSION,
        help="Built-in schema version (default: %(default)s).",
    )

    parser.add_argument(
        "--schema-file",
        default=None,
        help="Path to a JSON schema definition; overrides --schema.",
    )

    parser.add_argument(
        "--format",
        choices=sorted(FORMATTERS.keys()),
        default="json",
        help="Output format (default: %(default)s).",
    )

    parser.add_argument(
        "--output",
        default=None,
        help="Output file path (default: stdout).",
    )

    parser.add_argument(
        "--mmap-threshold",
        type=int,
        default=MMAP_THRESHOLD_BYTES,
        help="Memory-map input files of at least this many bytes (default: %(default)s).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log decoding details to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        asyncio.run(_run(args))
    except _CliError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
