"""Core decoding modules.

WHY: The core package is the decoding engine: record dataclasses,
byte sources, the tokenizer, layout assembly, path decoding, and the
schema gate. Everything outside core (CLI, API, formatters) consumes
these and adds no decoding rules of its own.

HOW: ir.py defines the records, sources.py the input side, tokenizer.py
splits characters into lines, layout.py lines into (label, value)
records, paths.py rebuilds nested records, schema.py gates them, and
parser.py wires the stages together.

RULES:
- Record dataclasses are the contract; change with care
- Decoding is format-agnostic, no formatter-specific logic here
"""
