"""Record dataclasses produced by the decoder.

WHY: Both CSV layouts describe the same person records. Downstream code
(formatters, the HTTP API, tests) needs one well-typed shape to work
with regardless of which layout or schema revision the data came from.

HOW: Three dataclasses form a hierarchy:
  Record:  one decoded person with scalars, lists, and nested objects
  Address: the optional nested object
  Project: one element of the projects list

RULES:
- Lists are dense: gaps left by sparse indices hold placeholders
  ("" for string lists, an empty Project for projects)
- address is None until at least one sub-field is written
- Dates are datetime.date; unset optional values are None
- to_dict() output is JSON-ready (ISO-8601 dates, snake_case keys)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class Address:
    """Nested postal address; unwritten sub-fields stay empty strings."""

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }


@dataclass
class Project:
    """One entry of Record.projects.

    start_date is always expected on a real project; it is None only on
    placeholder entries or when the value failed to parse.
    """

    name: str = ""
    role: str = ""
    start_date: date | None = None
    end_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
        }


@dataclass
class Record:
    """A fully decoded person record.

    WHY: This is what every parse operation yields. Scalars default to
    their "unset" value so the schema gate can tell written fields from
    missing ones.

    RULES:
    - name / email: "" when missing; age: 0 when missing or unparsable
    - phone, department, notes, start_date: None when missing
    - skills / languages: len == 1 + highest index referenced
    - notes may contain embedded newlines from quoted multi-line fields
    - Frozen once decoded: neither the schema gate nor the parser
      writes to a finished Record. The class stays mutable so
      callers own the records they receive.
    """

    name: str = ""
    age: int = 0
    email: str = ""
    phone: str | None = None
    department: str | None = None
    start_date: date | None = None
    skills: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    address: Address | None = None
    projects: list[Project] = field(default_factory=list)
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "age": self.age,
            "email": self.email,
            "phone": self.phone,
            "department": self.department,
            "start_date": _iso(self.start_date),
            "skills": list(self.skills),
            "languages": list(self.languages),
            "address": self.address.to_dict() if self.address is not None else None,
            "projects": [p.to_dict() for p in self.projects],
            "notes": self.notes,
        }


@dataclass
class DecodeResult:
    """Accepted records of one parse, with where they came from.

    WHY: Formatters and the HTTP API report the layout and schema
    revision alongside the records; bundling them keeps formatter
    signatures stable.
    """

    records: list[Record]
    layout: str
    schema_version: int
    source_filename: str = ""
