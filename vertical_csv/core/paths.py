"""Field-path classification and record reconstruction.

WHY: Column/row labels carry the record's structure in their names:
"Skills[2]" is the third skill, "Address.City" a nested field,
"Projects[1].Role" a field of the second project. The layouts only
produce flat (name, value) pairs; this module turns them back into a
Record without any pre-declared shape.

HOW: classify_path() maps a label onto a FieldPath (scalar, array
element, object sub-field, array-of-object sub-field) using a lookup
table for scalars and three anchored regexes for the structural
families; results are cached per label. RecordBuilder routes each
value to its slot. Lists are kept as sparse index→value maps while
decoding and materialized densely, with placeholders, by finish().

RULES:
- Label matching is case-insensitive
- Unrecognized labels are ignored, including unknown sub-fields of a
  known family ("Address.Country", "Projects[0].Budget")
- A non-numeric index, or one above 2**31 - 1, makes the label
  unrecognized
- Blank values never write; a blank value on an array or
  array-of-object label still registers its index, so the final list
  covers every index referenced
- age: non-negative base-10 integer, otherwise the prior value stays
- Dates: lenient parse of a full year-month-day, otherwise the field
  stays unset (partial dates are never completed from the clock)
- Decoding never consults the schema
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, Optional, Tuple

from dateutil import parser as date_parser

from vertical_csv.core.ir import Address, Project, Record

SCALAR = "scalar"
ARRAY = "array"
OBJECT = "object"
ARRAY_OF_OBJECT = "array_of_object"

_ARRAY_RE = re.compile(r"^(skills|languages)\[([0-9]+)\]$")
_OBJECT_RE = re.compile(r"^(address)\.([a-z]+)$")
_ARRAY_OF_OBJECT_RE = re.compile(r"^(projects)\[([0-9]+)\]\.([a-z]+)$")

_AGE_RE = re.compile(r"^\+?[0-9]+$")
_INT32_MAX = 2**31 - 1

# Two defaults differing in year, month, and day; a part missing from the
# input shows up as a difference between the two parses.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


@dataclass(frozen=True)
class FieldPath:
    """Where a value belongs inside a Record.

    family is the lowercased top-level name ("skills", "address", ...),
    index the list position for array kinds, subfield the lowercased
    sub-field name for object kinds.
    """

    kind: str
    family: str
    index: Optional[int] = None
    subfield: Optional[str] = None


def parse_age(value: str) -> Optional[int]:
    """Parse an age, or return None when it is not a valid non-negative int."""
    text = value.strip()
    if not _AGE_RE.match(text):
        return None
    age = int(text)
    if age > _INT32_MAX:
        return None
    return age


def parse_date(value: str) -> Optional[date]:
    """Parse a date leniently, or return None when it cannot be parsed.

    Inputs missing the year, month, or day ("2020", "March 2020", "10")
    count as unparseable.
    """
    try:
        first, second = (
            date_parser.parse(value, default=d).date() for d in _DATE_DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    if first != second:
        return None
    return first


def _index(digits: str) -> Optional[int]:
    index = int(digits)
    return index if index <= _INT32_MAX else None


# ---------------------------------------------------------------------------
# Setter tables
# ---------------------------------------------------------------------------


def _set_text(attr: str) -> Callable[[object, str], None]:
    def setter(target: object, value: str) -> None:
        setattr(target, attr, value)
    return setter


def _set_date(attr: str) -> Callable[[object, str], None]:
    def setter(target: object, value: str) -> None:
        parsed = parse_date(value)
        if parsed is not None:
            setattr(target, attr, parsed)
    return setter


def _set_age(target: Record, value: str) -> None:
    age = parse_age(value)
    if age is not None:
        target.age = age


_SCALAR_SETTERS: Dict[str, Callable] = {
    "name": _set_text("name"),
    "age": _set_age,
    "email": _set_text("email"),
    "phone": _set_text("phone"),
    "department": _set_text("department"),
    "startdate": _set_date("start_date"),
    "notes": _set_text("notes"),
}

_ADDRESS_SETTERS: Dict[str, Callable] = {
    "street": _set_text("street"),
    "city": _set_text("city"),
    "state": _set_text("state"),
    "zipcode": _set_text("zip_code"),
}

_PROJECT_SETTERS: Dict[str, Callable] = {
    "name": _set_text("name"),
    "role": _set_text("role"),
    "startdate": _set_date("start_date"),
    "enddate": _set_date("end_date"),
}


@functools.lru_cache(maxsize=1024)
def classify_path(label: str) -> Optional[FieldPath]:
    """Classify a column/row label, or return None if it is not recognized.

    Examples:
        "Name"             → FieldPath(SCALAR, "name")
        "Skills[2]"        → FieldPath(ARRAY, "skills", index=2)
        "Address.City"     → FieldPath(OBJECT, "address", subfield="city")
        "Projects[1].Role" → FieldPath(ARRAY_OF_OBJECT, "projects", 1, "role")
        "Skills[x]"        → None
    """
    key = label.strip().lower()

    if key in _SCALAR_SETTERS:
        return FieldPath(SCALAR, key)

    m = _ARRAY_RE.match(key)
    if m:
        index = _index(m.group(2))
        if index is None:
            return None
        return FieldPath(ARRAY, m.group(1), index=index)

    m = _OBJECT_RE.match(key)
    if m and m.group(2) in _ADDRESS_SETTERS:
        return FieldPath(OBJECT, m.group(1), subfield=m.group(2))

    m = _ARRAY_OF_OBJECT_RE.match(key)
    if m and m.group(3) in _PROJECT_SETTERS:
        index = _index(m.group(2))
        if index is None:
            return None
        return FieldPath(ARRAY_OF_OBJECT, m.group(1), index=index, subfield=m.group(3))

    return None


class RecordBuilder:
    """Accumulates (label, value) writes for one record.

    WHY: Labels arrive in input order and may reference list indices in
    any order with gaps. Growing real lists on every write would mean
    repeated resize-and-fill; sparse maps defer that to finish().

    HOW: Scalars and address fields are written straight onto the
    Record. List values go into per-family {index: value} maps and
    projects into {index: Project}; _lengths tracks 1 + the highest
    index referenced per family.
    """

    def __init__(self) -> None:
        self.record = Record()
        self._strings: Dict[str, Dict[int, str]] = {"skills": {}, "languages": {}}
        self._projects: Dict[int, Project] = {}
        self._lengths: Dict[str, int] = {"skills": 0, "languages": 0, "projects": 0}

    def _reference(self, family: str, index: int) -> None:
        if index + 1 > self._lengths[family]:
            self._lengths[family] = index + 1

    def apply(self, label: str, value: str) -> None:
        """Route one value to the slot its label describes."""
        path = classify_path(label)
        if path is None:
            return

        blank = not value.strip()

        if path.kind in (ARRAY, ARRAY_OF_OBJECT):
            self._reference(path.family, path.index)
        if blank:
            return

        if path.kind == SCALAR:
            _SCALAR_SETTERS[path.family](self.record, value)
        elif path.kind == ARRAY:
            self._strings[path.family][path.index] = value
        elif path.kind == OBJECT:
            if self.record.address is None:
                self.record.address = Address()
            _ADDRESS_SETTERS[path.subfield](self.record.address, value)
        else:
            project = self._projects.get(path.index)
            if project is None:
                project = self._projects[path.index] = Project()
            _PROJECT_SETTERS[path.subfield](project, value)

    def finish(self) -> Record:
        """Materialize dense lists and return the finished Record."""
        record = self.record
        record.skills = _densify(self._strings["skills"], self._lengths["skills"], str)
        record.languages = _densify(
            self._strings["languages"], self._lengths["languages"], str
        )
        record.projects = _densify(self._projects, self._lengths["projects"], Project)
        return record


def _densify(sparse: dict, length: int, placeholder: Callable) -> list:
    """Expand {index: value} into a list of `length`, filling gaps."""
    return [
        sparse[i] if i in sparse else placeholder()
        for i in range(length)
    ]


def decode_record(pairs: Iterable[Tuple[str, str]]) -> Record:
    """Build a Record from (label, value) pairs in input order.

    Later writes to the same slot overwrite earlier ones.
    """
    builder = RecordBuilder()
    for label, value in pairs:
        builder.apply(label, value)
    return builder.finish()
