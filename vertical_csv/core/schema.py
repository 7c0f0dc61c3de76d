"""Schema versions, built-in presets, and the acceptance gate.

WHY: The same files are produced under successive schema revisions.
A schema value tells the decoder which top-level names are mandatory
(records missing them are dropped) and which names and structural
patterns a revision legitimately declares. Decoding itself does not
depend on the schema; only acceptance does.

HOW: SchemaVersion is an immutable pydantic model so definitions can be
loaded from JSON (snake_case or camelCase keys) and validated once.
Optional patterns are compiled with re.IGNORECASE when the value is
constructed. accepts() runs one check per required name from a table
keyed by the lowercased name.

RULES:
- A record is accepted iff every required name has a non-default value
- name/email/phone/department/notes: non-blank; age: > 0;
  startdate: set; address: present; skills/languages/projects: non-empty
- Required names without a check are satisfied automatically
- Rejection is silent: no exception, no log line
- acknowledges() never influences decoding or acceptance
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from vertical_csv.core.ir import Record


class SchemaVersion(BaseModel):
    """One schema revision: required names, optional names, patterns.

    RULES:
    - version is informational only
    - Name comparisons are case-insensitive
    - Patterns are matched case-insensitively against whole labels
      (anchor them with ^...$ as the presets do)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = Field(description="Informational revision number.")
    required_fields: Tuple[str, ...] = Field(
        default=(),
        alias="requiredFields",
        description="Names that must resolve to a non-default value.",
    )
    optional_fields: Tuple[str, ...] = Field(
        default=(),
        alias="optionalFields",
        description="Scalar names acknowledged as legitimate.",
    )
    optional_field_patterns: Tuple[str, ...] = Field(
        default=(),
        alias="optionalFieldPatterns",
        description="Regexes for structural names acknowledged as legitimate.",
    )

    _compiled: Tuple[re.Pattern, ...] = PrivateAttr(default=())
    _declared: frozenset = PrivateAttr(default=frozenset())

    @field_validator("optional_field_patterns")
    @classmethod
    def check_patterns(cls, patterns: Tuple[str, ...]) -> Tuple[str, ...]:
        """Reject patterns that are not valid regular expressions."""
        for pattern in patterns:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as exc:
                raise ValueError(
                    "Invalid optional field pattern {!r}: {}".format(pattern, exc)
                ) from None
        return patterns

    def model_post_init(self, __context) -> None:
        self._compiled = tuple(
            re.compile(p, re.IGNORECASE) for p in self.optional_field_patterns
        )
        self._declared = frozenset(
            name.lower() for name in self.required_fields + self.optional_fields
        )

    def acknowledges(self, label: str) -> bool:
        """True when the label is declared by this revision.

        A label is declared when it is a required or optional name or
        matches one of the optional patterns.
        """
        if label.lower() in self._declared:
            return True
        return any(p.search(label) for p in self._compiled)


# ---------------------------------------------------------------------------
# Required-field checks
# ---------------------------------------------------------------------------


def _non_blank(attr: str) -> Callable[[Record], bool]:
    def check(record: Record) -> bool:
        value = getattr(record, attr)
        return bool(value and value.strip())
    return check


def _is_set(attr: str) -> Callable[[Record], bool]:
    return lambda record: getattr(record, attr) is not None


def _non_empty(attr: str) -> Callable[[Record], bool]:
    return lambda record: len(getattr(record, attr)) > 0


_REQUIRED_CHECKS: Dict[str, Callable[[Record], bool]] = {
    "name": _non_blank("name"),
    "age": lambda record: record.age > 0,
    "email": _non_blank("email"),
    "phone": _non_blank("phone"),
    "department": _non_blank("department"),
    "startdate": _is_set("start_date"),
    "notes": _non_blank("notes"),
    "address": _is_set("address"),
    "skills": _non_empty("skills"),
    "languages": _non_empty("languages"),
    "projects": _non_empty("projects"),
}


def accepts(record: Record, schema: SchemaVersion) -> bool:
    """Decide whether a decoded record passes the schema's required names."""
    for name in schema.required_fields:
        check = _REQUIRED_CHECKS.get(name.lower())
        if check is not None and not check(record):
            return False
    return True


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

_BASE_REQUIRED = ("Name", "Age", "Email")

V1 = SchemaVersion(version=1, required_fields=_BASE_REQUIRED)

V2 = SchemaVersion(
    version=2,
    required_fields=_BASE_REQUIRED,
    optional_fields=("Phone",),
)

V3 = SchemaVersion(
    version=3,
    required_fields=_BASE_REQUIRED,
    optional_fields=("Phone", "Department", "StartDate"),
)

V4 = SchemaVersion(
    version=4,
    required_fields=_BASE_REQUIRED,
    optional_fields=(
        "Phone", "Department", "StartDate", "Notes",
        "Address.Street", "Address.City", "Address.State", "Address.ZipCode",
    ),
    optional_field_patterns=(
        r"^Skills\[\d+\]$",
        r"^Languages\[\d+\]$",
        r"^Projects\[\d+\]\.Name$",
        r"^Projects\[\d+\]\.Role$",
        r"^Projects\[\d+\]\.StartDate$",
        r"^Projects\[\d+\]\.EndDate$",
    ),
)

SCHEMAS: Dict[int, SchemaVersion] = {s.version: s for s in (V1, V2, V3, V4)}


def get_schema(version: int) -> SchemaVersion:
    """Return a built-in preset; raises KeyError for unknown versions."""
    try:
        return SCHEMAS[version]
    except KeyError:
        available = ", ".join(str(v) for v in sorted(SCHEMAS))
        raise KeyError(
            "Unknown schema version {}. Available: {}".format(version, available)
        ) from None


def load_schema(path: Union[str, Path]) -> SchemaVersion:
    """Load a schema definition from a JSON file.

    Raises pydantic.ValidationError when the document does not describe
    a schema, FileNotFoundError when the file is missing.
    """
    return SchemaVersion.model_validate_json(Path(path).read_text(encoding="utf-8"))


def list_schemas() -> List[SchemaVersion]:
    """All built-in presets in version order."""
    return [SCHEMAS[v] for v in sorted(SCHEMAS)]
