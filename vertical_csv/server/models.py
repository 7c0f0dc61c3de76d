"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response
serialization and automatic OpenAPI documentation.

HOW: One model per response shape. Records are passed through as plain
dicts (Record.to_dict()) since their shape is already validated by the
JSON schema the formatters use.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Python 3.9+ compatible (no PEP 604 unions, typing generics only)
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from vertical_csv.core.schema import SchemaVersion


class DecodeResponse(BaseModel):
    """Accepted records decoded from one uploaded file."""

    schema_version: int = Field(description="Schema version the records were gated with.")
    layout: str = Field(description="Layout the file was decoded as.")
    source: str = Field(description="Uploaded filename.")
    count: int = Field(description="Number of accepted records.")
    records: List[Dict[str, Any]] = Field(description="Accepted records in output order.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "schema_version": 1,
                "layout": "vertical",
                "source": "people.csv",
                "count": 1,
                "records": [
                    {
                        "name": "Alice",
                        "age": 30,
                        "email": "a@x.com",
                        "phone": None,
                        "department": None,
                        "start_date": None,
                        "skills": ["Go", "", ""],
                        "languages": [],
                        "address": None,
                        "projects": [],
                        "notes": None,
                    }
                ],
            }
        ]
    }}


class SchemaInfo(BaseModel):
    """Description of a built-in schema version."""

    version: int = Field(description="Schema version number.")
    required_fields: List[str] = Field(description="Names every accepted record must have.")
    optional_fields: List[str] = Field(description="Optional scalar names the version declares.")
    optional_field_patterns: List[str] = Field(
        description="Case-insensitive regexes for structural names the version declares.",
    )

    @classmethod
    def from_schema(cls, schema: SchemaVersion) -> "SchemaInfo":
        return cls(
            version=schema.version,
            required_fields=list(schema.required_fields),
            optional_fields=list(schema.optional_fields),
            optional_field_patterns=list(schema.optional_field_patterns),
        )


class FormatInfo(BaseModel):
    """Description of an available output format."""

    key: str = Field(description="Format identifier used in API requests.")
    name: str = Field(description="Human-readable format name.")
    media_type: str = Field(description="MIME type of the produced content.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
