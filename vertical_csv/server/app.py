"""FastAPI application exposing the decoder over HTTP.

WHY: Services that receive CSV exports (uploads, integrations, n8n
flows) need to decode them without embedding Python. An HTTP API with
OpenAPI docs makes the decoder usable from any language.

HOW: A single FastAPI app. POST /records accepts a multipart upload plus
form fields for layout and schema version, streams the upload through
the async parser, and returns the accepted records as JSON.
POST /records/download renders the same result with a registered
formatter and returns it as a file. GET endpoints list schemas and
formats and report health.

RULES:
- Unknown layout, schema version, or output format → 400
- The upload is read in chunks through AsyncReaderSource, never
  buffered whole by this module
- Invalid UTF-8 is decoded with replacement characters, not rejected
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, List

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from vertical_csv import __version__
from vertical_csv.config import (
    API_HOST,
    API_PORT,
    DEFAULT_LAYOUT,
    DEFAULT_SCHEMA_VERSION,
    HORIZONTAL,
    SUPPORTED_LAYOUTS,
)
from vertical_csv.core.ir import DecodeResult
from vertical_csv.core.parser import LAYOUTS, collect
from vertical_csv.core.schema import SchemaVersion, get_schema, list_schemas
from vertical_csv.core.sources import AsyncReaderSource
from vertical_csv.formatters import FORMATTERS
from vertical_csv.formatters.json_records import build_document
from vertical_csv.server.models import (
    DecodeResponse,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    SchemaInfo,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Vertical CSV Decoder API",
    description=(
        "Decode horizontal (row-major) and vertical (transposed) CSV files "
        "into nested JSON records, gated by a schema version."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _validate_layout(layout: str) -> str:
    """Raise HTTPException unless the layout name is supported."""
    key = layout.strip().lower()
    if key not in SUPPORTED_LAYOUTS:
        raise HTTPException(
            status_code=400,
            detail="Unknown layout '{}'. Available: {}".format(
                layout, ", ".join(SUPPORTED_LAYOUTS)
            ),
        )
    return key


def _resolve_schema(version: int) -> SchemaVersion:
    try:
        return get_schema(version)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=exc.args[0])


async def _decode_upload(
    file: UploadFile,
    layout: str,
    schema_version: int,
) -> DecodeResult:
    """Run the parser over an uploaded file."""
    layout_key = _validate_layout(layout)
    schema = _resolve_schema(schema_version)
    filename = Path(file.filename or "upload.csv").name

    records = await collect(LAYOUTS[layout_key](AsyncReaderSource(file), schema))
    logger.info(
        "Decoded upload %s: %d record(s), layout=%s, schema=%d",
        filename, len(records), layout_key, schema.version,
    )
    return DecodeResult(
        records=records,
        layout=layout_key,
        schema_version=schema.version,
        source_filename=filename,
    )


# ---------------------------------------------------------------------------
# Endpoints: Records
# ---------------------------------------------------------------------------


_UploadField = Annotated[UploadFile, File(description="CSV file to decode.")]
_LayoutField = Annotated[
    str,
    Form(description="Input layout: 'horizontal' or 'vertical'."),
]
_SchemaField = Annotated[
    int,
    Form(description="Built-in schema version used to gate records."),
]


@app.post(
    "/records",
    response_model=DecodeResponse,
    tags=["records"],
    summary="Decode a CSV file",
    description=(
        "Upload a CSV file and receive the records accepted under the "
        "selected schema version."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown layout or schema version"},
    },
)
async def decode_records(
    file: _UploadField,
    layout: _LayoutField = DEFAULT_LAYOUT,
    schema_version: _SchemaField = DEFAULT_SCHEMA_VERSION,
) -> DecodeResponse:
    result = await _decode_upload(file, layout, schema_version)
    return DecodeResponse(**build_document(result))


@app.post(
    "/records/download",
    tags=["records"],
    summary="Decode a CSV file and download the formatted output",
    description="Like POST /records, but rendered with a registered formatter.",
    responses={
        200: {"description": "Formatted file content"},
        400: {"model": ErrorResponse, "description": "Unknown layout, schema, or format"},
    },
)
async def download_records(
    file: _UploadField,
    layout: _LayoutField = DEFAULT_LAYOUT,
    schema_version: _SchemaField = DEFAULT_SCHEMA_VERSION,
    output_format: Annotated[
        str,
        Form(description="Output format key (see GET /formats)."),
    ] = "json",
) -> Response:
    if output_format not in FORMATTERS:
        available = ", ".join(sorted(FORMATTERS.keys()))
        raise HTTPException(
            status_code=400,
            detail="Unknown output format '{}'. Available: {}".format(
                output_format, available
            ),
        )

    result = await _decode_upload(file, layout, schema_version)
    output = FORMATTERS[output_format]().format(result)[0]
    download_name = Path(result.source_filename).stem + output.suffix
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(download_name)},
    )


# ---------------------------------------------------------------------------
# Endpoints: Schemas and formats
# ---------------------------------------------------------------------------


@app.get(
    "/schemas",
    response_model=List[SchemaInfo],
    tags=["schemas"],
    summary="List built-in schema versions",
)
async def list_schema_versions() -> List[SchemaInfo]:
    return [SchemaInfo.from_schema(s) for s in list_schemas()]


@app.get(
    "/schemas/{version}",
    response_model=SchemaInfo,
    tags=["schemas"],
    summary="Get one schema version",
    responses={404: {"model": ErrorResponse, "description": "Unknown schema version"}},
)
async def get_schema_version(version: int) -> SchemaInfo:
    try:
        schema = get_schema(version)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])
    return SchemaInfo.from_schema(schema)


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available output formats",
)
async def list_formats() -> List[FormatInfo]:
    empty = DecodeResult(records=[], layout=HORIZONTAL, schema_version=DEFAULT_SCHEMA_VERSION)
    result = []
    for key in sorted(FORMATTERS.keys()):
        formatter = FORMATTERS[key]()
        outputs = formatter.format(empty)
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            media_type=outputs[0].media_type,
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the vertical-csv-api console script."""
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
