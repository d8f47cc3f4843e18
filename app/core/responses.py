"""
HTTP Response Helpers

Consistent envelopes for every endpoint:

    success: {"ok": true, "data": ..., "message": "..."}
    error:   {"ok": false, "kind": "...", "message": "..."}
"""
from typing import Any, Iterable, Optional, Type

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.exceptions import ServiceError


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"ok": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    return body


def error_envelope(kind: str, message: str) -> dict:
    return {"ok": False, "kind": kind, "message": message}


def success(data: Any = None, message: Optional[str] = None) -> JSONResponse:
    """200 OK with data."""
    return JSONResponse(status_code=status.HTTP_200_OK, content=envelope(data, message))


def created(data: Any = None, message: Optional[str] = None) -> JSONResponse:
    """201 Created with data."""
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=envelope(data, message))


def paginated(
    records: Iterable[Any],
    schema: Type[BaseModel],
    total: int,
    page: int,
    page_size: int,
) -> JSONResponse:
    """200 OK with a page of records serialized through `schema`."""
    return success({
        "items": [schema.model_validate(record) for record in records],
        "total": total,
        "page": page,
        "page_size": page_size,
    })


def error_response(exc: ServiceError) -> JSONResponse:
    """Map a typed core error to its fixed status and envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.kind, str(exc.detail)),
        headers=exc.headers or None,
    )
