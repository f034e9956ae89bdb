"""Uniform JSON error bodies: every error response carries a top-level ``error``."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatdesk.upstream import UpstreamError


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_response(status_code: int, error: str, **fields: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder({"error": error, **fields}))


def forwarded_status(exc: UpstreamError) -> int:
    """Upstream client errors are passed through; everything else becomes a 500."""

    if exc.status_code is not None and 400 <= exc.status_code < 500:
        return exc.status_code
    return 500


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "Invalid request", details=exc.errors())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
