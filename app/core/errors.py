"""
Error envelope shared by every route.

Handlers raise ApiError (or a plain HTTPException) and the exception handlers
registered here turn them into ``{"error": ..., "code": ...}`` bodies.
PostgREST errors that escape a service are mapped by their Postgres/PostgREST
code so routes stay thin.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from postgrest.exceptions import APIError

from app.config import settings

logger = logging.getLogger(__name__)

# PostgREST / Postgres error codes
PGRST_NO_ROWS = "PGRST116"
PG_UNIQUE_VIOLATION = "23505"

# Default code per status when a route raises a bare HTTPException
STATUS_CODES: Dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
}


class ApiError(HTTPException):
    """HTTPException carrying a stable machine-readable ``code``."""

    def __init__(self, status_code: int, error: str, code: Optional[str] = None, **extra: Any):
        super().__init__(status_code=status_code, detail=error)
        self.error = error
        self.code = code or STATUS_CODES.get(status_code, "ERROR")
        self.extra = extra

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "code": self.code}
        body.update(self.extra)
        return body


def unauthorized(error: str = "Authentication required") -> ApiError:
    return ApiError(401, error, "UNAUTHORIZED")


def forbidden(error: str, code: str = "FORBIDDEN") -> ApiError:
    return ApiError(403, error, code)


def not_found(error: str, code: str = "NOT_FOUND") -> ApiError:
    return ApiError(404, error, code)


def validation_error(error: str, code: str, **extra: Any) -> ApiError:
    return ApiError(422, error, code, **extra)


def missing_config(names: List[str]) -> ApiError:
    return ApiError(
        500,
        f"Missing server configuration: {', '.join(names)}",
        "MISSING_CONFIG",
        missing=names,
    )


def is_no_rows(exc: Exception) -> bool:
    return isinstance(exc, APIError) and exc.code == PGRST_NO_ROWS


def is_unique_violation(exc: Exception) -> bool:
    return isinstance(exc, APIError) and exc.code == PG_UNIQUE_VIOLATION


def database_error(exc: APIError) -> ApiError:
    """Map a PostgREST error onto the envelope."""
    if exc.code == PGRST_NO_ROWS:
        return ApiError(404, "Not found", "NOT_FOUND")
    if exc.code == PG_UNIQUE_VIOLATION:
        return ApiError(409, exc.message or "Duplicate record", "CONFLICT")
    return ApiError(400, exc.message or "Database error", "DATABASE_ERROR")


def _field_code(err: Dict[str, Any]) -> str:
    return str(err.get("type", "invalid")).upper().replace(".", "_")


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    content = {"error": str(exc.detail), "code": STATUS_CODES.get(exc.status_code, "ERROR")}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({
            "field": ".".join(loc) or None,
            "code": _field_code(err),
            "message": err.get("msg"),
        })
    first = fields[0]["message"] if fields else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={"error": first, "code": "VALIDATION_ERROR", "fields": fields},
    )


async def postgrest_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning("Database error on %s %s: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    api_error = database_error(exc)
    return JSONResponse(status_code=api_error.status_code, content=api_error.to_body())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    message = str(exc) if settings.debug and not settings.is_production else "Internal server error"
    return JSONResponse(status_code=500, content={"error": message, "code": "INTERNAL_ERROR"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(APIError, postgrest_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
