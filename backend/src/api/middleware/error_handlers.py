"""Exception handlers producing the ``{error, message, detail}`` envelope."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...services.suggestion_service import SuggestionConflictError, SuggestionNotFoundError

logger = logging.getLogger(__name__)

# Fallback (error code, message) per status when a route gives no detail
DEFAULT_ERRORS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method_not_allowed", "Method not allowed"),
    status.HTTP_409_CONFLICT: ("conflict", "Resource conflict"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
}

# Service exceptions that surface as client errors
DOMAIN_ERRORS: Dict[Type[Exception], Tuple[int, str]] = {
    SuggestionNotFoundError: (status.HTTP_404_NOT_FOUND, "not_found"),
    SuggestionConflictError: (status.HTTP_409_CONFLICT, "edit_already_resolved"),
}


def error_body(
    status_code: int,
    message: Optional[str] = None,
    error: Optional[str] = None,
    detail: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    default_error, default_message = DEFAULT_ERRORS.get(
        status_code, DEFAULT_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    return {
        "error": error or default_error,
        "message": message or default_message,
        "detail": detail or None,
    }


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    # ctx may hold the raising exception instance, which is not JSON serializable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, detail={"errors": _validation_errors(exc)}),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if isinstance(exc.detail, dict):
        body = error_body(
            exc.status_code,
            message=exc.detail.get("message"),
            error=exc.detail.get("error"),
            detail=exc.detail.get("detail"),
        )
    else:
        body = error_body(exc.status_code, message=exc.detail if isinstance(exc.detail, str) else None)
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, error = next(
        mapped for exc_type, mapped in DOMAIN_ERRORS.items() if isinstance(exc, exc_type)
    )
    details = getattr(exc, "details", None)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {error}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, message=str(exc), error=error, detail=details),
    )


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    for exc_type in DOMAIN_ERRORS:
        app.add_exception_handler(exc_type, domain_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)


__all__ = [
    "DOMAIN_ERRORS",
    "error_body",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "domain_exception_handler",
    "internal_exception_handler",
]
