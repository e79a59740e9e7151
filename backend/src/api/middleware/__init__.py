"""FastAPI middleware for error handling."""

from .error_handlers import (
    DOMAIN_ERRORS,
    domain_exception_handler,
    error_body,
    http_exception_handler,
    internal_exception_handler,
    register_error_handlers,
    validation_exception_handler,
)

__all__ = [
    "DOMAIN_ERRORS",
    "error_body",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "domain_exception_handler",
    "internal_exception_handler",
]
