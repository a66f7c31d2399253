"""
Domain errors for the issue lifecycle and reward engine.

The services raise these; ``register_exception_handlers`` maps them to
HTTP responses so routes stay free of try/except boilerplate.

    DomainError          400
    ValidationError      400
    InvalidStatusError   400
    NotResolvedError     400
    AlreadyAwardedError  400
    NotFoundError        404
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for every business-rule failure."""

    status_code = 400

    def __init__(self, message: str = "A business rule was violated."):
        self.message = message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Missing or malformed required input."""

    def __init__(self, message: str = "Invalid request."):
        super().__init__(message)


class NotFoundError(DomainError):
    status_code = 404

    def __init__(self, message: str = "The requested resource was not found."):
        super().__init__(message)


class InvalidStatusError(DomainError):
    def __init__(self, status=None):
        self.status = status
        super().__init__("Invalid status")


class RewardError(DomainError):
    """Reward precondition failures."""


class NotResolvedError(RewardError):
    def __init__(self, message: str = "Issue must be resolved before rewarding"):
        super().__init__(message)


class AlreadyAwardedError(RewardError):
    def __init__(self, message: str = "Reward already awarded"):
        super().__init__(message)


def domain_error_handler(request: Request, exc: DomainError):
    logger.warning(
        "Domain error [%s] on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    logger.warning("Rejected request %s %s: %s", request.method, request.url.path, message)
    return JSONResponse({"detail": message}, status_code=400)


def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
