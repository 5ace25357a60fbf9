"""Error taxonomy and the JSON error envelope.

Learn: Services raise ApiError subclasses; the exception handlers
registered in main.py turn them into a uniform envelope:

    {"statusCode": 409, "message": "...", "success": false, "errors": []}

Anything that isn't an ApiError is either mapped to the closest status
(validation, HTTP, integrity errors) or logged and answered with a
generic 500 so internals never leak to clients.
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[Any]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"


def error_response(
    status_code: int,
    message: str,
    errors: Optional[list[Any]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build the error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "message": message,
            "success": False,
            "errors": errors or [],
        },
        headers=headers,
    )


def _auth_headers(status_code: int) -> Optional[dict[str, str]]:
    if status_code == 401:
        return {"WWW-Authenticate": "Bearer"}
    return None


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "videotube.request_failed",
            path=request.url.path,
            status=exc.status_code,
            error=exc.message,
        )
    return error_response(
        exc.status_code,
        exc.message,
        exc.errors,
        headers=_auth_headers(exc.status_code),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Invalid request payload", errors)


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    headers = getattr(exc, "headers", None) or _auth_headers(exc.status_code)
    return error_response(exc.status_code, str(exc.detail), headers=headers)


async def handle_integrity_error(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    message = str(getattr(exc, "orig", exc)).lower()
    logger.warning("videotube.integrity_error", path=request.url.path, error=message)
    if "unique" in message or "duplicate" in message:
        return error_response(409, "User with this email or username already exists")
    return error_response(400, "Request violates a data constraint")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "videotube.unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Attach all envelope-rendering exception handlers to the app."""
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
