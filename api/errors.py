"""
HTTP error taxonomy and exception handlers.

Every non-2xx response carries the same body shape: {"message": str}.

- ValidationError  -> 400 (bad request body)
- NotFoundError    -> 404 (no user with that id)
- PersistenceError -> 500 (any storage failure, duplicate email included)
"""

from typing import Any, Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.logging import get_logger
from core.storage import PersistenceError


logger = get_logger(__name__)


class ApiError(Exception):
    """Base class for errors that map straight to an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request body"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "User not found"


def format_validation_errors(errors: Iterable[dict[str, Any]]) -> str:
    """
    Flatten pydantic error dicts into one line.

    [{"loc": ("body", "email"), "msg": "Field required"}] -> "email: Field required"
    """
    parts = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        msg = error.get("msg", "invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or ValidationError.default_message


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that render errors as {"message": ...}."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return _message(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _message(400, format_validation_errors(exc.errors()))

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error(
            "Storage failure",
            path=request.url.path,
            method=request.method,
            operation=exc.operation,
            error=str(exc),
        )
        return _message(500, str(exc) if settings.debug else "Internal server error")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return _message(500, str(exc) if settings.debug else "Internal server error")
