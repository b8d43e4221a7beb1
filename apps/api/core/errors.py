"""RFC 7807 Problem Details error handling.

Provides centralized exception handling and custom exception classes.
All errors return a consistent JSON format:

    {
        "type": "about:blank",
        "title": "Not Found",
        "status": 404,
        "detail": "Transaction not found",
        "instance": "/api/v1/categorization/transactions/xyz"
    }

Exceptions raised by the ingestion and categorization packages are
mapped onto the same body by ``domain_error_handler``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from packages.ingestion.errors import IngestionError, TransactionNotFoundError

logger = structlog.get_logger()


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str, status_code: int = 500, error_type: str = "about:blank"):
        self.detail = detail
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(detail)


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=404)


class ValidationError(AppError):
    """Request validation failed."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(detail=detail, status_code=422)


class PayloadTooLargeError(AppError):
    """Uploaded file exceeds the configured limit."""

    def __init__(self, detail: str = "File too large"):
        super().__init__(detail=detail, status_code=413)


def _build_problem_detail(
    status: int,
    title: str,
    detail: str,
    error_type: str = "about:blank",
    instance: str = "",
    request_id: str = "",
) -> dict:
    """Build RFC 7807 Problem Details response body."""
    body = {
        "type": error_type,
        "title": title,
        "status": status,
        "detail": detail,
    }
    if instance:
        body["instance"] = instance
    if request_id:
        body["request_id"] = request_id
    return body


# HTTP status code to title mapping
_STATUS_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def domain_status(exc: Exception) -> int:
    """HTTP status for an exception raised by the domain packages."""
    if isinstance(exc, TransactionNotFoundError):
        return 404
    return 422


def _problem_response(request: Request, status: int, detail: str, error_type: str = "about:blank"):
    body = _build_problem_detail(
        status=status,
        title=_STATUS_TITLES.get(status, "Error"),
        detail=detail,
        error_type=error_type,
        instance=str(request.url.path),
        request_id=getattr(request.state, "request_id", ""),
    )
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _problem_response(request, exc.status_code, exc.detail, exc.error_type)

    @app.exception_handler(IngestionError)
    async def domain_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
        status = domain_status(exc)
        logger.info("domain_error", error_type=type(exc).__name__, status=status, detail=str(exc))
        return _problem_response(request, status, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _problem_response(request, exc.status_code, detail)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), error_type=type(exc).__name__, path=request.url.path)
        return _problem_response(request, 500, "An unexpected error occurred")
