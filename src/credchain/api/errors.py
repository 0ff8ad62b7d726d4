"""
Boundary error handling - maps domain errors to HTTP responses.

Every error body has the shape ``{"success": false, "error": ..., "code": ...}``.
Stack traces are only added (as ``stack``) when the application runs in
development mode.
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from credchain.domain.exceptions import (
    AuthError,
    CooldownActive,
    CredchainError,
    DomainVerificationFailed,
    ExternalServiceError,
    GoneExpiredOrLimited,
    LedgerTimeout,
    NotFound,
    RateLimited,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first
_STATUS_BY_ERROR: list[tuple[type[CredchainError], int]] = [
    (LedgerTimeout, status.HTTP_504_GATEWAY_TIMEOUT),
    (ExternalServiceError, status.HTTP_502_BAD_GATEWAY),
    (RateLimited, status.HTTP_429_TOO_MANY_REQUESTS),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DomainVerificationFailed, status.HTTP_400_BAD_REQUEST),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (GoneExpiredOrLimited, status.HTTP_410_GONE),
]


def status_for(error: CredchainError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI, include_stack: bool = False) -> None:
    """
    Install the boundary handlers on ``app``.

    Args:
        app: FastAPI application
        include_stack: Add formatted tracebacks to error bodies (development only)
    """

    def with_stack(body: dict, exc: BaseException) -> dict:
        if include_stack:
            body["stack"] = "".join(traceback.format_exception(exc))
        return body

    @app.exception_handler(CredchainError)
    async def handle_domain_error(request: Request, exc: CredchainError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.code)
        body = {"success": False, "error": exc.message, "code": exc.code}
        headers = None
        if isinstance(exc, CooldownActive):
            body["remainingHours"] = exc.remaining_hours
        if isinstance(exc, ExternalServiceError) and exc.retryable:
            body["retryable"] = True
            headers = {"Retry-After": "30"}
        return JSONResponse(status_code=status_code, content=with_stack(body, exc), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        message = details[0]["msg"] if details else "Validation failed"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": message,
                "code": "VALIDATION_ERROR",
                "details": details,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": "Endpoint not found",
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail), "code": "HTTP_ERROR"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=with_stack(body, exc),
        )
