"""
Error handling untuk WellAuth.

``register_exception_handlers`` memetakan domain exception ke envelope
``{error, code, details?}``; ``ErrorHandlerMiddleware`` adalah satu-satunya
wrapper untuk exception yang tidak terduga.
"""

from typing import Callable, Optional, Dict, Any, List
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from starlette.exceptions import HTTPException as StarletteHTTPException

from wellauth.core.config import settings
from wellauth.core.exceptions import WellAuthException


# Configure logger
logger = logging.getLogger("wellauth.error")

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMIT_EXCEEDED",
}


def error_envelope(message: str, code: str, details: Optional[Any] = None) -> Dict[str, Any]:
    """
    Build error envelope.

    Args:
        message: Error message
        code: Machine readable error code
        details: Additional error details

    Returns:
        ``{error, code}`` ditambah ``details`` jika ada
    """
    content: Dict[str, Any] = {"error": message, "code": code}
    if details:
        content["details"] = details
    return content


def format_validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Format validation errors menjadi list ``{field, message, type}``."""
    errors = []
    for error in exc.errors():
        loc = [str(x) for x in error["loc"] if x != "body"]
        errors.append({
            "field": " -> ".join(loc) or "body",
            "message": error["msg"],
            "type": error["type"]
        })
    return errors


async def wellauth_exception_handler(request: Request, exc: WellAuthException) -> JSONResponse:
    """Handle WellAuthException."""
    message, details = exc.message, exc.details
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        if not settings.is_development:
            message, details = type(exc).default_message, None

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message, exc.code, details),
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors sebagai 400 VALIDATION_ERROR."""
    return JSONResponse(
        status_code=400,
        content=error_envelope("Invalid input", "VALIDATION_ERROR", format_validation_errors(exc))
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle framework HTTP errors (route tidak ada, method salah, dll)."""
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), code),
        headers=getattr(exc, "headers", None)
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register semua exception handler ke application.

    Args:
        app: FastAPI application
    """
    app.add_exception_handler(WellAuthException, wellauth_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handler middleware.

    Features:
    - Error logging dengan stack traces
    - Generic internal error response
    - Exception text hanya ditampilkan di environment development
    """

    def __init__(
        self,
        app: ASGIApp,
        expose_details: Optional[bool] = None,
        log_errors: bool = True
    ):
        """
        Initialize error handler middleware.

        Args:
            app: FastAPI/Starlette application
            expose_details: Sertakan exception text di response
            log_errors: Whether to log errors
        """
        super().__init__(app)
        self.expose_details = (
            expose_details if expose_details is not None else settings.is_development
        )
        self.log_errors = log_errors

    def log_error(self, request: Request, error: Exception) -> None:
        """
        Log error with context.

        Args:
            request: Request object
            error: Exception
        """
        if not self.log_errors:
            return

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "status_code": 500,
            "error_type": type(error).__name__,
            "error_message": str(error),
            "client_ip": request.client.host if request.client else "unknown"
        }

        if hasattr(request.state, "user_id"):
            log_entry["user_id"] = str(request.state.user_id)

        logger.error(log_entry, exc_info=error)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request dengan error handling.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint

        Returns:
            Response atau error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            self.log_error(request, exc)

            details = None
            if self.expose_details:
                details = {"type": type(exc).__name__, "message": str(exc)}

            return JSONResponse(
                status_code=500,
                content=error_envelope("Internal server error", "INTERNAL_ERROR", details),
                headers={"Cache-Control": "no-store"}
            )
