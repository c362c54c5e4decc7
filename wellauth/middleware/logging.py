"""
Request logging middleware untuk WellAuth.
Satu baris JSON per request di logger ``wellauth.access``.
"""

from typing import Callable, Optional, Dict, Any, List
import time
import json
import uuid
import logging
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from wellauth.utils.network import get_client_ip


# Configure logger
logger = logging.getLogger("wellauth.access")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging middleware.

    Features:
    - Request ID generation (header ``X-Request-ID``)
    - Request/response timing
    - Structured JSON logging

    Body request tidak pernah di-log karena berisi password dan token reset.
    """

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Optional[List[str]] = None
    ):
        """
        Initialize logging middleware.

        Args:
            app: FastAPI/Starlette application
            exclude_paths: Paths to exclude from logging
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or ["/health"]

    def should_log_path(self, path: str) -> bool:
        return not any(path.startswith(excluded) for excluded in self.exclude_paths)

    def create_log_entry(
        self,
        request: Request,
        response: Optional[Response] = None,
        duration_ms: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Create structured log entry.

        Args:
            request: Incoming request
            response: Response (if available)
            duration_ms: Request duration in milliseconds

        Returns:
            Log entry dictionary
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "client_ip": get_client_ip(request),
            "user_agent": request.headers.get("user-agent", "unknown"),
        }

        if hasattr(request.state, "user_id"):
            log_entry["user_id"] = str(request.state.user_id)

        if response is not None:
            log_entry["status_code"] = response.status_code

        if duration_ms is not None:
            log_entry["duration_ms"] = round(duration_ms, 2)

        return log_entry

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request with logging.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint

        Returns:
            Response
        """
        if not self.should_log_path(request.url.path):
            return await call_next(request)

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration_ms = (time.time() - start_time) * 1000
        log_entry = self.create_log_entry(request, response, duration_ms)

        if response.status_code >= 500:
            logger.error(json.dumps(log_entry))
        elif response.status_code >= 400:
            logger.warning(json.dumps(log_entry))
        else:
            logger.info(json.dumps(log_entry))

        return response
