"""
Middleware package untuk WellAuth.
Berisi middleware untuk logging dan error handling.
"""

from wellauth.middleware.logging import LoggingMiddleware
from wellauth.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers

__all__ = [
    "LoggingMiddleware",
    "ErrorHandlerMiddleware",
    "register_exception_handlers"
]
