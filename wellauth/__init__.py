"""
WellAuth - account security and session lifecycle core.

This package provides:
- Rate limiting dengan counting store in-memory atau Redis
- Login attempt tracking dan account lockout
- Single-use password reset tokens
- Session registry dengan device trust
- Security event logging

Built with FastAPI, SQLAlchemy, and PostgreSQL.
"""

__version__ = "1.0.0"
__author__ = "WellAuth Team"
__license__ = "MIT"

# Package metadata
__all__ = [
    "__version__",
    "__author__",
    "__license__",
]
