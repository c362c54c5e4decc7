"""
API module untuk WellAuth.
Berisi endpoints dan dependencies untuk API.
"""

from wellauth.api.v1 import admin, auth, health, sessions

__all__ = ["admin", "auth", "health", "sessions"]
