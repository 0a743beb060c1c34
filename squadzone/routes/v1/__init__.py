"""Versioned API routers."""

from . import auth, conversations, realtime, users

__all__ = ["auth", "conversations", "realtime", "users"]
