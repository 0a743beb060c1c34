# squadzone/api/dependencies/auth.py
"""
Authentication dependencies.

A caller is identified by a session token, looked up in the session
repository stored on ``app.state``. The token is read, in order, from:

1. ``Authorization: Bearer <token>``
2. the session cookie (``settings.session_cookie_name``)
3. the ``token`` query parameter (websocket handshakes only)
"""

import logging
from typing import Optional

from fastapi import Depends
from starlette.requests import HTTPConnection

from ...core.config import settings
from ...core.exceptions import UnauthorizedException
from ...core.session_store import SessionRepository

logger = logging.getLogger(__name__)


def get_session_repository(conn: HTTPConnection) -> SessionRepository:
    repository: Optional[SessionRepository] = getattr(conn.app.state, "session_repository", None)
    if repository is None:
        raise RuntimeError("Session repository not initialized. Is the app lifespan running?")
    return repository


def extract_session_token(conn: HTTPConnection, allow_query: bool = False) -> Optional[str]:
    """Return the raw session token presented by the caller, if any."""
    auth_header = (conn.headers.get("authorization") or "").strip()
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return token

    cookie_token = conn.cookies.get(settings.session_cookie_name)
    if cookie_token:
        return cookie_token

    if allow_query:
        query_token = conn.query_params.get("token")
        if query_token:
            return query_token
    return None


async def resolve_user_id(conn: HTTPConnection, allow_query: bool = False) -> Optional[int]:
    token = extract_session_token(conn, allow_query=allow_query)
    if not token:
        return None
    return await get_session_repository(conn).get_user_id(token)


async def get_optional_user_id(conn: HTTPConnection) -> Optional[int]:
    return await resolve_user_id(conn)


async def get_current_user_id(
    user_id: Optional[int] = Depends(get_optional_user_id),
) -> int:
    """
    Require an authenticated session.

    Raises:
        UnauthorizedException: no token, or the token is unknown/expired
    """
    if user_id is None:
        raise UnauthorizedException("not authenticated")
    return user_id
