# squadzone/core/session_store.py
"""
Server-side session storage.

A session maps an opaque token (sent as the ``sid`` cookie or a Bearer token)
to a user id. Two backends share one async interface:

- InMemorySessionRepository: process-local dict with expiry (dev, tests)
- RedisSessionRepository: ``SETEX sz:session:<token>`` so every worker sees it
"""

import asyncio
import logging
import secrets
import time
from typing import Callable, Dict, Optional, Tuple

from redis.asyncio import Redis as AsyncRedis

from .config import settings

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "sz:session:"


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


class SessionRepository:
    """Interface for session backends."""

    def __init__(self, ttl_seconds: Optional[int] = None) -> None:
        self.ttl_seconds = ttl_seconds or settings.session_ttl_seconds

    async def create(self, user_id: int) -> str:
        raise NotImplementedError

    async def get_user_id(self, token: str) -> Optional[int]:
        raise NotImplementedError

    async def delete(self, token: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemorySessionRepository(SessionRepository):
    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(ttl_seconds)
        self._clock = clock
        self._sessions: Dict[str, Tuple[int, float]] = {}
        self._lock = asyncio.Lock()

    async def create(self, user_id: int) -> str:
        token = new_session_token()
        async with self._lock:
            self._sessions[token] = (user_id, self._clock() + self.ttl_seconds)
        return token

    async def get_user_id(self, token: str) -> Optional[int]:
        async with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            user_id, expires_at = entry
            if expires_at <= self._clock():
                del self._sessions[token]
                return None
            return user_id

    async def delete(self, token: str) -> None:
        async with self._lock:
            self._sessions.pop(token, None)


class RedisSessionRepository(SessionRepository):
    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        client: Optional[AsyncRedis] = None,
    ) -> None:
        super().__init__(ttl_seconds)
        self._client = client or AsyncRedis.from_url(
            redis_url or settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def create(self, user_id: int) -> str:
        token = new_session_token()
        await self._client.setex(f"{SESSION_KEY_PREFIX}{token}", self.ttl_seconds, str(user_id))
        return token

    async def get_user_id(self, token: str) -> Optional[int]:
        raw = await self._client.get(f"{SESSION_KEY_PREFIX}{token}")
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("[SESSION] Discarding malformed session entry")
            return None

    async def delete(self, token: str) -> None:
        await self._client.delete(f"{SESSION_KEY_PREFIX}{token}")

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("[SESSION] Redis session client closed")


def build_session_repository() -> SessionRepository:
    """Instantiate the backend selected by ``settings.session_backend``."""
    if settings.session_backend == "redis":
        logger.info("[SESSION] Using Redis session backend")
        return RedisSessionRepository()
    return InMemorySessionRepository()
