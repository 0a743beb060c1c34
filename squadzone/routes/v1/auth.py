# squadzone/routes/v1/auth.py
"""
Identity routes - register, login, logout, current user.

A successful register/login opens a server-side session and sets it as an
HttpOnly cookie. The same token is accepted as a Bearer token.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...api.dependencies.auth import (
    extract_session_token,
    get_optional_user_id,
    get_session_repository,
)
from ...core.concurrency import run_blocking
from ...core.config import settings
from ...core.session_store import SessionRepository
from ...database import get_db
from ...schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    UserResponse,
)
from ...services.auth_service import AuthService, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth-v1"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency for AuthService."""
    return AuthService(db)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        path="/",
    )


@router.post("/register", response_model=UserResponse)
async def register(
    payload: RegisterRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    sessions: SessionRepository = Depends(get_session_repository),
) -> UserResponse:
    user = await run_blocking(
        service.register_user,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        avatar=payload.avatar,
    )
    token = await sessions.create(int(user.id))
    _set_session_cookie(response, token)
    return UserResponse.model_validate(serialize_user(user))


@router.post("/login", response_model=UserResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    sessions: SessionRepository = Depends(get_session_repository),
) -> UserResponse:
    user = await run_blocking(service.authenticate_user, payload.email, payload.password)
    token = await sessions.create(int(user.id))
    _set_session_cookie(response, token)
    logger.info(f"User {user.id} logged in")
    return UserResponse.model_validate(serialize_user(user))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    sessions: SessionRepository = Depends(get_session_repository),
) -> LogoutResponse:
    """End the current session. Always succeeds, even without one."""
    token = extract_session_token(request)
    if token:
        await sessions.delete(token)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return LogoutResponse(ok=True)


@router.get("/me", response_model=CurrentUserResponse)
async def me(
    user_id: Optional[int] = Depends(get_optional_user_id),
    service: AuthService = Depends(get_auth_service),
) -> CurrentUserResponse:
    """Current user, or ``{"user": null}`` when not logged in."""
    if user_id is None:
        return CurrentUserResponse(user=None)
    user = await run_blocking(service.find_user, user_id)
    if user is None:
        return CurrentUserResponse(user=None)
    return CurrentUserResponse(user=UserResponse.model_validate(serialize_user(user)))
