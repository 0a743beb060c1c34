# squadzone/routes/v1/users.py
"""Public user profiles."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ...core.concurrency import run_blocking
from ...database import get_db
from ...models.types import MAX_ID
from ...schemas.auth import UserProfileResponse, UserResponse
from ...services.auth_service import AuthService, serialize_user

router = APIRouter(tags=["users-v1"])


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user_profile(
    user_id: int = Path(..., ge=1, le=MAX_ID), db: Session = Depends(get_db)
) -> UserProfileResponse:
    user = await run_blocking(AuthService(db).get_user, user_id)
    return UserProfileResponse(user=UserResponse.model_validate(serialize_user(user)))
