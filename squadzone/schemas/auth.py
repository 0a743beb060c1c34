# squadzone/schemas/auth.py
"""Pydantic schemas for the identity endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CurrentUserResponse(BaseModel):
    user: Optional[UserResponse] = None


class UserProfileResponse(BaseModel):
    user: UserResponse


class LogoutResponse(BaseModel):
    ok: bool = True
