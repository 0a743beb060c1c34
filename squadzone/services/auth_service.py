# squadzone/services/auth_service.py
"""
Authentication Service.

Registration and credential checks for the identity collaborator. Session
issuance lives in core/session_store.py; this service only deals with users.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..auth import DUMMY_HASH_FOR_TIMING_ATTACK, get_password_hash, verify_password
from ..core.config import settings
from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def serialize_user(user: User, include_email: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar or settings.default_avatar,
    }
    if include_email:
        data["email"] = user.email
    return data


class AuthService(BaseService):
    """Service for handling authentication operations."""

    def __init__(self, db: Session, user_repository: Optional[UserRepository] = None) -> None:
        """Initialize authentication service."""
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("register_user")
    def register_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> User:
        """
        Register a new user.

        Args:
            email: Login address, stored lowercased
            password: Plain text password (will be hashed)
            name: Display name; defaults to the email
            avatar: Avatar reference; defaults to the configured placeholder

        Returns:
            Created user object

        Raises:
            ValidationException: email or password missing
            ConflictException: If email already exists
        """
        normalized_email = (email or "").strip().lower()
        if not normalized_email or not password:
            raise ValidationException("email & password required")

        if self.user_repository.get_by_email(normalized_email) is not None:
            self.logger.warning(f"Registration failed - email already exists: {normalized_email}")
            raise ConflictException("Email already registered")

        hashed_password = get_password_hash(password)
        with self.transaction():
            user: User = self.user_repository.create(
                email=normalized_email,
                hashed_password=hashed_password,
                name=(name or "").strip() or normalized_email,
                avatar=avatar or settings.default_avatar,
            )

        self.logger.info(f"Registered user {user.id}")
        return user

    @BaseService.measure_operation("authenticate_user")
    def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user by email and password.

        Raises:
            ValidationException: missing fields or invalid credentials
        """
        if not email or not password:
            raise ValidationException("email & password required")

        user = self.user_repository.get_by_email(email)
        if user is None:
            # Same bcrypt cost as a real miss
            verify_password(password, DUMMY_HASH_FOR_TIMING_ATTACK)
            self.logger.warning("Authentication failed - user not found")
            raise ValidationException("invalid credentials")

        if not verify_password(password, str(user.hashed_password)):
            self.logger.warning(f"Authentication failed - incorrect password for user {user.id}")
            raise ValidationException("invalid credentials")

        return user

    @BaseService.measure_operation("get_user")
    def get_user(self, user_id: int) -> User:
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found", details={"user_id": user_id})
        return user

    def find_user(self, user_id: int) -> Optional[User]:
        return self.user_repository.get_by_id(user_id)
