# squadzone/repositories/user_repository.py
"""
User Repository.

Lookups used by the identity collaborator (registration, login) and by the
messaging core to resolve participants' display names and avatars.
"""

import logging
from typing import Dict, Iterable, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive match on the stored lowercase value)."""
        try:
            return cast(
                Optional[User],
                self.db.query(User).filter(User.email == email.strip().lower()).first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by email: {str(e)}")
            raise RepositoryException(f"Failed to retrieve user: {str(e)}")

    def get_many(self, user_ids: Iterable[int]) -> Dict[int, User]:
        """Batch lookup keyed by id. Missing ids are simply absent."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        try:
            rows = self.db.query(User).filter(User.id.in_(ids)).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error batch-loading users: {str(e)}")
            raise RepositoryException(f"Failed to retrieve users: {str(e)}")
        return {int(u.id): u for u in rows}
