# squadzone/models/user.py
"""
User model.

Users are owned by the identity collaborator. The messaging core only ever
reads them to resolve a participant's display name and avatar.
"""

from sqlalchemy import Column, Integer, String

from ..database import Base
from .types import UTCDateTime, utcnow


class User(Base):
    """
    Registered account.

    Attributes:
        id: Integer primary key
        name: Display name (falls back to the email at registration)
        email: Unique login address
        hashed_password: Bcrypt hash
        avatar: Avatar reference (URL path)
        created_at: Account creation timestamp
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    avatar = Column(String(512), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
