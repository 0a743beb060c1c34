"""
Shared fixtures.

Every test gets its own SQLite database file, so request sessions (which run
on worker threads) see real commits and constraint behaviour. The app's
session-factory dependency is pointed at that database, and the TestClient is
entered as a context manager so the lifespan connects the memory:// broadcaster
and the in-memory session store.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["BROADCAST_URL"] = "memory://"
os.environ["SESSION_BACKEND"] = "memory"

from typing import Callable, Dict, Iterator, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from squadzone.auth import get_password_hash
from squadzone.database import Base, get_session_factory
from squadzone.main import app
from squadzone.models import User

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture
def test_password() -> str:
    """Standard test password for all test users."""
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def test_password_hash() -> str:
    """bcrypt is slow; hash the shared test password once."""
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def test_engine(tmp_path) -> Iterator[Engine]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'squadzone_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
    )


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    """A session for arranging and inspecting data directly."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def make_user(db: Session, test_password_hash: str) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(
        name: Optional[str] = None, user_id: Optional[int] = None, avatar: Optional[str] = None
    ) -> User:
        counter["n"] += 1
        label = name or f"User {counter['n']}"
        user = User(
            name=label,
            email=f"{label.lower().replace(' ', '.')}@example.com",
            hashed_password=test_password_hash,
            avatar=avatar,
        )
        if user_id is not None:
            user.id = user_id
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def alice(make_user) -> User:
    return make_user("Alice")


@pytest.fixture
def bob(make_user) -> User:
    return make_user("Bob")


@pytest.fixture
def carol(make_user) -> User:
    return make_user("Carol")


@pytest.fixture
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    """Create a test client bound to the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers_for(client: TestClient) -> Callable[[User], Dict[str, str]]:
    """Open a server-side session for a user and return Bearer headers for it."""

    def _headers(user: User) -> Dict[str, str]:
        sessions = app.state.session_repository
        token = client.portal.call(sessions.create, int(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers
