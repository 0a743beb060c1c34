"""Tests for Settings parsing."""

import pytest

from squadzone.core.config import Settings


def test_defaults(monkeypatch):
    for name in ("SESSION_COOKIE_NAME", "CONVERSATION_PAGE_SIZE", "SESSION_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)

    assert settings.session_cookie_name == "sid"
    assert settings.conversation_page_size == 50
    assert settings.conversation_page_size_max == 100
    assert settings.default_avatar == "/assets/default-avatar.png"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "yes")
    monkeypatch.setenv("SESSION_COOKIE_SAMESITE", "Strict")
    monkeypatch.setenv("BROADCAST_URL", "redis://cache:6379")

    settings = Settings(_env_file=None)

    assert settings.session_cookie_secure is True
    assert settings.session_cookie_samesite == "strict"
    assert settings.broadcast_url == "redis://cache:6379"


def test_rejects_unknown_samesite(monkeypatch):
    monkeypatch.setenv("SESSION_COOKIE_SAMESITE", "sometimes")
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_is_sqlite():
    assert Settings(_env_file=None, database_url="sqlite://").is_sqlite
    assert not Settings(_env_file=None, database_url="postgresql://db/sz").is_sqlite
