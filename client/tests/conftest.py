"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
a seeded fake backend, a service container wired to it over an ASGI
transport, and helpers for signed-in sessions.
"""

import json
from datetime import datetime, timedelta, timezone

import httpx
import jwt  # PyJWT
import pytest
import pytest_asyncio

from app.container import ServiceContainer, reset_container
from shared.config import Settings, get_settings
from shared.storage import MemoryStorage

from tests.fake_api import TEST_JWT_SECRET, FakeBackend, seeded_backend

TEST_API_URL = "http://test/api"
STORAGE_KEY = "auth-storage"


def create_test_token(
    user_id: str = "s-1",
    username: str = "stud1",
    role: str = "student",
    expired: bool = False,
) -> str:
    """
    Create a test JWT token in the shape the fake backend issues.

    Args:
        user_id: User ID to include in the token
        username: Login name to include in the token
        role: Role claim
        expired: If True, creates an expired token

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)
    payload = {
        "id": user_id,
        "username": username,
        "role": role,
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def persisted_blob(token, user=None, role=None) -> str:
    """The JSON the session store writes under its storage key."""
    return json.dumps({"state": {"token": token, "user": user, "role": role}, "version": 0})


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings and the container singleton around each test."""
    get_settings.cache_clear()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_container()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at the fake backend with a fast poll interval."""
    return Settings(
        api_base_url=TEST_API_URL,
        chat_poll_interval=0.05,
        storage_path=tmp_path / "storage.json",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return seeded_backend()


@pytest.fixture
def transport(backend: FakeBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=backend.app)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest_asyncio.fixture
async def container(settings, storage, transport):
    """A container talking to the fake backend, closed after the test."""
    c = ServiceContainer(settings, storage=storage, transport=transport)
    yield c
    pending = c.auth.pending_check
    if pending is not None:
        await pending
    await c.aclose()


@pytest_asyncio.fixture
async def student(container):
    """Container with stud1 logged in."""
    result = await container.auth.login("stud1", "studpass")
    assert result.success
    return container


@pytest_asyncio.fixture
async def teacher(container):
    """Container with teach1 logged in."""
    result = await container.auth.login("teach1", "teachpass")
    assert result.success
    return container
