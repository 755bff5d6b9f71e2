"""
tests/conftest.py -- Shared test fixtures for TaskHub integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + tasks
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus an admin JWT for API integration tests
  - register: helper that registers a fresh user through the API
  - auth_headers, admin_credentials: small helpers for request headers and login

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Every test run signs tokens with its own random key, handed to TokenService
explicitly -- the same path api/main.py uses in production.

DEBUG and RATE_LIMIT_ENABLED must be set before any api/core import: the
settings singleton and the shared limiter are built at import time.
"""

from __future__ import annotations

import os
import secrets
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings
from tasks.store import TaskStore

TEST_SECRET_KEY = secrets.token_hex(32)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass1"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, TaskStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string in the DB name so test modules don't share state.
    """
    db_url = f"sqlite:///file:taskhub_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url), TaskStore(db_url)


def _patch_lifespan(user_store: UserStore, task_store: TaskStore, token_service: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and the test TokenService into app.state so
    TestClient routes see isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = Settings(debug=True, secret_key=TEST_SECRET_KEY)
        app.state.user_store = user_store
        app.state.task_store = task_store
        app.state.token_service = token_service
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use isolated in-memory stores. The admin user
    is created directly in the store (registration cannot mint admins once
    users exist) and its JWT is issued by the test TokenService.

    Stores and the token service are reachable as client.app.state.*.
    """
    user_store, task_store = _make_test_stores(request.module.__name__.replace(".", "_"))
    token_service = TokenService(TEST_SECRET_KEY, expire_seconds=3600)

    admin_id = user_store.create_user(
        User(
            name="Test Admin",
            email=ADMIN_EMAIL,
            role=Role.admin,
            hashed_password=hash_password(ADMIN_PASSWORD),
        )
    )
    admin_token = token_service.issue(admin_id, Role.admin)

    app.router.lifespan_context = _patch_lifespan(user_store, task_store, token_service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, admin_token, admin_id

    task_store.close()
    user_store.close()


@pytest.fixture
def register(api_client) -> Callable[..., tuple[str, dict]]:
    """Return a helper that registers a user via POST /auth/register.

    The helper returns (token, user_json). Emails default to a unique value
    so tests sharing a module-scoped database never collide.
    """
    client, _token, _uid = api_client

    def _register(name: str = "Test User", email: str | None = None, password: str = "secret1") -> tuple[str, dict]:
        email = email or f"user-{uuid.uuid4().hex[:10]}@example.com"
        resp = client.post(
            "/api/v1/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
        data = resp.json()["data"]
        return data["token"], data["user"]

    return _register


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Return a helper that builds an Authorization: Bearer header dict."""

    def _headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_credentials() -> tuple[str, str]:
    """(email, password) of the admin seeded by api_client."""
    return ADMIN_EMAIL, ADMIN_PASSWORD
