"""
tests/conftest.py -- Shared test fixtures for OrgGate.

This module provides:
  - store: in-memory MembershipStore for unit tests
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient over the real app with an isolated store

Design: the API client uses a SQLite file under pytest's tmp dir rather than
:memory: because TestClient runs route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import MembershipStore
from auth.tokens import hash_password

_PASSWORD = "password123"


@pytest.fixture
def store() -> Generator[MembershipStore, None, None]:
    s = MembershipStore("sqlite:///:memory:")
    yield s
    s.close()


def _make_user(store: MembershipStore, email: str, first_name: str = "Test", password: str = _PASSWORD) -> User:
    """Insert a bare user (no default organisation) and return it with its id."""
    user = User(
        email=email,
        first_name=first_name,
        last_name="User",
        phone="1234567890",
        hashed_password=hash_password(password),
    )
    user.id = store.create_user(user)
    return user


@pytest.fixture
def make_user():
    """Factory fixture: make_user(store, email, first_name=..., password=...)."""
    return _make_user


def _patch_lifespan(store: MembershipStore):
    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request, tmp_path_factory) -> Generator[tuple[TestClient, MembershipStore], None, None]:
    """Yield (client, store) for API integration tests.

    Each test module gets its own database file so modules do not see each
    other's users.
    """
    db_name = request.module.__name__.rsplit(".", 1)[-1]
    db_path = tmp_path_factory.mktemp("db") / f"{db_name}.db"
    store = MembershipStore(f"sqlite:///{db_path}")
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client, store

    store.close()
