"""
tests/conftest.py -- Shared test fixtures for IdP Configs tests.

This module provides:
  - store: fresh in-memory AuthRealmStore per test
  - service: AuthRealmService over that store
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient against the real app with an isolated database

Design: the API store uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

DEBUG and RATE_LIMIT_ENABLED must be set before any project import so
get_settings() does not demand a DATABASE_URL and the limiter is built
disabled.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/api import so the cached Settings see them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from realms.service import AuthRealmService
from realms.store import AuthRealmStore

# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AuthRealmStore, None, None]:
    s = AuthRealmStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: AuthRealmStore) -> AuthRealmService:
    return AuthRealmService(store)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: AuthRealmStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.realms = AuthRealmService(store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AuthRealmStore], None, None]:
    """Yield (client, store) for API integration tests.

    One database per test module, named after the module so modules never see
    each other's rows.
    """
    name = request.module.__name__.rsplit(".", 1)[-1]
    store = AuthRealmStore(f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    store.close()
