"""
tests/test_rate_limit.py -- Rate limiting and the 429 response.

The rest of the suite runs with the shared limiter disabled. These tests turn
it on (or build a limiter of their own) and check:
  - the per-route limits on the real app are actually enforced
  - 429 carries Retry-After and a plain-text body
  - Retry-After is the length of the exceeded window, not a fixed value

Fixtures used (from conftest.py):
  - api_client: (client, store) -- one isolated database for this module
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from api.limiter import limiter
from api.main import rate_limit_handler
from auth.identity import encode_identity
from core.config import get_settings

BASE = "/api/v1/auth-realms"


@pytest.fixture
def enabled_limiter(monkeypatch) -> Generator[Limiter, None, None]:
    """Switch the shared limiter on with empty counters, and off again afterwards."""
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


@pytest.fixture
def tiny_app() -> TestClient:
    """A bare app with a 1/minute and a 2/hour route, rendered by the real 429 handler."""
    tiny = Limiter(key_func=get_remote_address, storage_uri="memory://")
    app = FastAPI()
    app.state.limiter = tiny
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    @app.get("/per-minute")
    @tiny.limit("1/minute")
    def per_minute(request: Request) -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.get("/per-hour")
    @tiny.limit("2/hour")
    def per_hour(request: Request) -> PlainTextResponse:
        return PlainTextResponse("ok")

    return TestClient(app)


class TestRateLimitResponse:
    def test_second_request_in_window_is_429(self, tiny_app: TestClient) -> None:
        assert tiny_app.get("/per-minute").status_code == 200
        resp = tiny_app.get("/per-minute")
        assert resp.status_code == 429
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text.startswith("Too many requests: ")
        assert "1 per 1 minute" in resp.text

    def test_retry_after_matches_minute_window(self, tiny_app: TestClient) -> None:
        tiny_app.get("/per-minute")
        resp = tiny_app.get("/per-minute")
        assert resp.headers["Retry-After"] == "60"

    def test_retry_after_matches_hour_window(self, tiny_app: TestClient) -> None:
        for _ in range(2):
            assert tiny_app.get("/per-hour").status_code == 200
        resp = tiny_app.get("/per-hour")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "3600"

    def test_routes_are_counted_separately(self, tiny_app: TestClient) -> None:
        tiny_app.get("/per-minute")
        assert tiny_app.get("/per-minute").status_code == 429
        assert tiny_app.get("/per-hour").status_code == 200


class TestAppLimits:
    def test_list_route_is_limited(self, api_client, enabled_limiter: Limiter) -> None:
        client, _store = api_client
        headers = {get_settings().identity_header: encode_identity("6089719")}

        served = 0
        resp = client.get(BASE, headers=headers)
        while resp.status_code == 200 and served < 1000:
            served += 1
            resp = client.get(BASE, headers=headers)

        assert resp.status_code == 429
        assert served > 0
        assert int(resp.headers["Retry-After"]) > 0
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text.startswith("Too many requests: ")

    def test_limits_are_off_when_disabled(self, api_client) -> None:
        client, _store = api_client
        limiter.reset()
        headers = {get_settings().identity_header: encode_identity("6089719")}
        statuses = {client.get(BASE, headers=headers).status_code for _ in range(200)}
        assert statuses == {200}
