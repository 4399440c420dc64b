"""Unit tests for per-request logging context."""

import pytest
import structlog

from arena.logging_config import bind_request_context, bind_user_context, clear_request_context
from arena.services.auth import get_current_user_id


@pytest.fixture(autouse=True)
def clean_context():
    clear_request_context()
    yield
    clear_request_context()


class TestRequestContext:
    def test_bind_and_clear(self):
        structlog.contextvars.bind_contextvars(service="arena")
        bind_request_context("req-1", user_id=4, path="/leaderboard")

        context = structlog.contextvars.get_contextvars()
        assert context["request_id"] == "req-1"
        assert context["user_id"] == 4
        assert context["path"] == "/leaderboard"

        clear_request_context()
        assert structlog.contextvars.get_contextvars() == {"service": "arena"}

    def test_user_id_is_omitted_when_unknown(self):
        bind_request_context("req-2")
        assert "user_id" not in structlog.contextvars.get_contextvars()

    def test_bind_user_context(self):
        bind_user_context(11)
        assert structlog.contextvars.get_contextvars()["user_id"] == 11

    @pytest.mark.asyncio
    async def test_authenticated_user_is_bound(self):
        assert await get_current_user_id({"type": "access", "sub": "8"}) == 8
        assert structlog.contextvars.get_contextvars()["user_id"] == 8


class TestRequestIdHeader:
    def test_generated_when_missing(self, client):
        response = client.get("/")
        assert response.headers["X-Request-ID"]

    def test_echoes_caller_request_id(self, client):
        response = client.get("/", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
