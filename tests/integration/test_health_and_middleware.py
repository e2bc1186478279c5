from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from resort.server import main
from resort.server.main import app
from resort.server.middleware import RateLimitConfig, RateLimitMiddleware


pytestmark = [pytest.mark.integration]


def _limited_app(per_minute: int) -> FastAPI:
    limited = FastAPI()

    @limited.get("/ping")
    async def ping():
        return {"ok": True}

    @limited.get("/health")
    async def health():
        return {"status": "ok"}

    limited.add_middleware(
        RateLimitMiddleware,
        config=RateLimitConfig(requests_per_minute=per_minute, requests_per_hour=100),
        redis_url="",
    )
    return limited


def test_rate_limit_returns_429_with_retry_after():
    client = TestClient(_limited_app(per_minute=2))

    assert client.get("/ping").status_code == 200
    assert client.get("/ping").status_code == 200
    response = client.get("/ping")

    assert response.status_code == 429
    assert response.json()["error"] == "Rate limit exceeded. Please slow down."
    assert int(response.headers["Retry-After"]) > 0


def test_health_is_never_rate_limited():
    client = TestClient(_limited_app(per_minute=1))

    for _ in range(3):
        assert client.get("/health").status_code == 200


def test_clients_are_limited_separately():
    client = TestClient(_limited_app(per_minute=1))

    assert client.get("/ping", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
    assert client.get("/ping", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
    assert client.get("/ping", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429


def test_health_reports_disabled_dependencies():
    with TestClient(app) as client:
        body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["checks"] == {"supabase": "disabled", "llm": "disabled"}
    assert body["build"]["version"] == "1.0.0"


def test_health_reports_circuit_state(monkeypatch: pytest.MonkeyPatch, fake_supabase):
    monkeypatch.setattr(main.settings, "GEMINI_API_KEY", SecretStr("g-key"))

    with patch("resort.services.infra.supabase_client.get_supabase_client", return_value=fake_supabase):
        with TestClient(app) as client:
            body = client.get("/health").json()

    assert body["checks"]["supabase"] == "ok"
    strategies = body["checks"]["llm"]["strategies"]
    assert strategies[0] == {"model": "gemini-1.5-flash-v1beta", "circuit_state": "closed", "failure_count": 0}
    assert body["checks"]["llm"]["any_available"] is True
