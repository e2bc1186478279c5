from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from resort.core.errors import RazorpayError
from resort.server.dependencies import get_knowledge_ingest, get_payment_order_service, get_supabase
from resort.server.main import app
from resort.services.payments.orders import PaymentOrderService, PaymentSettingsStore


pytestmark = [pytest.mark.integration, pytest.mark.payments]


class StubRazorpay:
    def __init__(self, credentials):
        self.credentials = credentials

    async def create_order(self, payload):
        return {"id": "order_Nx1", "entity": "order", "status": "created", **payload}


class RejectingRazorpay(StubRazorpay):
    async def create_order(self, payload):
        raise RazorpayError("Authentication failed", status_code=401)


@pytest.fixture()
def client():
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()


def _use_gateway(fake_supabase, factory):
    app.dependency_overrides[get_payment_order_service] = lambda: PaymentOrderService(
        PaymentSettingsStore(fake_supabase), client_factory=factory
    )


def test_create_order_returns_gateway_order(client, fake_supabase):
    fake_supabase.tables["payment_settings"] = [
        {"provider": "razorpay", "config": {"key_id": "rzp_test_k", "key_secret": "s"}}
    ]
    _use_gateway(fake_supabase, StubRazorpay)

    response = client.post(
        "/functions/v1/create-razorpay-order",
        json={"amount": 12500.5, "currency": "inr", "receipt": "rcpt_1"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "id": "order_Nx1",
        "entity": "order",
        "status": "created",
        "amount": 1250050,
        "currency": "INR",
        "payment_capture": 1,
        "receipt": "rcpt_1",
    }


def test_missing_configuration_is_400(client, fake_supabase):
    _use_gateway(fake_supabase, StubRazorpay)

    response = client.post("/functions/v1/create-razorpay-order", json={"amount": 100})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Razorpay configuration not found")


def test_empty_keys_is_400(client, fake_supabase):
    fake_supabase.tables["payment_settings"] = [
        {"provider": "razorpay", "config": {"key_id": "", "key_secret": ""}}
    ]
    _use_gateway(fake_supabase, StubRazorpay)

    response = client.post("/functions/v1/create-razorpay-order", json={"amount": 100})

    assert response.status_code == 400
    assert response.json() == {"error": "Razorpay API keys are not configured in settings."}


def test_gateway_rejection_is_400(client, fake_supabase):
    fake_supabase.tables["payment_settings"] = [
        {"provider": "razorpay", "config": {"key_id": "rzp_test_k", "key_secret": "s"}}
    ]
    _use_gateway(fake_supabase, RejectingRazorpay)

    response = client.post("/functions/v1/create-razorpay-order", json={"amount": 100})

    assert response.status_code == 400
    assert response.json() == {"error": "Authentication failed"}


def test_supabase_not_configured_is_503(client):
    response = client.post("/functions/v1/create-razorpay-order", json={"amount": 100})

    assert response.status_code == 503
    assert response.json()["error"] == "Supabase integration not configured."


def test_embed_content_inserts_document(client, fake_supabase):
    ingest = AsyncMock()
    ingest.ingest.return_value = {"id": 42}
    app.dependency_overrides[get_knowledge_ingest] = lambda: ingest

    response = client.post(
        "/functions/v1/embed-content",
        json={"content": "Safari starts 6am", "source_url": "/experiences/safari", "metadata": {"k": 1}},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "id": 42}
    chunk = ingest.ingest.await_args.args[0]
    assert chunk.content == "Safari starts 6am"
    assert chunk.source_url == "/experiences/safari"
    assert chunk.metadata == {"k": 1}


def test_embed_content_error_is_reported(client, fake_supabase):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    ingest = AsyncMock()
    ingest.ingest.side_effect = RuntimeError("documents table missing")
    app.dependency_overrides[get_knowledge_ingest] = lambda: ingest

    response = client.post("/functions/v1/embed-content", json={"content": "x"})

    assert response.status_code == 400
    assert response.json() == {"error": "documents table missing"}


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({}, "amount"),
        ({"amount": "abc"}, "amount"),
        ({"amount": 0}, "amount"),
        ({"amount": 10, "currency": "RUPEE"}, "currency"),
    ],
)
def test_invalid_order_request_is_400_with_error(client, fake_supabase, body, field):
    _use_gateway(fake_supabase, StubRazorpay)

    response = client.post("/functions/v1/create-razorpay-order", json=body)

    assert response.status_code == 400
    assert response.json()["error"].startswith(f"{field}: ")


def test_embed_content_empty_content_is_400(client):
    ingest = AsyncMock()
    app.dependency_overrides[get_knowledge_ingest] = lambda: ingest

    response = client.post("/functions/v1/embed-content", json={"content": ""})

    assert response.status_code == 400
    assert response.json()["error"].startswith("content: ")
    ingest.ingest.assert_not_awaited()
