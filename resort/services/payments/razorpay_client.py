"""Razorpay REST client.

Covers the one call the site needs, order creation. Auth is HTTP Basic
with the key id / key secret pair stored in payment_settings.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from resort.conf.config import settings
from resort.conf.payment_config import GatewayCredentials
from resort.core.errors import RazorpayError

logger = logging.getLogger(__name__)


class RazorpayClient:
    def __init__(
        self,
        credentials: GatewayCredentials,
        *,
        base_url: str | None = None,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.base_url = (base_url or settings.RAZORPAY_API_BASE).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST /orders and return the order entity."""
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.credentials.key_id, self.credentials.key_secret),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post("/orders", json=payload)
            except httpx.HTTPError as e:
                raise RazorpayError(f"Razorpay request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            error = data.get("error") if isinstance(data, dict) else None
            if isinstance(error, dict):
                description = error.get("description")
            else:
                description = str(error) if error else None
            description = description or response.text or "unknown error"
            raise RazorpayError(description, status_code=response.status_code, payload=data)

        return data
