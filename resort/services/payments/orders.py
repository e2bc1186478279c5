"""Payment order creation and gateway configuration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from supabase import Client

from resort.conf.payment_config import (
    DEFAULT_CURRENCY,
    MINOR_UNITS_PER_MAJOR,
    PAYMENT_CAPTURE_AUTO,
    RAZORPAY_PROVIDER,
    SECRET_CONFIG_KEYS,
    GatewayCredentials,
    mask_secret,
)
from resort.core.errors import PaymentConfigError
from resort.core.logging import log_event
from resort.services.payments.razorpay_client import RazorpayClient

logger = logging.getLogger(__name__)

PAYMENT_SETTINGS_TABLE = "payment_settings"


def to_minor_units(amount: float | int | str | Decimal) -> int:
    """Convert a major-unit amount (rupees) to the gateway's minor unit (paise).

    Rounds half away from zero so 10.005 becomes 1001.
    """
    value = Decimal(str(amount)) * MINOR_UNITS_PER_MAJOR
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentSettingsStore:
    """Provider rows in payment_settings: ``{provider, config, is_active}``."""

    def __init__(self, client: Client, table: str = PAYMENT_SETTINGS_TABLE):
        self.client = client
        self.table = table

    def get(self, provider: str) -> dict[str, Any] | None:
        result = (
            self.client.table(self.table).select("*").eq("provider", provider).limit(1).execute()
        )
        rows = result.data or []
        return rows[0] if rows else None

    def list_masked(self) -> list[dict[str, Any]]:
        """All providers with secret config values masked for display."""
        rows = self.client.table(self.table).select("*").execute().data or []
        masked = []
        for row in rows:
            config = dict(row.get("config") or {})
            for key in SECRET_CONFIG_KEYS & config.keys():
                config[key] = mask_secret(str(config[key] or ""))
            masked.append({**row, "config": config})
        return masked

    def upsert(
        self,
        provider: str,
        config: dict[str, Any],
        *,
        is_active: bool | None = None,
    ) -> dict[str, Any]:
        """Merge ``config`` into the stored provider config.

        Masked placeholders sent back by the dashboard do not overwrite the
        stored secret.
        """
        existing = self.get(provider) or {}
        merged = dict(existing.get("config") or {})
        for key, value in config.items():
            if key in SECRET_CONFIG_KEYS and isinstance(value, str) and value.startswith("****"):
                continue
            merged[key] = value

        payload: dict[str, Any] = {"provider": provider, "config": merged}
        if is_active is not None:
            payload["is_active"] = is_active
        result = self.client.table(self.table).upsert(payload, on_conflict="provider").execute()
        rows = result.data or []
        return rows[0] if rows else payload

    def razorpay_credentials(self) -> GatewayCredentials:
        """Read Razorpay keys.

        Raises:
            PaymentConfigError: If the row or the keys are missing.
        """
        try:
            row = self.get(RAZORPAY_PROVIDER)
        except Exception as e:
            raise PaymentConfigError(f"Razorpay configuration not found: {e}") from e
        if not row:
            raise PaymentConfigError("Razorpay configuration not found: no payment_settings row")

        config = row.get("config") or {}
        credentials = GatewayCredentials(
            key_id=str(config.get("key_id") or ""),
            key_secret=str(config.get("key_secret") or ""),
        )
        if not credentials.configured:
            raise PaymentConfigError("Razorpay API keys are not configured in settings.")
        return credentials


class PaymentOrderService:
    def __init__(
        self,
        settings_store: PaymentSettingsStore,
        client_factory: Callable[[GatewayCredentials], RazorpayClient] = RazorpayClient,
    ):
        self.settings_store = settings_store
        self.client_factory = client_factory

    async def create_order(
        self,
        amount: float,
        *,
        currency: str = DEFAULT_CURRENCY,
        receipt: str | None = None,
    ) -> dict[str, Any]:
        """Create a Razorpay order for ``amount`` in major units.

        Raises:
            PaymentConfigError: If credentials are missing.
            RazorpayError: If the gateway rejects the order.
        """
        credentials = await asyncio.to_thread(self.settings_store.razorpay_credentials)
        options: dict[str, Any] = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "payment_capture": PAYMENT_CAPTURE_AUTO,
        }
        if receipt:
            options["receipt"] = receipt

        logger.info("[PAYMENTS] Creating Razorpay order: %s", options)
        order = await self.client_factory(credentials).create_order(options)
        log_event(
            logger,
            event="payment_order_created",
            order_id=order.get("id"),
            amount=options["amount"],
            currency=currency,
        )
        return order
