"""Resort information and tax configuration shown on the settings page."""

from __future__ import annotations

from typing import Any

from supabase import Client

RESORT_SETTINGS_TABLE = "resort_settings"
TAX_CONFIG_TABLE = "tax_config"

EDITABLE_RESORT_FIELDS = ("resort_name", "location", "phone", "email", "address")


class ResortSettingsService:
    def __init__(self, client: Client):
        self.client = client

    def get_resort_settings(self) -> dict[str, Any] | None:
        result = self.client.table(RESORT_SETTINGS_TABLE).select("*").limit(1).execute()
        rows = result.data or []
        return rows[0] if rows else None

    def update_resort_settings(
        self,
        settings_id: str,
        changes: dict[str, Any],
        *,
        updated_by: str | None = None,
    ) -> dict[str, Any] | None:
        payload = {k: v for k, v in changes.items() if k in EDITABLE_RESORT_FIELDS and v is not None}
        if not payload:
            raise ValueError("No editable fields supplied")
        payload["updated_by"] = updated_by
        result = (
            self.client.table(RESORT_SETTINGS_TABLE).update(payload).eq("id", settings_id).execute()
        )
        rows = result.data or []
        return rows[0] if rows else None

    def list_taxes(self) -> list[dict[str, Any]]:
        return self.client.table(TAX_CONFIG_TABLE).select("*").execute().data or []

    def active_tax(self, taxes: list[dict[str, Any]] | None = None) -> dict[str, Any] | None:
        if taxes is None:
            taxes = self.list_taxes()
        return next((t for t in taxes if t.get("is_active")), None)
