"""Supabase stores for chat transcripts and captured leads."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from supabase import Client

from resort.conf.config import settings
from resort.conf.payment_config import LEAD_STATUSES

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class ChatSessionStore:
    """Upserts whole transcripts keyed by the widget's session id."""

    def __init__(self, client: Client, table: str | None = None):
        self.client = client
        self.table = table or settings.SUPABASE_SESSIONS_TABLE

    def save(
        self,
        session_id: str,
        messages: Sequence[Mapping[str, Any]],
        *,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload = {
            "id": session_id,
            "user_id": user_id,
            "messages": [dict(m) for m in messages],
            "metadata": metadata or {},
            "updated_at": _utc_now_iso(),
        }
        self.client.table(self.table).upsert(payload).execute()
        return payload


class LeadStore:
    """chat_leads rows: inserted by the assistant, worked by admins."""

    def __init__(self, client: Client, table: str | None = None):
        self.client = client
        self.table = table or settings.SUPABASE_LEADS_TABLE

    def create(self, row: dict[str, Any]) -> dict[str, Any]:
        result = self.client.table(self.table).insert(row).execute()
        rows = result.data or []
        return rows[0] if rows else row

    def list_leads(self, *, status: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        query = self.client.table(self.table).select("*")
        if status:
            query = query.eq("status", status)
        query = query.order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        return query.execute().data or []

    def update_status(self, lead_id: str, status: str) -> dict[str, Any] | None:
        if status not in LEAD_STATUSES:
            raise ValueError(f"Unknown lead status: {status}. Valid: {', '.join(LEAD_STATUSES)}")
        result = self.client.table(self.table).update({"status": status}).eq("id", lead_id).execute()
        rows = result.data or []
        return rows[0] if rows else None
