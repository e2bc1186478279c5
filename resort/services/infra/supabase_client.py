"""Shared Supabase client factory used across stores.

Two flavours: the cached service-role client (bypasses RLS; used for
sessions, leads, payment settings and auth admin calls) and per-request
user-scoped clients that run RPCs under the caller's JWT.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from supabase import Client, create_client

from resort.conf.config import settings
from resort.core.errors import SupabaseUnavailableError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client | None:
    """Return a configured service-role Supabase client or ``None`` when disabled.

    Handles initialization errors gracefully by clearing cache and returning None.
    This allows the system to retry on subsequent calls if configuration is fixed.
    """
    if not settings.supabase_enabled:
        return None

    try:
        return create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
        )
    except Exception as e:
        logger.error(
            "[SUPABASE] Failed to create client: %s. Clearing cache to allow retry.",
            e,
        )
        get_supabase_client.cache_clear()
        return None


def require_supabase_client() -> Client:
    """Return the service-role client or raise when Supabase is not configured."""
    client = get_supabase_client()
    if client is None:
        raise SupabaseUnavailableError("Supabase integration not configured.")
    return client


def get_user_scoped_client(access_token: str) -> Client:
    """Build an anon-key client whose PostgREST calls carry the user's JWT."""
    anon_key = settings.SUPABASE_ANON_KEY.get_secret_value()
    if not settings.SUPABASE_URL or not anon_key:
        raise SupabaseUnavailableError("Supabase anon client not configured.")
    if not access_token:
        raise SupabaseUnavailableError("Missing access token for user-scoped Supabase client.")
    client = create_client(settings.SUPABASE_URL, anon_key)
    client.postgrest.auth(access_token)
    return client
