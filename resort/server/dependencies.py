"""FastAPI dependency injection module.

Lazily builds services from settings; tests override these through
``app.dependency_overrides`` or ``reset_dependencies``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from supabase import Client

from resort.core.errors import SupabaseUnavailableError
from resort.server.exceptions import AuthenticationError, PermissionDeniedError, ServiceUnavailableError
from resort.services.admin.auth import AdminAuthError, AdminUser, AdminVerifier
from resort.services.admin.settings_service import ResortSettingsService
from resort.services.admin.staff_service import StaffService
from resort.services.chat.assistant import ChatAssistant, build_chat_assistant
from resort.services.infra.supabase_client import get_supabase_client, require_supabase_client
from resort.services.knowledge.ingest import KnowledgeIngestService
from resort.services.llm.gemini_client import GeminiClient
from resort.services.payments.orders import PaymentOrderService, PaymentSettingsStore
from resort.services.storage.chat_store import LeadStore


def get_supabase() -> Client:
    """Service-role client; 503 when Supabase is not configured."""
    try:
        return require_supabase_client()
    except SupabaseUnavailableError as e:
        raise ServiceUnavailableError(e.message) from e


SupabaseDep = Annotated[Client, Depends(get_supabase)]


@lru_cache(maxsize=1)
def get_chat_assistant() -> ChatAssistant:
    """Raises ChatConfigurationError when GEMINI_API_KEY is missing (not cached)."""
    return build_chat_assistant()


@lru_cache(maxsize=1)
def get_gemini_client() -> GeminiClient:
    return GeminiClient()


def get_payment_order_service(client: SupabaseDep) -> PaymentOrderService:
    return PaymentOrderService(PaymentSettingsStore(client))


def get_payment_settings_store(client: SupabaseDep) -> PaymentSettingsStore:
    return PaymentSettingsStore(client)


def get_knowledge_ingest(client: SupabaseDep) -> KnowledgeIngestService:
    gemini = get_gemini_client()
    if not gemini.is_configured:
        raise ServiceUnavailableError("Configuration Error: GEMINI_API_KEY is missing.")
    return KnowledgeIngestService(gemini, client)


def get_lead_store(client: SupabaseDep) -> LeadStore:
    return LeadStore(client)


def get_resort_settings_service(client: SupabaseDep) -> ResortSettingsService:
    return ResortSettingsService(client)


def get_staff_service(client: SupabaseDep) -> StaffService:
    return StaffService(client)


def require_admin(
    client: SupabaseDep,
    authorization: Annotated[str | None, Header()] = None,
) -> AdminUser:
    """Resolve the bearer token to an admin user or fail with 401/403."""
    try:
        return AdminVerifier(client).verify(authorization)
    except SupabaseUnavailableError as e:
        raise ServiceUnavailableError(e.message) from e
    except AdminAuthError as e:
        if e.status_code == 403:
            raise PermissionDeniedError(e.message) from e
        raise AuthenticationError(e.message) from e


# Type aliases for endpoint injection
AdminDep = Annotated[AdminUser, Depends(require_admin)]
PaymentOrderServiceDep = Annotated[PaymentOrderService, Depends(get_payment_order_service)]
PaymentSettingsStoreDep = Annotated[PaymentSettingsStore, Depends(get_payment_settings_store)]
KnowledgeIngestDep = Annotated[KnowledgeIngestService, Depends(get_knowledge_ingest)]
LeadStoreDep = Annotated[LeadStore, Depends(get_lead_store)]
ResortSettingsDep = Annotated[ResortSettingsService, Depends(get_resort_settings_service)]
StaffServiceDep = Annotated[StaffService, Depends(get_staff_service)]


def reset_dependencies() -> None:
    """Reset all cached dependencies (useful for testing)."""
    get_chat_assistant.cache_clear()
    get_gemini_client.cache_clear()
    get_supabase_client.cache_clear()
