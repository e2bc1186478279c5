"""Chat assistant request cycle.

One call = one guest turn:
1. Build the system prompt (persona + optional retrieved knowledge)
2. Generate a reply through the model fallback chain
3. Extract lead details from the guest's last message
4. Persist the transcript and any captured lead
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from resort.conf.config import settings
from resort.core.errors import ServiceError
from resort.core.logging import log_event, safe_preview
from resort.core.prompt_loader import get_system_prompt_text
from resort.services.chat.lead_extraction import LeadExtractor, has_lead_details, to_lead_row
from resort.services.chat.retrieval import KnowledgeRetriever, format_context
from resort.services.llm.fallback import ModelFallbackService
from resort.services.storage.chat_store import ChatSessionStore, LeadStore

logger = logging.getLogger(__name__)


class ChatConfigurationError(ServiceError):
    component = "chat"


@dataclass
class ChatReply:
    response: str
    model: str
    lead: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"response": self.response, "lead": self.lead, "model": self.model}


def _last_content(messages: Sequence[Mapping[str, Any]], role: str | None = None) -> str:
    for message in reversed(messages):
        if role is None or message.get("role") == role:
            return message.get("content") or ""
    return ""


class ChatAssistant:
    def __init__(
        self,
        fallback: ModelFallbackService,
        extractor: LeadExtractor,
        *,
        session_store: ChatSessionStore | None = None,
        lead_store: LeadStore | None = None,
        retriever: KnowledgeRetriever | None = None,
        system_prompt: str | None = None,
    ):
        self.fallback = fallback
        self.extractor = extractor
        self.session_store = session_store
        self.lead_store = lead_store
        self.retriever = retriever
        self.system_prompt = system_prompt or get_system_prompt_text()

    async def _build_system_prompt(self, messages: Sequence[Mapping[str, Any]]) -> str:
        if self.retriever is None:
            return self.system_prompt
        try:
            chunks = await self.retriever.search(_last_content(messages, role="user"))
        except Exception as e:
            logger.warning("[CHAT] Retrieval ignored: %s", e)
            return self.system_prompt
        context = format_context(chunks)
        return f"{self.system_prompt}\n\n{context}" if context else self.system_prompt

    async def _persist(
        self,
        messages: Sequence[Mapping[str, Any]],
        reply: ChatReply,
        *,
        session_id: str | None,
        user_id: str | None,
    ) -> None:
        if session_id and self.session_store is not None:
            try:
                await asyncio.to_thread(
                    self.session_store.save,
                    session_id,
                    [*messages, {"role": "assistant", "content": reply.response}],
                    user_id=user_id,
                    metadata={"used_model": reply.model},
                )
            except Exception as e:
                logger.error("[CHAT] DB error saving session %s: %s", session_id, e)

        if has_lead_details(reply.lead) and self.lead_store is not None:
            try:
                await asyncio.to_thread(self.lead_store.create, to_lead_row(reply.lead))
                log_event(logger, event="chat_lead_captured", session_id=session_id)
            except Exception as e:
                logger.error("[CHAT] DB error saving lead: %s", e)

    async def reply(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        session_id: str | None = None,
        user_id: str | None = None,
    ) -> ChatReply:
        """Answer the latest guest turn.

        Raises:
            AllModelsFailedError: If no model strategy produced a reply.
        """
        log_event(
            logger,
            event="chat_request_received",
            session_id=session_id,
            turns=len(messages),
            preview=safe_preview(_last_content(messages), 80),
        )

        system_prompt = await self._build_system_prompt(messages)
        generation = await self.fallback.generate(messages, system_prompt)
        lead = await self.extractor.extract(_last_content(messages))

        reply = ChatReply(response=generation.text, model=generation.used_model, lead=lead)
        await self._persist(messages, reply, session_id=session_id, user_id=user_id)

        log_event(logger, event="chat_request_done", session_id=session_id, model=reply.model)
        return reply


def build_chat_assistant() -> ChatAssistant:
    """Wire the assistant from settings.

    Raises:
        ChatConfigurationError: If GEMINI_API_KEY is not set.
    """
    from resort.conf.config import parse_strategies
    from resort.services.infra.supabase_client import get_supabase_client
    from resort.services.llm.fallback import get_fallback_service

    if not settings.GEMINI_API_KEY.get_secret_value():
        raise ChatConfigurationError("Configuration Error: GEMINI_API_KEY is missing.")

    fallback = get_fallback_service()
    primary = parse_strategies(settings.LEAD_EXTRACTION_STRATEGY)[0]
    secondary = fallback.strategy_at(2)
    extractor = LeadExtractor(
        fallback.client, primary=primary, fallback=(secondary.model, secondary.version)
    )

    supabase = get_supabase_client()
    if supabase is None:
        logger.warning("[CHAT] Supabase not configured; transcripts and leads will not be saved")
        return ChatAssistant(fallback, extractor)

    retriever = KnowledgeRetriever(fallback.client, supabase) if settings.RAG_ENABLED else None
    return ChatAssistant(
        fallback,
        extractor,
        session_store=ChatSessionStore(supabase),
        lead_store=LeadStore(supabase),
        retriever=retriever,
    )
