"""Vector-search retrieval for the chat assistant.

Similarity search runs inside Postgres (pgvector) behind the
``match_documents`` RPC; this module only embeds the query and formats
the matches into prompt context.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from supabase import Client

from resort.conf.config import settings
from resort.core.logging import log_event
from resort.core.prompt_loader import get_retrieval_header
from resort.services.llm.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


@dataclass
class RetrievedChunk:
    content: str
    source_url: str | None = None
    similarity: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RetrievedChunk:
        return cls(
            content=row.get("content") or "",
            source_url=row.get("source_url"),
            similarity=row.get("similarity"),
            metadata=row.get("metadata") or {},
        )


class KnowledgeRetriever:
    def __init__(
        self,
        gemini: GeminiClient,
        supabase: Client,
        *,
        rpc_name: str | None = None,
        match_threshold: float | None = None,
        match_count: int | None = None,
    ):
        self.gemini = gemini
        self.supabase = supabase
        self.rpc_name = rpc_name or settings.SUPABASE_MATCH_RPC
        self.match_threshold = (
            match_threshold if match_threshold is not None else settings.RAG_MATCH_THRESHOLD
        )
        self.match_count = match_count or settings.RAG_MATCH_COUNT

    async def search(self, query: str) -> list[RetrievedChunk]:
        if not query.strip():
            return []
        embedding = await self.gemini.embed(query)
        query = self.supabase.rpc(
            self.rpc_name,
            {
                "query_embedding": embedding,
                "match_threshold": self.match_threshold,
                "match_count": self.match_count,
            },
        )
        result = await asyncio.to_thread(query.execute)
        chunks = [RetrievedChunk.from_row(row) for row in (result.data or [])]
        log_event(logger, event="chat_retrieval_done", matches=len(chunks))
        return [c for c in chunks if c.content]


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Render matches as a bullet list appended to the system prompt."""
    if not chunks:
        return ""
    lines = [get_retrieval_header()]
    for chunk in chunks:
        suffix = f" (source: {chunk.source_url})" if chunk.source_url else ""
        lines.append(f"- {chunk.content}{suffix}")
    return "\n".join(lines)
