"""Embed text chunks and store them for vector retrieval."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from supabase import Client

from resort.conf.config import settings
from resort.core.logging import log_event, safe_preview
from resort.services.llm.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


@dataclass
class KnowledgeChunk:
    content: str
    source_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class KnowledgeIngestService:
    def __init__(self, gemini: GeminiClient, supabase: Client, table: str | None = None):
        self.gemini = gemini
        self.supabase = supabase
        self.table = table or settings.SUPABASE_DOCUMENTS_TABLE

    async def ingest(self, chunk: KnowledgeChunk) -> dict[str, Any]:
        """Embed ``chunk`` and insert it into the documents table."""
        if not chunk.content.strip():
            raise ValueError("content is required")

        embedding = await self.gemini.embed(chunk.content)
        row = {
            "content": chunk.content,
            "source_url": chunk.source_url,
            "metadata": chunk.metadata,
            "embedding": embedding,
        }
        result = await asyncio.to_thread(self.supabase.table(self.table).insert(row).execute)
        inserted = (result.data or [row])[0]
        log_event(
            logger,
            event="knowledge_chunk_ingested",
            source_url=chunk.source_url,
            preview=safe_preview(chunk.content, 60),
        )
        return inserted
