"""Knowledge base used by the assistant's retrieval step."""

from resort.services.knowledge.dynamic_content import SyncReport, collect_dynamic_chunks, sync_dynamic_content
from resort.services.knowledge.ingest import KnowledgeChunk, KnowledgeIngestService

__all__ = [
    "KnowledgeChunk",
    "KnowledgeIngestService",
    "SyncReport",
    "collect_dynamic_chunks",
    "sync_dynamic_content",
]
