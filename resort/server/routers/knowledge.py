"""Knowledge base ingestion router."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from resort.core.errors import mask_sensitive_data
from resort.server.dependencies import KnowledgeIngestDep
from resort.server.models.requests import EmbedContentRequest
from resort.services.knowledge.ingest import KnowledgeChunk

logger = logging.getLogger(__name__)

router = APIRouter(tags=["knowledge"])


@router.post("/functions/v1/embed-content", response_model=None)
async def embed_content(
    body: EmbedContentRequest,
    ingest: KnowledgeIngestDep,
) -> dict[str, Any] | JSONResponse:
    chunk = KnowledgeChunk(content=body.content, source_url=body.source_url, metadata=body.metadata)
    try:
        row = await ingest.ingest(chunk)
    except Exception as e:
        logger.error("[KNOWLEDGE] Embedding failed for %s: %s", body.source_url, e)
        return JSONResponse(status_code=400, content={"error": mask_sensitive_data(e)})
    return {"success": True, "id": row.get("id")}
