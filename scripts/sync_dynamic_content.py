#!/usr/bin/env python3
"""
Push the latest blogs, experiences and packages into the assistant's
knowledge base (documents table) so retrieval can link to new pages.

Requires SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and GEMINI_API_KEY.
"""

from __future__ import annotations

import asyncio
import logging

from resort.core.logging import setup_logging
from resort.services.infra.supabase_client import get_supabase_client
from resort.services.knowledge import KnowledgeIngestService, sync_dynamic_content
from resort.services.llm.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


async def _run() -> int:
    client = get_supabase_client()
    if client is None:
        logger.error("Supabase client not available (check SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
        return 1

    gemini = GeminiClient()
    if not gemini.is_configured:
        logger.error("GEMINI_API_KEY is not set")
        return 1

    try:
        report = await sync_dynamic_content(client, KnowledgeIngestService(gemini, client))
    finally:
        await gemini.close()

    logger.info("Done! Ingested: %d, Failed: %d", len(report.ingested), len(report.failed))
    return 1 if report.failed else 0


def main() -> None:
    setup_logging(level="INFO")
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
