"""Turn the latest blogs, experiences and packages into knowledge chunks.

Run after publishing content so the assistant can point guests at new pages.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from supabase import Client

from resort.services.knowledge.ingest import KnowledgeChunk, KnowledgeIngestService

logger = logging.getLogger(__name__)

LATEST_LIMIT = 5


def blog_chunk(blog: dict[str, Any]) -> KnowledgeChunk:
    url = f"/blog/{blog['slug']}"
    return KnowledgeChunk(
        content=f'Latest Blog: "{blog["title"]}". {blog.get("excerpt") or ""}. Read full story here: {url}',
        source_url=url,
        metadata={"category": "blog", "type": "latest", "title": blog["title"]},
    )


def experience_chunk(experience: dict[str, Any]) -> KnowledgeChunk:
    url = f"/experiences/{experience['slug']}"
    return KnowledgeChunk(
        content=(
            f'Experience: "{experience["name"]}". {experience.get("description") or ""}. '
            f"View all details: {url}"
        ),
        source_url=url,
        metadata={"category": "experience", "type": "latest", "title": experience["name"]},
    )


def package_chunk(package: dict[str, Any]) -> KnowledgeChunk:
    url = f"/packages/{package['slug']}"
    return KnowledgeChunk(
        content=(
            f'Special Package: "{package["name"]}". {package.get("short_description") or ""}. '
            f"View and book package: {url}"
        ),
        source_url=url,
        metadata={"category": "package", "type": "latest", "title": package["name"]},
    )


def collect_dynamic_chunks(client: Client, limit: int = LATEST_LIMIT) -> list[KnowledgeChunk]:
    blogs = (
        client.table("blogs")
        .select("title, slug, excerpt")
        .eq("is_published", True)
        .order("published_at", desc=True)
        .limit(limit)
        .execute()
        .data
        or []
    )
    experiences = (
        client.table("experiences")
        .select("name, slug, description")
        .eq("is_active", True)
        .limit(limit)
        .execute()
        .data
        or []
    )
    packages = (
        client.table("packages")
        .select("name, slug, short_description")
        .eq("is_active", True)
        .limit(limit)
        .execute()
        .data
        or []
    )

    chunks = [blog_chunk(b) for b in blogs]
    chunks += [experience_chunk(e) for e in experiences]
    chunks += [package_chunk(p) for p in packages]
    return chunks


@dataclass
class SyncReport:
    ingested: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


async def sync_dynamic_content(client: Client, ingest: KnowledgeIngestService) -> SyncReport:
    """Ingest every dynamic chunk; one failure does not stop the run."""
    logger.info("Fetching dynamic content from database...")
    chunks = await asyncio.to_thread(collect_dynamic_chunks, client)
    logger.info("Prepared %d dynamic content chunks.", len(chunks))

    report = SyncReport()
    for chunk in chunks:
        source = chunk.source_url or "?"
        try:
            await ingest.ingest(chunk)
        except Exception as e:
            logger.error("Ingest failed for %s: %s", source, e)
            report.failed[source] = str(e)
            continue
        report.ingested.append(source)
    return report
