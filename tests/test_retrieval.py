from unittest.mock import AsyncMock

import pytest

from resort.services.chat.retrieval import KnowledgeRetriever, RetrievedChunk, format_context


@pytest.mark.asyncio
async def test_search_embeds_query_and_calls_match_rpc(fake_supabase):
    gemini = AsyncMock()
    gemini.embed.return_value = [0.5, 0.25]
    fake_supabase.rpc_results["match_documents"] = [
        {"content": "Tiger sightings peak in April.", "source_url": "/blog/best-time", "similarity": 0.81},
        {"content": "", "source_url": "/empty", "similarity": 0.7},
    ]
    retriever = KnowledgeRetriever(
        gemini, fake_supabase, rpc_name="match_documents", match_threshold=0.5, match_count=3
    )

    chunks = await retriever.search("When can I see tigers?")

    gemini.embed.assert_awaited_once_with("When can I see tigers?")
    assert fake_supabase.rpc_calls == [
        (
            "match_documents",
            {"query_embedding": [0.5, 0.25], "match_threshold": 0.5, "match_count": 3},
        )
    ]
    assert [c.source_url for c in chunks] == ["/blog/best-time"]
    assert chunks[0].similarity == 0.81


@pytest.mark.asyncio
async def test_blank_query_returns_nothing(fake_supabase):
    gemini = AsyncMock()
    retriever = KnowledgeRetriever(gemini, fake_supabase)

    assert await retriever.search("   ") == []
    gemini.embed.assert_not_awaited()


def test_format_context():
    assert format_context([]) == ""

    text = format_context(
        [
            RetrievedChunk(content="Villas have private pools.", source_url="/packages/villa"),
            RetrievedChunk(content="Check-in is at 2pm."),
        ]
    )
    lines = text.splitlines()
    assert lines[0].startswith("Relevant resort knowledge")
    assert lines[1] == "- Villas have private pools. (source: /packages/villa)"
    assert lines[2] == "- Check-in is at 2pm."
