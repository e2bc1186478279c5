import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import SecretStr

from resort.core.errors import GeminiError
from resort.services.chat.assistant import ChatAssistant, ChatConfigurationError, build_chat_assistant
from resort.services.chat.retrieval import RetrievedChunk
from resort.services.llm.fallback import AllModelsFailedError, Generation, ModelStrategy
from resort.services.storage.chat_store import ChatSessionStore, LeadStore


MESSAGES = [
    {"role": "assistant", "content": "Welcome to Jungle Heritage Resort"},
    {"role": "user", "content": "Book a villa for 2, I'm Asha asha@example.com"},
]


def _fallback(text="Lovely, Asha! Which dates?", model=("gemini-1.5-flash", "v1beta")):
    fallback = MagicMock()
    fallback.generate = AsyncMock(return_value=Generation(text=text, strategy=ModelStrategy(*model)))
    return fallback


def _extractor(lead=None):
    extractor = MagicMock()
    extractor.extract = AsyncMock(return_value=lead or {})
    return extractor


@pytest.mark.asyncio
async def test_reply_returns_text_model_and_lead():
    lead = {"name": "Asha", "email": "asha@example.com", "type": "booking"}
    assistant = ChatAssistant(_fallback(), _extractor(lead), system_prompt="SYS")

    reply = await assistant.reply(MESSAGES)

    assert reply.to_dict() == {
        "response": "Lovely, Asha! Which dates?",
        "lead": lead,
        "model": "gemini-1.5-flash-v1beta",
    }
    assistant.extractor.extract.assert_awaited_once_with(MESSAGES[-1]["content"])


@pytest.mark.asyncio
async def test_reply_persists_transcript_and_lead(fake_supabase):
    lead = {"name": "Asha", "email": "asha@example.com", "type": "booking"}
    assistant = ChatAssistant(
        _fallback(),
        _extractor(lead),
        session_store=ChatSessionStore(fake_supabase, table="chat_sessions"),
        lead_store=LeadStore(fake_supabase, table="chat_leads"),
        system_prompt="SYS",
    )

    await assistant.reply(MESSAGES, session_id="sess-1", user_id="user-9")

    session = fake_supabase.tables["chat_sessions"][0]
    assert session["id"] == "sess-1"
    assert session["user_id"] == "user-9"
    assert session["messages"][-1] == {"role": "assistant", "content": "Lovely, Asha! Which dates?"}
    assert len(session["messages"]) == 3
    assert session["metadata"] == {"used_model": "gemini-1.5-flash-v1beta"}
    assert session["updated_at"]

    saved_lead = fake_supabase.tables["chat_leads"][0]
    assert saved_lead["status"] == "new"
    assert saved_lead["inquiry_type"] == "booking"
    assert saved_lead["email"] == "asha@example.com"


@pytest.mark.asyncio
async def test_empty_lead_and_missing_session_skip_persistence(fake_supabase):
    assistant = ChatAssistant(
        _fallback(),
        _extractor({"name": None, "email": None}),
        session_store=ChatSessionStore(fake_supabase),
        lead_store=LeadStore(fake_supabase),
        system_prompt="SYS",
    )

    await assistant.reply(MESSAGES)

    assert fake_supabase.calls == []


@pytest.mark.asyncio
async def test_database_errors_do_not_fail_the_reply(fake_supabase):
    fake_supabase.failing_tables = {"chat_sessions", "chat_leads"}
    assistant = ChatAssistant(
        _fallback(),
        _extractor({"phone": "98765"}),
        session_store=ChatSessionStore(fake_supabase, table="chat_sessions"),
        lead_store=LeadStore(fake_supabase, table="chat_leads"),
        system_prompt="SYS",
    )

    reply = await assistant.reply(MESSAGES, session_id="sess-1")

    assert reply.response == "Lovely, Asha! Which dates?"
    assert len(fake_supabase.calls) == 2


@pytest.mark.asyncio
async def test_persistence_runs_off_the_event_loop_thread():
    threads = {}
    session_store = MagicMock()
    session_store.save.side_effect = lambda *a, **kw: threads.setdefault("session", threading.get_ident())
    lead_store = MagicMock()
    lead_store.create.side_effect = lambda row: threads.setdefault("lead", threading.get_ident())
    assistant = ChatAssistant(
        _fallback(),
        _extractor({"phone": "98765"}),
        session_store=session_store,
        lead_store=lead_store,
        system_prompt="SYS",
    )

    await assistant.reply(MESSAGES, session_id="sess-1")

    loop_thread = threading.get_ident()
    assert threads["session"] != loop_thread
    assert threads["lead"] != loop_thread


@pytest.mark.asyncio
async def test_retrieved_knowledge_is_appended_to_system_prompt():
    retriever = MagicMock()
    retriever.search = AsyncMock(
        return_value=[RetrievedChunk(content="Safaris run at 6am.", source_url="/experiences/safari")]
    )
    fallback = _fallback()
    assistant = ChatAssistant(fallback, _extractor(), retriever=retriever, system_prompt="SYS")

    await assistant.reply(MESSAGES)

    retriever.search.assert_awaited_once_with(MESSAGES[-1]["content"])
    system_prompt = fallback.generate.await_args.args[1]
    assert system_prompt.startswith("SYS\n\n")
    assert "- Safaris run at 6am. (source: /experiences/safari)" in system_prompt


@pytest.mark.asyncio
async def test_retrieval_failure_is_ignored():
    retriever = MagicMock()
    retriever.search = AsyncMock(side_effect=GeminiError("embed failed"))
    fallback = _fallback()
    assistant = ChatAssistant(fallback, _extractor(), retriever=retriever, system_prompt="SYS")

    await assistant.reply(MESSAGES)

    assert fallback.generate.await_args.args[1] == "SYS"


@pytest.mark.asyncio
async def test_all_models_failed_propagates():
    fallback = MagicMock()
    fallback.generate = AsyncMock(side_effect=AllModelsFailedError(GeminiError("quota")))
    assistant = ChatAssistant(fallback, _extractor(), system_prompt="SYS")

    with pytest.raises(AllModelsFailedError, match="All models failed. Last error: quota"):
        await assistant.reply(MESSAGES)


def test_default_system_prompt_describes_resort():
    assistant = ChatAssistant(_fallback(), _extractor())

    assert assistant.system_prompt.startswith(
        "You are the AI Front Desk Assistant for Jungle Heritage Resort."
    )
    assert "Location: Dudhwa National Park" in assistant.system_prompt
    assert "under 3 sentences" in assistant.system_prompt


def test_build_requires_gemini_key():
    with patch("resort.services.chat.assistant.settings") as mock_settings:
        mock_settings.GEMINI_API_KEY = SecretStr("")
        with pytest.raises(ChatConfigurationError, match="GEMINI_API_KEY is missing"):
            build_chat_assistant()


def test_build_without_supabase_runs_without_stores(monkeypatch: pytest.MonkeyPatch):
    from resort.conf.config import settings

    monkeypatch.setattr(settings, "GEMINI_API_KEY", SecretStr("g-key"))
    with patch("resort.services.infra.supabase_client.get_supabase_client", return_value=None):
        assistant = build_chat_assistant()

    assert assistant.session_store is None
    assert assistant.lead_store is None
    assert assistant.extractor.primary == ("gemini-1.5-flash", "v1beta")
    assert assistant.extractor.fallback == ("gemini-pro", "v1beta")
