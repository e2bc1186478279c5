from unittest.mock import AsyncMock

import pytest

from resort.core.errors import GeminiError
from resort.services.chat.lead_extraction import (
    LeadExtractor,
    clean_json_text,
    has_lead_details,
    parse_lead_json,
    to_lead_row,
)


def test_clean_json_text_strips_markdown_fences():
    assert clean_json_text('```json\n{"name": "Asha"}\n```') == '{"name": "Asha"}'
    assert clean_json_text('```{"a": 1}```') == '{"a": 1}'


def test_parse_lead_json_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_lead_json("[1, 2]")
    with pytest.raises(ValueError):
        parse_lead_json("Sorry, I cannot help")


def test_has_lead_details():
    assert not has_lead_details({})
    assert not has_lead_details({"name": None, "email": "", "type": None})
    assert has_lead_details({"phone": "+91 98765 43210"})


def test_to_lead_row_maps_columns_and_defaults():
    row = to_lead_row(
        {"name": "Asha", "email": "asha@example.com", "dates": "12-14 Dec", "guests": 4, "type": "Safari"}
    )

    assert row == {
        "name": "Asha",
        "email": "asha@example.com",
        "phone": None,
        "travel_dates": "12-14 Dec",
        "guests": "4",
        "status": "new",
        "inquiry_type": "safari",
    }


def test_to_lead_row_unknown_type_becomes_general():
    assert to_lead_row({"name": "Ravi", "type": "spa"})["inquiry_type"] == "general"
    assert to_lead_row({"name": "Ravi"})["inquiry_type"] == "general"


class TestLeadExtractor:
    @pytest.mark.asyncio
    async def test_primary_strategy_used_with_extractor_prompt(self):
        client = AsyncMock()
        client.generate.return_value = '```json\n{"name": "Asha", "guests": 2}\n```'
        extractor = LeadExtractor(client, ("gemini-1.5-flash", "v1beta"), ("gemini-pro", "v1beta"))

        lead = await extractor.extract("I'm Asha, 2 guests")

        assert lead == {"name": "Asha", "guests": 2}
        model, version, messages, system = client.generate.await_args.args
        assert (model, version) == ("gemini-1.5-flash", "v1beta")
        assert system == "You are a JSON extractor."
        assert messages[0]["content"].startswith('Analyze: "I\'m Asha, 2 guests". Return valid JSON only')
        assert messages[0]["content"].endswith("Return {} if empty.")

    @pytest.mark.asyncio
    async def test_falls_back_when_primary_fails(self):
        client = AsyncMock()
        client.generate.side_effect = [GeminiError("404"), '{"email": "a@b.co"}']
        extractor = LeadExtractor(client, ("gemini-1.5-flash", "v1beta"), ("gemini-pro", "v1beta"))

        lead = await extractor.extract("a@b.co")

        assert lead == {"email": "a@b.co"}
        assert client.generate.await_args_list[1].args[:2] == ("gemini-pro", "v1beta")

    @pytest.mark.asyncio
    async def test_both_failing_yields_empty_lead(self):
        client = AsyncMock()
        client.generate.side_effect = ["not json", GeminiError("boom")]
        extractor = LeadExtractor(client, ("a", "v1"), ("b", "v1"))

        assert await extractor.extract("hello") == {}

    @pytest.mark.asyncio
    async def test_blank_message_skips_model(self):
        client = AsyncMock()
        extractor = LeadExtractor(client, ("a", "v1"), ("b", "v1"))

        assert await extractor.extract("") == {}
        client.generate.assert_not_awaited()
