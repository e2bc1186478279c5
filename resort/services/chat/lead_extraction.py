"""Lead extraction from the latest chat message.

The assistant asks Gemini to pull contact and trip details out of the guest's
message as JSON. Replies frequently arrive wrapped in markdown fences, which
are stripped before parsing.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from resort.conf.payment_config import INQUIRY_TYPES
from resort.core.errors import GeminiError
from resort.core.prompt_loader import get_lead_extraction_prompt
from resort.services.llm.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

LEAD_FIELDS = ("name", "email", "phone", "dates", "guests", "type")


def clean_json_text(text: str) -> str:
    """Remove markdown code fences around a JSON reply."""
    return _FENCE_RE.sub("", text).strip()


def parse_lead_json(text: str) -> dict[str, Any]:
    """Parse an extraction reply into a dict.

    Raises:
        ValueError: If the reply is not a JSON object.
    """
    data = json.loads(clean_json_text(text))
    if not isinstance(data, dict):
        raise ValueError(f"Lead extraction returned {type(data).__name__}, expected object")
    return data


def has_lead_details(lead: Mapping[str, Any]) -> bool:
    """True when any extracted value is truthy."""
    return any(bool(v) for v in lead.values())


def to_lead_row(lead: Mapping[str, Any]) -> dict[str, Any]:
    """Map extracted fields onto chat_leads columns."""
    inquiry_type = str(lead.get("type") or "general").lower()
    if inquiry_type not in INQUIRY_TYPES:
        inquiry_type = "general"

    def _text(value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    return {
        "name": _text(lead.get("name")),
        "email": _text(lead.get("email")),
        "phone": _text(lead.get("phone")),
        "travel_dates": _text(lead.get("dates")),
        "guests": _text(lead.get("guests")),
        "status": "new",
        "inquiry_type": inquiry_type,
    }


class LeadExtractor:
    """Extract lead details with a primary strategy and one fallback."""

    def __init__(
        self,
        client: GeminiClient,
        primary: tuple[str, str],
        fallback: tuple[str, str],
    ):
        self.client = client
        self.primary = primary
        self.fallback = fallback

    async def _extract_with(self, strategy: tuple[str, str], system: str, prompt: str) -> dict[str, Any]:
        model, version = strategy
        text = await self.client.generate(
            model, version, [{"role": "user", "content": prompt}], system
        )
        return parse_lead_json(text)

    async def extract(self, message: str | None) -> dict[str, Any]:
        """Return extracted lead data, or ``{}`` when nothing usable came back."""
        if not message:
            return {}

        system, prompt = get_lead_extraction_prompt(message)
        try:
            try:
                return await self._extract_with(self.primary, system, prompt)
            except (GeminiError, ValueError) as e:
                logger.debug("[LEADS] Primary extraction failed (%s), using fallback", e)
                return await self._extract_with(self.fallback, system, prompt)
        except (GeminiError, ValueError) as e:
            logger.warning("[LEADS] Extraction ignored: %s", e)
            return {}
