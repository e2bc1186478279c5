"""
Prompt Loader - loads the assistant persona and prompt templates.
================================================================
Reads data/prompts/assistant.yaml and renders the text prompts used by
the chat assistant.

Usage:
    from resort.core.prompt_loader import get_system_prompt_text

    text = get_system_prompt_text()
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent.parent / "data" / "prompts"
ASSISTANT_PROMPT = PROMPTS_DIR / "assistant.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load YAML file safely."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Prompt file not found: %s", path)
        return {}
    except yaml.YAMLError as e:
        logger.error("Failed to parse YAML %s: %s", path, e)
        return {}


@lru_cache(maxsize=4)
def load_prompt(path: Path = ASSISTANT_PROMPT) -> dict[str, Any]:
    """Load (and cache) the prompt configuration."""
    config = load_yaml_file(path)
    if not config:
        raise RuntimeError(f"Assistant prompt missing or empty: {path}")
    return config


def get_system_prompt_text(config: dict[str, Any] | None = None) -> str:
    """Render the resort persona as a system prompt."""
    config = config or load_prompt()
    resort = config.get("resort", {})
    assistant = config.get("assistant", {})

    lines = [
        f"You are the {assistant.get('role', 'Assistant')} for {resort.get('name', 'the resort')}.",
        f"Tone: {assistant.get('tone', '')}",
        f"Goal: {assistant.get('goal', '')}",
        f"Resort Info: Location: {resort.get('location', '')}. Offerings: {resort.get('offerings', '')}.",
    ]
    lines.extend(assistant.get("rules", []))
    return "\n".join(lines)


def get_lead_extraction_prompt(message: str, config: dict[str, Any] | None = None) -> tuple[str, str]:
    """Return (system prompt, user prompt) for lead extraction."""
    config = config or load_prompt()
    section = config.get("lead_extraction", {})
    # str.replace, not format: the template contains literal JSON braces
    template = section.get("template", 'Analyze: "{message}". Return valid JSON only.')
    return section.get("system", "You are a JSON extractor."), template.replace("{message}", message)


def get_retrieval_header(config: dict[str, Any] | None = None) -> str:
    config = config or load_prompt()
    return config.get("retrieval", {}).get("header", "Relevant resort knowledge:")

