"""Website chat assistant: generation, retrieval, lead capture."""

from resort.services.chat.assistant import (
    ChatAssistant,
    ChatConfigurationError,
    ChatReply,
    build_chat_assistant,
)

__all__ = ["ChatAssistant", "ChatConfigurationError", "ChatReply", "build_chat_assistant"]
