"""Chat assistant router.

The website chat widget reads ``error`` from the body and never inspects the
status code, so every outcome of this endpoint is an HTTP 200.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from pydantic import ValidationError

from resort.core.errors import mask_sensitive_data
from resort.server.dependencies import get_chat_assistant
from resort.server.models.requests import ChatRequest
from resort.services.chat.assistant import ChatConfigurationError
from resort.services.llm.fallback import AllModelsFailedError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.post("/functions/v1/chat-assistant")
@router.post("/api/v1/chat")
async def chat_assistant(request: Request) -> dict[str, Any]:
    """Answer one guest turn: ``{response, lead, model}`` or ``{error}``."""
    try:
        assistant = get_chat_assistant()
        payload = ChatRequest.model_validate(await request.json())
        reply = await assistant.reply(
            payload.transcript(),
            session_id=payload.session_id,
            user_id=payload.user_id,
        )
    except ChatConfigurationError as e:
        logger.error("[CHAT] %s", e.message)
        return {"error": e.message}
    except AllModelsFailedError as e:
        return {"error": e.message}
    except ValidationError as e:
        return {"error": f"Server Error: {e.errors()[0].get('msg', 'invalid request')}"}
    except Exception as e:
        logger.exception("[CHAT] Unexpected error")
        return {"error": f"Server Error: {mask_sensitive_data(e)}"}

    return reply.to_dict()
