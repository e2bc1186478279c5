"""Health check router."""

from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import APIRouter

from resort import __version__
from resort.conf.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _get_build_info() -> dict[str, str]:
    sha = (
        os.environ.get("GIT_SHA")
        or os.environ.get("COMMIT_SHA")
        or os.environ.get("RAILWAY_GIT_COMMIT_SHA")
        or os.environ.get("RENDER_GIT_COMMIT")
        or os.environ.get("GITHUB_SHA")
        or "unknown"
    )
    return {"git_sha": sha, "version": __version__}


@router.get("/health")
def health() -> dict[str, Any]:
    """Health check endpoint with dependency status."""
    from resort.services.infra.supabase_client import get_supabase_client
    from resort.services.llm.fallback import get_fallback_service

    status = "ok"
    checks: dict[str, Any] = {}

    try:
        client = get_supabase_client()
        if client:
            client.table(settings.SUPABASE_LEADS_TABLE).select("id").limit(1).execute()
            checks["supabase"] = "ok"
        else:
            checks["supabase"] = "disabled"
    except Exception as e:
        checks["supabase"] = f"error: {type(e).__name__}"
        status = "degraded"
        logger.warning("Health check: Supabase unavailable: %s", e)

    if settings.GEMINI_API_KEY.get_secret_value():
        llm = get_fallback_service().get_health_status()
        checks["llm"] = llm
        if not llm["any_available"]:
            status = "degraded"
    else:
        checks["llm"] = "disabled"

    return {"status": status, "checks": checks, "build": _get_build_info()}
