"""ASGI app for the resort backend.

Thin orchestrator: lifecycle, error handlers, middleware and routers.
Endpoint logic lives in resort/server/routers/.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from resort import __version__
from resort.conf.config import settings, validate_required_settings
from resort.core.logging import setup_logging
from resort.server.exceptions import APIError
from resort.server.middleware import setup_middleware
from resort.server.routers import (
    admin_router,
    chat_router,
    health_router,
    knowledge_router,
    payments_router,
)


logger = logging.getLogger(__name__)


def _init_sentry():
    """Initialize Sentry SDK if configured."""
    if not settings.SENTRY_DSN:
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[FastApiIntegration()],
            send_default_pii=False,
        )
        logger.info("Sentry initialized: env=%s", settings.ENVIRONMENT)
    except ImportError:
        logger.warning("sentry-sdk not installed, skipping Sentry init")
    except Exception as e:
        logger.error("Failed to initialize Sentry: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    try:
        validate_required_settings()
    except RuntimeError as e:
        logger.critical("Configuration validation failed: %s", e)
        raise

    _init_sentry()

    setup_logging(
        level=settings.LOG_LEVEL,
        json_format=settings.is_production,
        service_name="jungle-heritage-api",
    )

    logger.info("Starting Jungle Heritage API (env=%s)", settings.ENVIRONMENT)

    yield

    logger.info("Shutting down Jungle Heritage API")

    from resort.services.llm.fallback import get_fallback_service

    if settings.GEMINI_API_KEY.get_secret_value():
        try:
            await get_fallback_service().client.close()
        except Exception as e:
            logger.warning("Failed to close Gemini client: %s", e)


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Jungle Heritage API",
    description="Chat assistant, payments and admin API for Jungle Heritage Resort",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail or exc.message,
            "error": exc.message,
        },
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid request")
    return f"{field}: {message}" if field else message


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bad input is a 400 with the first message in ``error``."""
    message = _first_validation_message(exc)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"detail": message, "error": message})


setup_middleware(app, enable_rate_limit=True, enable_logging=True)

# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(chat_router)
app.include_router(payments_router)
app.include_router(knowledge_router)
app.include_router(admin_router)
