"""Configuration for the resort backend.

Reads environment variables for Supabase, Gemini and runtime tuning.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_MODEL_STRATEGIES = (
    "gemini-1.5-flash@v1beta,"
    "gemini-1.5-pro@v1beta,"
    "gemini-pro@v1beta,"
    "gemini-pro@v1"
)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment."""

    ENVIRONMENT: str = Field(
        default="development", description="Deployment environment (development, staging, production)."
    )
    CORS_ALLOW_ORIGINS: str = Field(
        default="*", description="Comma-separated list of origins allowed by CORS."
    )

    # =========================================================================
    # SUPABASE
    # =========================================================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL.")
    SUPABASE_SERVICE_ROLE_KEY: SecretStr = Field(
        default=SecretStr(""), description="Service role key (bypasses RLS)."
    )
    SUPABASE_ANON_KEY: SecretStr = Field(
        default=SecretStr(""), description="Anon key used for user-scoped clients."
    )
    SUPABASE_SESSIONS_TABLE: str = Field(
        default="chat_sessions", description="Table storing chat transcripts per session."
    )
    SUPABASE_LEADS_TABLE: str = Field(
        default="chat_leads", description="Table storing leads captured by the assistant."
    )
    SUPABASE_DOCUMENTS_TABLE: str = Field(
        default="documents", description="Table storing embedded knowledge chunks."
    )
    SUPABASE_MATCH_RPC: str = Field(
        default="match_documents", description="RPC performing vector similarity search."
    )

    # =========================================================================
    # GEMINI
    # =========================================================================
    GEMINI_API_KEY: SecretStr = Field(
        default=SecretStr(""), description="API key for the Gemini generative language API."
    )
    GEMINI_API_BASE: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Base URL of the Gemini REST API.",
    )
    GEMINI_MODEL_STRATEGIES: str = Field(
        default=DEFAULT_MODEL_STRATEGIES,
        description="Comma-separated 'model@version' pairs tried in order for chat replies.",
    )
    GEMINI_MAX_OUTPUT_TOKENS: int = Field(
        default=500, gt=0, description="maxOutputTokens sent with each generation request."
    )
    GEMINI_TIMEOUT_SECONDS: float = Field(
        default=30.0, gt=0, description="Timeout for a single Gemini HTTP call."
    )
    GEMINI_EMBEDDING_MODEL: str = Field(
        default="text-embedding-004", description="Embedding model used for retrieval."
    )
    GEMINI_EMBEDDING_VERSION: str = Field(
        default="v1beta", description="API version used for embedding calls."
    )
    LEAD_EXTRACTION_STRATEGY: str = Field(
        default="gemini-1.5-flash@v1beta",
        description="Strategy tried first for lead extraction.",
    )

    # =========================================================================
    # RETRIEVAL
    # =========================================================================
    RAG_ENABLED: bool = Field(
        default=False, description="Augment the system prompt with vector-search matches."
    )
    RAG_MATCH_THRESHOLD: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Minimum similarity for a matched chunk."
    )
    RAG_MATCH_COUNT: int = Field(
        default=3, gt=0, description="Maximum number of chunks added to the prompt."
    )

    # =========================================================================
    # PAYMENTS
    # =========================================================================
    RAZORPAY_API_BASE: str = Field(
        default="https://api.razorpay.com/v1", description="Base URL of the Razorpay REST API."
    )

    # =========================================================================
    # RATE LIMITING / MONITORING
    # =========================================================================
    REDIS_URL: str = Field(
        default="", description="Redis URL for distributed rate limiting. Empty = in-memory."
    )
    RATE_LIMIT_PER_MINUTE: int = Field(default=30, gt=0)
    RATE_LIMIT_PER_HOUR: int = Field(default=500, gt=0)

    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking. Leave empty to disable.",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        description="Sentry traces sample rate (0.0-1.0).",
    )
    LOG_LEVEL: str = Field(default="INFO")

    @model_validator(mode="after")
    def _validate_rate_limits(self) -> "Settings":
        if self.RATE_LIMIT_PER_MINUTE > self.RATE_LIMIT_PER_HOUR:
            raise ValueError("RATE_LIMIT_PER_MINUTE must be <= RATE_LIMIT_PER_HOUR")
        return self

    @model_validator(mode="after")
    def _validate_strategies(self) -> "Settings":
        if not parse_strategies(self.GEMINI_MODEL_STRATEGIES):
            raise ValueError("GEMINI_MODEL_STRATEGIES must name at least one model")
        if not parse_strategies(self.LEAD_EXTRACTION_STRATEGY):
            raise ValueError("LEAD_EXTRACTION_STRATEGY must name a model")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ("production", "prod", "staging")

    @property
    def supabase_enabled(self) -> bool:
        """Check if the service-role Supabase client can be built."""
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY.get_secret_value())

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]

    @property
    def model_strategies(self) -> list[tuple[str, str]]:
        """Return parsed (model, version) pairs in fallback order."""
        return parse_strategies(self.GEMINI_MODEL_STRATEGIES)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def parse_strategies(raw: str) -> list[tuple[str, str]]:
    """Parse 'model@version' pairs. A bare model name defaults to v1beta."""
    pairs: list[tuple[str, str]] = []
    for segment in raw.split(","):
        segment = segment.strip()
        if not segment:
            continue
        model, _, version = segment.partition("@")
        if not model.strip():
            continue
        pairs.append((model.strip(), version.strip() or "v1beta"))
    return pairs


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[arg-type]


def validate_required_settings(settings_instance: Settings | None = None) -> None:
    """Validate that required environment variables are set.

    Raises RuntimeError in production if critical settings are missing.
    Outside production, missing values only produce warnings so the chat
    assistant can report its configuration error to the widget.
    """
    if settings_instance is None:
        settings_instance = get_settings()

    missing: list[str] = []
    if not settings_instance.GEMINI_API_KEY.get_secret_value():
        missing.append("GEMINI_API_KEY")
    if not settings_instance.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings_instance.SUPABASE_SERVICE_ROLE_KEY.get_secret_value():
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    if not settings_instance.SUPABASE_ANON_KEY.get_secret_value():
        logger.warning("Configuration warning: SUPABASE_ANON_KEY not set (admin endpoints disabled)")

    if not missing:
        return

    if settings_instance.is_production:
        error_msg = "Critical configuration errors:\n" + "\n".join(
            f"  - {name} is required in production" for name in missing
        )
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for name in missing:
        logger.warning("Configuration warning: %s not set", name)


settings = get_settings()
