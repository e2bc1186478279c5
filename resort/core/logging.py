"""Structured logging configuration for the resort backend.

This module provides JSON-formatted logging suitable for production environments
and log aggregation systems, plus a coloured formatter for local development.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from resort.core.errors import mask_sensitive_data


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def __init__(
        self,
        *,
        include_timestamp: bool = True,
        include_path: bool = False,
        extra_fields: dict[str, Any] | None = None,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_path = include_path
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.now(UTC).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = mask_sensitive_data(record.getMessage())

        if self.include_path:
            log_data["path"] = f"{record.pathname}:{record.lineno}"
            log_data["function"] = record.funcName

        if record.exc_info:
            log_data["exception"] = mask_sensitive_data(self.formatException(record.exc_info))

        # Extra fields from record
        for key in ["event", "session_id", "user_id", "request_id", "model", "duration_ms", "status_code"]:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        log_data.update(self.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class PrettyFormatter(logging.Formatter):
    """Human-readable formatter for development/debugging."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = self.RESET

        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        level = f"{color}{record.levelname:8}{reset}"
        logger_name = record.name[:24].ljust(24)
        message = mask_sensitive_data(record.getMessage())

        output = f"{timestamp} | {level} | {logger_name} | {message}"

        if record.exc_info:
            output += f"\n{mask_sensitive_data(self.formatException(record.exc_info))}"

        return output


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    include_path: bool = False,
    service_name: str = "jungle-heritage-api",
) -> None:
    """Configure logging for the application.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True) or pretty format (False)
        include_path: Include source file path in logs
        service_name: Service name to include in JSON logs
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter: logging.Formatter = JSONFormatter(
            include_path=include_path,
            extra_fields={"service": service_name},
        )
    else:
        formatter = PrettyFormatter()

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
    logging.getLogger("supabase").setLevel(logging.WARNING)
    logging.getLogger("postgrest").setLevel(logging.WARNING)


LOG_EVENT_TITLES: dict[str, str] = {
    "chat_request_received": "💬 Chat: request received",
    "chat_model_attempt": "🛰️ Chat: trying model",
    "chat_model_failed": "⚠️ Chat: model failed",
    "chat_model_succeeded": "✅ Chat: model answered",
    "chat_all_models_failed": "❌ Chat: all models failed",
    "chat_retrieval_done": "📚 Chat: knowledge retrieved",
    "chat_lead_captured": "🧾 Chat: lead captured",
    "chat_request_done": "🏁 Chat: done",
    "payment_order_created": "💳 Payments: order created",
    "payment_order_failed": "⛔ Payments: order failed",
    "knowledge_chunk_ingested": "📥 Knowledge: chunk ingested",
    "staff_user_created": "👤 Admin: staff user created",
}


def log_event(
    logger: logging.Logger,
    *,
    event: str,
    level: str | None = None,
    **kwargs: Any,
) -> None:
    """Structured event logging helper.

    The message is the event title, followed by ``key=value`` pairs so the
    pretty formatter stays readable. The same fields ride along in ``extra``.
    """
    lvl = (level or "info").lower()
    log_fn = getattr(logger, lvl, logger.info)

    title = LOG_EVENT_TITLES.get(event, event)
    details = " ".join(f"{k}={v}" for k, v in kwargs.items() if v is not None)
    message = f"{title} | {details}" if details else title

    log_fn(message, extra={"event": event, **kwargs})


def safe_preview(value: Any, max_len: int = 120) -> str:
    """Return a safe string preview of value."""
    if value is None:
        return ""
    text = str(value)
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
