"""FastAPI middleware for CORS, rate limiting and request logging.

Rate limiting uses Redis when REDIS_URL is reachable so several API
instances share counters, with an in-memory fallback otherwise.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from resort.conf.config import settings


if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import FastAPI, Request, Response
    from starlette.types import ASGIApp


logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    requests_per_minute: int = 30
    requests_per_hour: int = 500
    enabled: bool = True

    # Paths excluded from rate limiting
    excluded_paths: list[str] = field(default_factory=lambda: ["/health", "/docs", "/openapi.json"])


@dataclass
class ClientState:
    """Track request state for a single client."""

    minute_requests: int = 0
    hour_requests: int = 0
    minute_start: float = 0.0
    hour_start: float = 0.0
    last_request: float = 0.0


def get_client_key(request: Request) -> str:
    """Extract client identifier from request."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def _is_exempt(config: RateLimitConfig, request: Request) -> bool:
    # CORS preflight must never be throttled
    return (
        not config.enabled
        or request.method == "OPTIONS"
        or request.url.path in config.excluded_paths
    )


class InMemoryRateLimiter:
    """Fixed-window counters per client, kept in process memory."""

    def __init__(self, config: RateLimitConfig):
        self.config = config
        self._clients: dict[str, ClientState] = defaultdict(ClientState)

    def _reset_windows(self, state: ClientState, now: float) -> None:
        if now - state.minute_start >= 60:
            state.minute_requests = 0
            state.minute_start = now

        if now - state.hour_start >= 3600:
            state.hour_requests = 0
            state.hour_start = now

    def check_rate_limit(self, request: Request) -> tuple[bool, str | None, int | None]:
        """Check if request is within rate limits.

        Returns:
            Tuple of (allowed, error_message, retry_after_seconds)
        """
        if _is_exempt(self.config, request):
            return True, None, None

        client_key = get_client_key(request)
        state = self._clients[client_key]
        now = time.time()

        if state.minute_start == 0:
            state.minute_start = now
            state.hour_start = now

        self._reset_windows(state, now)

        if state.minute_requests >= self.config.requests_per_minute:
            retry_after = int(60 - (now - state.minute_start)) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests/minute",
                client_key,
                state.minute_requests,
            )
            return False, "Rate limit exceeded. Please slow down.", retry_after

        if state.hour_requests >= self.config.requests_per_hour:
            retry_after = int(3600 - (now - state.hour_start)) + 1
            logger.warning(
                "Hourly rate limit exceeded for %s: %d requests/hour",
                client_key,
                state.hour_requests,
            )
            return False, "Hourly rate limit exceeded. Please try again later.", retry_after

        state.minute_requests += 1
        state.hour_requests += 1
        state.last_request = now

        return True, None, None

    def cleanup_old_clients(self, max_age_hours: int = 24) -> int:
        """Remove stale client entries to prevent memory leaks."""
        now = time.time()
        max_age_seconds = max_age_hours * 3600
        stale = [
            key for key, state in self._clients.items() if now - state.last_request > max_age_seconds
        ]
        for key in stale:
            del self._clients[key]

        if stale:
            logger.debug("Cleaned up %d stale rate limit entries", len(stale))
        return len(stale)


class RedisRateLimiter:
    """Sliding-window limiter backed by Redis sorted sets."""

    def __init__(self, config: RateLimitConfig, redis_url: str | None = None):
        self.config = config
        self._redis_client = None
        self.available = False
        self._init_redis(redis_url if redis_url is not None else settings.REDIS_URL)

    def _init_redis(self, redis_url: str) -> None:
        if not redis_url:
            logger.debug("No REDIS_URL configured, using in-memory fallback")
            return
        try:
            import redis

            self._redis_client = redis.from_url(redis_url, decode_responses=True)
            self._redis_client.ping()
            self.available = True
            logger.info("Using Redis for distributed rate limiting")
        except Exception as e:
            logger.warning("Redis not available for rate limiting, using in-memory fallback: %s", e)
            self._redis_client = None
            self.available = False

    def check_rate_limit(self, request: Request) -> tuple[bool, str | None, int | None]:
        if _is_exempt(self.config, request) or not self.available:
            return True, None, None
        return self._check_redis_rate_limit(get_client_key(request))

    def _check_redis_rate_limit(self, client_key: str) -> tuple[bool, str | None, int | None]:
        try:
            now = time.time()
            minute_key = f"rate_limit:minute:{client_key}"
            hour_key = f"rate_limit:hour:{client_key}"

            pipe = self._redis_client.pipeline()

            pipe.zremrangebyscore(minute_key, 0, now - 60)
            pipe.zcard(minute_key)
            pipe.zadd(minute_key, {str(now): now})
            pipe.expire(minute_key, 60)

            pipe.zremrangebyscore(hour_key, 0, now - 3600)
            pipe.zcard(hour_key)
            pipe.zadd(hour_key, {str(now): now})
            pipe.expire(hour_key, 3600)

            results = pipe.execute()
            minute_count = results[1]
            hour_count = results[5]

            if minute_count >= self.config.requests_per_minute:
                logger.warning(
                    "Rate limit exceeded (minute) for %s: %d/%d requests",
                    client_key,
                    minute_count,
                    self.config.requests_per_minute,
                )
                return False, "Rate limit exceeded. Please slow down.", 60

            if hour_count >= self.config.requests_per_hour:
                logger.warning(
                    "Rate limit exceeded (hour) for %s: %d/%d requests",
                    client_key,
                    hour_count,
                    self.config.requests_per_hour,
                )
                return False, "Hourly rate limit exceeded. Please try again later.", 3600

            return True, None, None

        except Exception as e:
            # Fail open
            logger.error("Redis rate limit check failed: %s", e)
            return True, None, None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies rate limiting to incoming requests.

    Uses Redis for distributed rate limiting with in-memory fallback.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: RateLimitConfig | None = None,
        redis_url: str | None = None,
    ):
        super().__init__(app)
        self.config = config or RateLimitConfig()
        self.redis_limiter = RedisRateLimiter(self.config, redis_url=redis_url)
        self.memory_limiter = InMemoryRateLimiter(self.config)
        self._last_cleanup = time.time()
        self._cleanup_interval = 3600

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.redis_limiter.available:
            allowed, error_message, retry_after = self.redis_limiter.check_rate_limit(request)
        else:
            now = time.time()
            if now - self._last_cleanup > self._cleanup_interval:
                self.memory_limiter.cleanup_old_clients()
                self._last_cleanup = now
            allowed, error_message, retry_after = self.memory_limiter.check_rate_limit(request)

        if not allowed:
            response = JSONResponse(
                status_code=429,
                content={"error": error_message, "retry_after": retry_after},
            )
            if retry_after:
                response.headers["Retry-After"] = str(retry_after)
            return response

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s %d %.2fms client=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            client_ip,
            extra={"status_code": response.status_code, "duration_ms": round(duration_ms, 2)},
        )
        return response


def setup_middleware(
    app: FastAPI, *, enable_rate_limit: bool = True, enable_logging: bool = True
) -> None:
    """Configure all middleware for the FastAPI application.

    Starlette runs the last added middleware first, so CORS goes on last
    and answers preflight requests before rate limiting sees them.
    """
    if enable_logging:
        app.add_middleware(RequestLoggingMiddleware)

    if enable_rate_limit:
        config = RateLimitConfig(
            requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
            requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
        )
        app.add_middleware(RateLimitMiddleware, config=config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
