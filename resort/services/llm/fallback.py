"""
Model Fallback Service.
=======================
Tries a fixed, ordered list of Gemini model/API-version strategies and
returns the first reply. Each strategy carries a circuit breaker so a model
that keeps failing is skipped for a while instead of adding latency to
every chat turn.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from resort.conf.config import settings
from resort.core.errors import GeminiError
from resort.core.logging import log_event
from resort.services.llm.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, don't try
    HALF_OPEN = "half_open"  # Testing if recovered


@dataclass
class CircuitBreaker:
    """Circuit breaker for a single model strategy."""
    name: str
    failure_threshold: int = 3
    recovery_timeout: float = 60.0  # seconds
    half_open_max_calls: int = 1

    state: CircuitState = field(default=CircuitState.CLOSED)
    failure_count: int = field(default=0)
    last_failure_time: float = field(default=0.0)
    half_open_calls: int = field(default=0)

    def record_success(self) -> None:
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self.half_open_calls = 0

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            logger.warning(
                "[CIRCUIT:%s] OPEN after %d failures",
                self.name,
                self.failure_count,
            )

    def can_execute(self) -> bool:
        """Check if circuit allows execution."""
        if self.state == CircuitState.CLOSED:
            return True

        if self.state == CircuitState.OPEN:
            if time.time() - self.last_failure_time >= self.recovery_timeout:
                self.state = CircuitState.HALF_OPEN
                self.half_open_calls = 1
                logger.info("[CIRCUIT:%s] Transitioning to HALF_OPEN", self.name)
                return True
            return False

        # HALF_OPEN: allow limited calls
        if self.half_open_calls < self.half_open_max_calls:
            self.half_open_calls += 1
            return True
        return False

    def reset(self) -> None:
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time = 0.0
        self.half_open_calls = 0


@dataclass
class ModelStrategy:
    """One (model, API version) pair in the fallback chain."""
    model: str
    version: str
    circuit: CircuitBreaker = field(init=False)

    def __post_init__(self):
        self.circuit = CircuitBreaker(self.label)

    @property
    def label(self) -> str:
        return f"{self.model}-{self.version}"


@dataclass
class Generation:
    text: str
    strategy: ModelStrategy

    @property
    def used_model(self) -> str:
        return self.strategy.label


class AllModelsFailedError(GeminiError):
    """Raised when every strategy in the chain failed."""

    def __init__(self, last_error: Exception | None):
        detail = str(last_error) if last_error else "no strategy configured"
        super().__init__(f"All models failed. Last error: {detail}")
        self.last_error = last_error


class ModelFallbackService:
    """Run generation against strategies in order until one succeeds."""

    def __init__(
        self,
        client: GeminiClient,
        strategies: Sequence[tuple[str, str]] | None = None,
    ):
        self.client = client
        pairs = strategies if strategies is not None else settings.model_strategies
        self.strategies: list[ModelStrategy] = [ModelStrategy(m, v) for m, v in pairs]

    def strategy_at(self, index: int) -> ModelStrategy:
        return self.strategies[min(index, len(self.strategies) - 1)]

    async def generate(
        self,
        messages: Sequence[Mapping[str, Any]],
        system_prompt: str,
    ) -> Generation:
        """Return the first successful generation.

        When every circuit is open the whole chain is tried anyway.

        Raises:
            AllModelsFailedError: If no strategy produced a reply.
        """
        last_error: Exception | None = None

        runnable = []
        for strategy in self.strategies:
            if strategy.circuit.can_execute():
                runnable.append(strategy)
            else:
                logger.info("[FALLBACK] Skipping %s (circuit open)", strategy.label)
        if not runnable:
            logger.warning("[FALLBACK] All circuits open, trying every strategy")
            runnable = list(self.strategies)

        for strategy in runnable:
            log_event(logger, event="chat_model_attempt", model=strategy.model, version=strategy.version)
            try:
                text = await self.client.generate(
                    strategy.model, strategy.version, messages, system_prompt
                )
            except GeminiError as e:
                strategy.circuit.record_failure()
                last_error = e
                log_event(
                    logger,
                    event="chat_model_failed",
                    level="warning",
                    model=strategy.label,
                    error=str(e)[:200],
                )
                continue

            strategy.circuit.record_success()
            log_event(logger, event="chat_model_succeeded", model=strategy.label)
            return Generation(text=text, strategy=strategy)

        log_event(logger, event="chat_all_models_failed", level="error")
        raise AllModelsFailedError(last_error)

    def get_health_status(self) -> dict[str, Any]:
        """Get circuit status of all strategies."""
        return {
            "strategies": [
                {
                    "model": s.label,
                    "circuit_state": s.circuit.state.value,
                    "failure_count": s.circuit.failure_count,
                }
                for s in self.strategies
            ],
            "any_available": any(s.circuit.state != CircuitState.OPEN for s in self.strategies),
        }

    def reset_circuits(self) -> list[str]:
        for strategy in self.strategies:
            strategy.circuit.reset()
        return [s.label for s in self.strategies]


# =============================================================================
# SINGLETON INSTANCE
# =============================================================================

_fallback_service: ModelFallbackService | None = None


def get_fallback_service() -> ModelFallbackService:
    """Get or create the fallback service singleton."""
    global _fallback_service
    if _fallback_service is None:
        _fallback_service = ModelFallbackService(GeminiClient())
    return _fallback_service
