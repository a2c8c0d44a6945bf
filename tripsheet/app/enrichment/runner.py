"""Async batch runner for enrichment calls with timeouts and retries.

Each chunk gets:
- A hard timeout per attempt
- Bounded attempts with linear backoff (backoff_seconds * attempt)
- Metrics and structured logging per attempt
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tripsheet.app.config import Settings
from tripsheet.app.enrichment.clients import (
    EnrichmentCapabilityError,
    EnrichmentClient,
    EnrichmentUnavailableError,
)
from tripsheet.app.enrichment.targets import EnrichmentRequest
from tripsheet.app.models.itinerary import Enrichment


class EnrichmentBatchFailedError(Exception):
    """All attempts for one chunk failed."""

    pass


@dataclass(frozen=True)
class BatchContext:
    """Identifies one chunk within an enrichment pass."""

    batch_index: int
    batch_count: int
    size: int


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt limits for one chunk."""

    max_attempts: int = 3
    backoff_seconds: float = 1.0
    timeout_seconds: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.enrichment_max_attempts,
            backoff_seconds=settings.enrichment_backoff_seconds,
            timeout_seconds=settings.enrichment_timeout_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        """Sleep before the next attempt, after ``attempt`` (1-based) failed."""
        return self.backoff_seconds * attempt


# Metrics interface (to be implemented by actual metrics system)
class EnrichmentMetrics:
    """Interface for enrichment metrics."""

    def record_latency(self, outcome: str, latency_ms: float) -> None:
        """Record batch call latency."""
        pass

    def inc_error(self, reason: str) -> None:
        """Increment error counter."""
        pass

    def inc_items(self, result: str, count: int = 1) -> None:
        """Count items written back, by result."""
        pass


# Logging interface
class EnrichmentLogger:
    """Interface for structured logging."""

    def log_attempt(
        self,
        ctx: BatchContext,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log one batch attempt."""
        pass


class BatchRunner:
    """Runs one chunk through the enrichment client with retries."""

    def __init__(
        self,
        client: EnrichmentClient,
        policy: RetryPolicy | None = None,
        metrics: EnrichmentMetrics | None = None,
        logger: EnrichmentLogger | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize runner.

        Args:
            client: Enrichment provider
            policy: Attempt limits (optional, defaults to 3 attempts)
            metrics: Metrics recorder (optional, defaults to no-op)
            logger: Structured logger (optional, defaults to no-op)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
        """
        self._client = client
        self._policy = policy or RetryPolicy()
        self._metrics = metrics or EnrichmentMetrics()
        self._logger = logger or EnrichmentLogger()
        self._sleep = sleep_fn or asyncio.sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(self, ctx: BatchContext, requests: list[EnrichmentRequest]) -> list[Enrichment]:
        """Enrich one chunk.

        Args:
            ctx: Chunk position within the pass
            requests: Ordered requests for this chunk

        Returns:
            One record per request, same order

        Raises:
            EnrichmentBatchFailedError: Every attempt failed or timed out, or the
                provider is not configured (one attempt only)
        """
        last_error: Exception | None = None
        attempt = 0

        for attempt in range(1, self._policy.max_attempts + 1):
            attempt_start = time.monotonic()

            try:
                results = await asyncio.wait_for(
                    self._client.enrich(requests), timeout=self._policy.timeout_seconds
                )
                if len(results) != len(requests):
                    raise EnrichmentCapabilityError(
                        f"Expected {len(requests)} records, got {len(results)}"
                    )

                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                self._metrics.record_latency("success", elapsed_ms)
                self._logger.log_attempt(ctx, attempt, "success", elapsed_ms)
                return results

            except TimeoutError as e:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                last_error = e
                self._metrics.record_latency("timeout", elapsed_ms)
                self._metrics.inc_error("timeout")
                self._logger.log_attempt(ctx, attempt, "timeout", elapsed_ms, error_reason="timeout")

            except Exception as e:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                last_error = e
                self._metrics.record_latency("error", elapsed_ms)
                self._metrics.inc_error(type(e).__name__)
                self._logger.log_attempt(
                    ctx, attempt, "error", elapsed_ms, error_reason=type(e).__name__
                )
                if isinstance(e, EnrichmentUnavailableError):
                    break

            if attempt < self._policy.max_attempts:
                await self._sleep(self._policy.delay_for(attempt))

        raise EnrichmentBatchFailedError(
            f"Batch {ctx.batch_index + 1}/{ctx.batch_count} failed after {attempt} attempts"
        ) from last_error
