"""Structured logging for enrichment batches."""

import logging
from typing import Any

from tripsheet.app.enrichment.runner import BatchContext

logger = logging.getLogger(__name__)


class StructuredEnrichmentLogger:
    """Structured logger for enrichment batch attempts."""

    def log_attempt(
        self,
        ctx: BatchContext,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log enrichment attempt with structured data."""
        log_data: dict[str, Any] = {
            "batch_index": ctx.batch_index,
            "batch_count": ctx.batch_count,
            "items": ctx.size,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Enrichment batch {ctx.batch_index + 1}/{ctx.batch_count} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
