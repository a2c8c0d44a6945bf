"""Background enrichment: fill in missing place details without blocking writes.

A pass snapshots the document, chunks every node with ``enrichment is None``,
runs each chunk through the BatchRunner, and applies all successful results in
one store mutation. Results whose target moved or changed text are dropped as
stale. Exhausted chunks are logged and left null for a later pass.
"""

import asyncio
import logging
from dataclasses import dataclass

from tripsheet.app.db.repositories import TripState
from tripsheet.app.db.store import DocumentStore, PersistenceError
from tripsheet.app.enrichment.merge import apply_enrichment, prune_enrichment_cache
from tripsheet.app.enrichment.runner import (
    BatchContext,
    BatchRunner,
    EnrichmentBatchFailedError,
    EnrichmentMetrics,
)
from tripsheet.app.enrichment.targets import (
    EnrichmentTarget,
    find_items_needing_enrichment,
    resolve_path,
)
from tripsheet.app.models.itinerary import Enrichment

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentReport:
    """Outcome of one enrichment pass."""

    targets: int = 0
    batches: int = 0
    enriched: int = 0
    placeholders: int = 0
    stale: int = 0
    failed: int = 0
    persisted: bool = False


def chunk_targets(targets: list[EnrichmentTarget], size: int) -> list[list[EnrichmentTarget]]:
    """Split targets into chunks of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [targets[i : i + size] for i in range(0, len(targets), size)]


class EnrichmentScheduler:
    """Fire-and-forget enrichment passes over the store's document."""

    def __init__(
        self,
        store: DocumentStore,
        runner: BatchRunner,
        *,
        max_batch_size: int = 10,
        max_cache_entries: int | None = None,
        metrics: EnrichmentMetrics | None = None,
    ) -> None:
        self._store = store
        self._runner = runner
        self._max_batch_size = max_batch_size
        self._max_cache_entries = max_cache_entries
        self._metrics = metrics or EnrichmentMetrics()
        self._tasks: set[asyncio.Task[None]] = set()
        self._running = False
        self._rerun = False

    @property
    def is_running(self) -> bool:
        return self._running

    def schedule(self) -> asyncio.Task[None] | None:
        """Start a background pass, or queue one follow-up if a pass is running.

        Must be called from within a running event loop. Never awaited by
        request handlers.

        Returns:
            The new task, or None when coalesced into the running pass
        """
        if self._running:
            self._rerun = True
            return None
        self._running = True
        task = asyncio.create_task(self._run_loop())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for in-flight passes (used by tests and shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_loop(self) -> None:
        try:
            while True:
                self._rerun = False
                try:
                    await self.run_once()
                except Exception:
                    logger.exception("Enrichment pass failed")
                if not self._rerun:
                    break
        finally:
            self._running = False

    async def run_once(self) -> EnrichmentReport:
        """Run one complete enrichment pass and write results back once."""
        snapshot = self._store.current()
        targets = find_items_needing_enrichment(snapshot.document)
        report = EnrichmentReport(targets=len(targets))
        if not targets:
            return report

        chunks = chunk_targets(targets, self._max_batch_size)
        report.batches = len(chunks)
        results: list[tuple[EnrichmentTarget, Enrichment]] = []

        for batch_index, chunk in enumerate(chunks):
            ctx = BatchContext(batch_index=batch_index, batch_count=len(chunks), size=len(chunk))
            try:
                records = await self._runner.run(ctx, [target.request for target in chunk])
            except EnrichmentBatchFailedError as e:
                report.failed += len(chunk)
                logger.error(
                    f"Enrichment batch {batch_index + 1}/{len(chunks)} exhausted retries",
                    extra={
                        "structured": {
                            "batch_index": batch_index,
                            "items": len(chunk),
                            "error_reason": type(e.__cause__).__name__ if e.__cause__ else None,
                        }
                    },
                )
                continue
            results.extend(zip(chunk, records, strict=True))

        if not results:
            return report

        counts = {"enriched": 0, "placeholder": 0, "stale": 0}

        def write_back(state: TripState) -> TripState:
            for key in counts:
                counts[key] = 0
            for target, record in results:
                # re-insert so the entry counts as newest
                state.enrichment_cache.pop(target.prompt_text, None)
                state.enrichment_cache[target.prompt_text] = record
                node = resolve_path(state.document, target.path)
                if node is None or node.prompt_text != target.prompt_text:
                    counts["stale"] += 1
                    continue
                apply_enrichment(node, record)
                counts["placeholder" if record.needs_details else "enriched"] += 1
            if self._max_cache_entries is not None:
                prune_enrichment_cache(
                    state.enrichment_cache, state.document, self._max_cache_entries
                )
            return state

        try:
            await self._store.apply_mutation(write_back)
        except PersistenceError:
            logger.error(
                "Enrichment results could not be persisted",
                extra={"structured": {"results": len(results)}},
            )
            return report

        report.persisted = True
        report.enriched = counts["enriched"]
        report.placeholders = counts["placeholder"]
        report.stale = counts["stale"]
        for result, count in counts.items():
            self._metrics.inc_items(result, count)

        logger.info(
            f"Enrichment pass wrote {report.enriched + report.placeholders}/{report.targets} items",
            extra={"structured": dict(vars(report))},
        )
        return report
