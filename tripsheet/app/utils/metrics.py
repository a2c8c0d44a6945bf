"""Prometheus metrics for background enrichment."""

from prometheus_client import Counter, Histogram

enrichment_batch_latency_ms = Histogram(
    "enrichment_batch_latency_ms",
    "Enrichment batch call latency in milliseconds",
    ["outcome"],
    buckets=[250, 500, 1000, 2000, 5000, 10000, 20000, 40000, 60000],
)

enrichment_errors_total = Counter(
    "enrichment_errors_total",
    "Total enrichment batch errors",
    ["reason"],
)

enrichment_items_total = Counter(
    "enrichment_items_total",
    "Total items handled at enrichment write-back",
    ["result"],
)


class PrometheusEnrichmentMetrics:
    """Prometheus-based enrichment metrics implementation."""

    def record_latency(self, outcome: str, latency_ms: float) -> None:
        """Record batch call latency."""
        enrichment_batch_latency_ms.labels(outcome=outcome).observe(latency_ms)

    def inc_error(self, reason: str) -> None:
        """Increment error counter."""
        enrichment_errors_total.labels(reason=reason).inc()

    def inc_items(self, result: str, count: int = 1) -> None:
        """Count items by write-back result."""
        if count:
            enrichment_items_total.labels(result=result).inc(count)
