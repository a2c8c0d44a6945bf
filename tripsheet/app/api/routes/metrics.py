"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - enrichment_batch_latency_ms{outcome}
    - enrichment_errors_total{reason}
    - enrichment_items_total{result}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
