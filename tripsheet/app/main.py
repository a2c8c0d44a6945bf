"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tripsheet.app.api.deps import get_itinerary_service
from tripsheet.app.api.routes.health import router as health_router
from tripsheet.app.api.routes.itinerary import router as itinerary_router
from tripsheet.app.api.routes.metrics import router as metrics_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the stored trip and pick up any enrichment left unfinished."""
    service = await get_itinerary_service()
    pending = len(service.pending_enrichment())
    if pending:
        logger.info(f"{pending} items need enrichment at startup")
        service.trigger_enrichment()
    yield
    await service.scheduler.wait_idle()


app = FastAPI(title="Tripsheet API", version="0.1.0", lifespan=lifespan)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(itinerary_router, tags=["itinerary"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Tripsheet API", "version": "0.1.0"}
