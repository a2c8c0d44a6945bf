"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fakes import FakeEnrichmentClient, build_scheduler

from tripsheet.app.db.inmemory import InMemoryTripStateRepository
from tripsheet.app.db.store import DocumentStore
from tripsheet.app.itinerary.service import ItineraryService


@pytest.fixture
def repository() -> InMemoryTripStateRepository:
    return InMemoryTripStateRepository()


@pytest.fixture
def store(repository: InMemoryTripStateRepository) -> DocumentStore:
    return DocumentStore(repository)


@pytest.fixture
def enrichment_client() -> FakeEnrichmentClient:
    return FakeEnrichmentClient()


@pytest_asyncio.fixture
async def service(
    store: DocumentStore, enrichment_client: FakeEnrichmentClient
) -> AsyncGenerator[ItineraryService, None]:
    """Itinerary service with a real scheduler over an in-memory store."""
    scheduler = build_scheduler(store, enrichment_client)
    svc = ItineraryService(store, scheduler, year=2026)
    yield svc
    await scheduler.wait_idle()
