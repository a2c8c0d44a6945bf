"""Itinerary endpoints - document, outline text, item edits, enrichment status."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from tripsheet.app.api.deps import get_itinerary_service
from tripsheet.app.db.store import PersistenceError
from tripsheet.app.itinerary.service import ItemChanges, ItemNotFoundError, ItineraryService
from tripsheet.app.models.common import ItemStatus
from tripsheet.app.models.itinerary import TripDocument
from tripsheet.app.outline.timeparse import InvalidDateError

router = APIRouter(prefix="/itinerary", tags=["itinerary"])

ServiceDep = Annotated[ItineraryService, Depends(get_itinerary_service)]


class OutlineBody(BaseModel):
    """Outline text wrapper for GET/PUT /itinerary/outline."""

    outline: str


class AddItemRequest(BaseModel):
    """Request body for POST /itinerary/days/{day}/items."""

    prompt_text: str = Field(..., min_length=1, description="Item text, e.g. \"Katz's Delicatessen\"")
    time: str | None = Field(None, description="Time token, e.g. \"7pm\" or \"4-6pm\"")
    status: ItemStatus = ItemStatus.primary
    position: int | None = Field(None, ge=0, description="Insert position; appended when omitted")


class PendingItem(BaseModel):
    """One node waiting for enrichment."""

    path: str
    prompt_text: str
    context: str


class EnrichmentTriggerResponse(BaseModel):
    """Response for POST /itinerary/enrichment."""

    status: str


def _not_found(e: ItemNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _unavailable(e: PersistenceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("", response_model=TripDocument)
async def get_document(service: ServiceDep) -> TripDocument:
    """Current structured document."""
    return service.get_document()


@router.put("", response_model=TripDocument)
async def replace_document(doc: TripDocument, service: ServiceDep) -> TripDocument:
    """Replace the whole document; known enrichment is carried over by text."""
    try:
        return await service.replace_document(doc)
    except PersistenceError as e:
        raise _unavailable(e) from e


@router.get("/outline", response_model=OutlineBody)
async def get_outline(service: ServiceDep) -> OutlineBody:
    """Current outline text."""
    return OutlineBody(outline=service.get_outline())


@router.put("/outline", response_model=TripDocument)
async def replace_outline(body: OutlineBody, service: ServiceDep) -> TripDocument:
    """Replace the outline text.

    Returns:
        422 if a day header cannot be resolved (previous outline untouched)
    """
    try:
        return await service.replace_outline(body.outline)
    except InvalidDateError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except PersistenceError as e:
        raise _unavailable(e) from e


@router.post("/days/{day}/items", response_model=TripDocument, status_code=status.HTTP_201_CREATED)
async def add_item(day: date, body: AddItemRequest, service: ServiceDep) -> TripDocument:
    """Add an item to a day (the day is created if missing)."""
    try:
        return await service.add_item(
            day, body.prompt_text, time=body.time, status=body.status, position=body.position
        )
    except PersistenceError as e:
        raise _unavailable(e) from e


@router.patch("/days/{day}/items/{index}", response_model=TripDocument)
async def update_item(
    day: date, index: int, changes: ItemChanges, service: ServiceDep
) -> TripDocument:
    """Update an item; changing its text resets its enrichment."""
    try:
        return await service.update_item(day, index, changes)
    except ItemNotFoundError as e:
        raise _not_found(e) from e
    except PersistenceError as e:
        raise _unavailable(e) from e


@router.delete("/days/{day}/items/{index}", response_model=TripDocument)
async def remove_item(day: date, index: int, service: ServiceDep) -> TripDocument:
    """Remove an item."""
    try:
        return await service.remove_item(day, index)
    except ItemNotFoundError as e:
        raise _not_found(e) from e
    except PersistenceError as e:
        raise _unavailable(e) from e


@router.get("/enrichment/pending", response_model=list[PendingItem])
async def pending_enrichment(service: ServiceDep) -> list[PendingItem]:
    """Items still missing enrichment."""
    return [
        PendingItem(path=str(t.path), prompt_text=t.prompt_text, context=t.context)
        for t in service.pending_enrichment()
    ]


@router.post(
    "/enrichment",
    response_model=EnrichmentTriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def trigger_enrichment(service: ServiceDep) -> EnrichmentTriggerResponse:
    """Start a background enrichment pass."""
    started = service.trigger_enrichment()
    return EnrichmentTriggerResponse(status="scheduled" if started else "already_running")
