"""FastAPI dependencies."""

from tripsheet.app.config import get_settings
from tripsheet.app.itinerary.service import ItineraryService, build_itinerary_service

_service: ItineraryService | None = None


async def get_itinerary_service() -> ItineraryService:
    """Get the process-wide itinerary service, building it on first use."""
    global _service
    if _service is None:
        _service = await build_itinerary_service(get_settings())
    return _service
