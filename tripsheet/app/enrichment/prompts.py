"""Prompt text for place enrichment."""

from dataclasses import dataclass

from tripsheet.app.config import Settings
from tripsheet.app.enrichment.targets import EnrichmentRequest

RECORD_SCHEMA = """{
  "name": "Official place name",
  "hook": "Punchy 5-8 words, memorable, not generic",
  "tip": "Insider practical advice (what to order, when to go, what to avoid)",
  "vibe": "Quick atmosphere read, 10 words max",
  "hours": "Operating hours with helpful context (e.g. 'Opens 8am, beat the line')",
  "price": "Contextual price info (e.g. '$25-30/person, worth it')",
  "address": "Full street address with city and ZIP",
  "neighborhood": "Short code: LES, EV, WV, SoHo, NoHo, Chinatown, FiDi, etc.",
  "mapsUrl": "Google Maps URL for the place",
  "website": "Official website URL or null if none",
  "walkingMins": "Estimated minutes walking from the hotel (number or null)"
}"""

WALKING_ROUTE_SCHEMA = """{
  "isWalkingRoute": true,
  "waypoints": ["Stop 1 - brief description", "Stop 2 - brief description"],
  "distance": "1.2 miles",
  "duration": "45-60 min with stops",
  "routeUrl": "Google Maps directions URL with waypoints"
}"""

NON_PLACE_SCHEMA = """{
  "name": "original text",
  "hook": "Brief contextual note",
  "tip": null, "vibe": null, "hours": null, "price": null,
  "address": null, "neighborhood": null, "mapsUrl": null,
  "website": null, "walkingMins": null
}"""


@dataclass(frozen=True)
class EnrichmentPrompt:
    """Trip facts that frame every enrichment request."""

    trip_label: str
    hotel_name: str
    preferences: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnrichmentPrompt":
        return cls(
            trip_label=settings.trip_label,
            hotel_name=settings.hotel_name,
            preferences=settings.traveler_preferences,
        )

    def system_prompt(self) -> str:
        return (
            f"You are enriching places for a {self.trip_label}. "
            "Use grounded search results only; do not invent places, addresses, or hours. "
            "Return ONLY a valid JSON array. No markdown, no explanation."
        )

    def render(self, requests: list[EnrichmentRequest]) -> str:
        """Build the user prompt for one batch."""
        item_list = "\n".join(
            f'{i}. "{req.description}" ({req.context or "activity"})'
            for i, req in enumerate(requests, start=1)
        )
        preferences = self.preferences.strip() or "None provided."

        return f"""You are enriching places for a {self.trip_label}.

TRAVELER PREFERENCES:
{preferences}

HOTEL LOCATION: {self.hotel_name} (use for walkingMins calculation)

For each item below, return a JSON array with enrichment objects.

ENRICHMENT SCHEMA:
{RECORD_SCHEMA}

FOR WALKING ROUTES (multi-stop explorations), add:
{WALKING_ROUTE_SCHEMA}

FOR NON-PLACES (like "Sleep in" or "Check-in"), return:
{NON_PLACE_SCHEMA}

ITEMS TO ENRICH:
{item_list}

Return ONLY a valid JSON array with exactly {len(requests)} objects, in the same order."""
