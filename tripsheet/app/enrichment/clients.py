"""Enrichment providers: given N (description, context) pairs, return N records.

Security: API keys come from settings only, never hardcoded.
A provider selected without a key yields a client that fails every call, so
items stay unenriched until a key is configured. The deterministic stub is
used only when selected explicitly.
"""

import json
import logging
import re
from typing import Any, Protocol

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from tripsheet.app.config import Settings
from tripsheet.app.enrichment.prompts import EnrichmentPrompt
from tripsheet.app.enrichment.targets import EnrichmentRequest
from tripsheet.app.models.itinerary import Enrichment

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

_KEY_ALIASES: dict[str, str] = {
    "mapsUrl": "maps_url",
    "walkingMins": "walking_mins",
    "isWalkingRoute": "is_walking_route",
    "routeUrl": "route_url",
    "tips": "tip",
}

_TEXT_FIELDS = (
    "name",
    "description",
    "hook",
    "tip",
    "vibe",
    "hours",
    "price",
    "address",
    "neighborhood",
    "maps_url",
    "website",
    "distance",
    "duration",
    "route_url",
)


class EnrichmentCapabilityError(Exception):
    """Provider call failed or returned an unusable response."""

    pass


class EnrichmentUnavailableError(EnrichmentCapabilityError):
    """The selected provider is not configured. Not retried."""

    pass


class EnrichmentClient(Protocol):
    """Protocol for enrichment provider implementations."""

    async def enrich(self, requests: list[EnrichmentRequest]) -> list[Enrichment]:
        """Enrich a batch of requests.

        Args:
            requests: Ordered (description, context) pairs

        Returns:
            One record per request, same order

        Raises:
            EnrichmentCapabilityError: Provider failed or response unusable
        """
        ...


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_minutes(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        return int(round(value))
    match = re.search(r"\d+", str(value))
    return int(match.group()) if match else None


def normalize_record(raw: dict[str, Any]) -> Enrichment:
    """Turn one provider record into an Enrichment.

    Accepts camelCase keys, maps empty strings to None, and marks records with no
    address, description, or waypoints as placeholders.
    """
    data = {_KEY_ALIASES.get(key, key): value for key, value in raw.items()}

    fields: dict[str, Any] = {name: _clean_text(data.get(name)) for name in _TEXT_FIELDS}
    waypoints = data.get("waypoints") or []
    if not isinstance(waypoints, list):
        waypoints = [waypoints]
    fields["waypoints"] = [w for w in (_clean_text(wp) for wp in waypoints) if w]
    fields["walking_mins"] = _coerce_minutes(data.get("walking_mins"))
    fields["is_walking_route"] = bool(data.get("is_walking_route")) or bool(fields["waypoints"])
    fields["needs_details"] = not (
        fields["address"] or fields["description"] or fields["waypoints"]
    )
    return Enrichment(**fields)


def parse_enrichment_response(text: str | None, expected: int) -> list[Enrichment]:
    """Extract and normalize the JSON array from a provider response.

    Raises:
        EnrichmentCapabilityError: No array, invalid JSON, or wrong length
    """
    if not text:
        raise EnrichmentCapabilityError("Empty response")

    match = _ARRAY_RE.search(_FENCE_RE.sub("", text))
    if not match:
        raise EnrichmentCapabilityError("No JSON array in response")

    try:
        records = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise EnrichmentCapabilityError(f"Invalid JSON in response: {e.msg}") from e

    if not isinstance(records, list) or len(records) != expected:
        got = len(records) if isinstance(records, list) else type(records).__name__
        raise EnrichmentCapabilityError(f"Expected {expected} records, got {got}")

    enrichments: list[Enrichment] = []
    for record in records:
        if not isinstance(record, dict):
            raise EnrichmentCapabilityError(f"Record is not an object: {record!r}")
        enrichments.append(normalize_record(record))
    return enrichments


class DeterministicStubEnrichmentClient:
    """Deterministic stub client for testing (no API key required).

    Every request resolves to a placeholder record so items show as attempted.
    Only used when ``enrichment_provider=stub``.
    """

    async def enrich(self, requests: list[EnrichmentRequest]) -> list[Enrichment]:
        return [Enrichment.placeholder(hook="Add details...") for _ in requests]


class UnconfiguredEnrichmentClient:
    """Stands in for a provider whose API key is missing; every call fails."""

    def __init__(self, provider: str):
        self.provider = provider

    async def enrich(self, requests: list[EnrichmentRequest]) -> list[Enrichment]:
        raise EnrichmentUnavailableError(f"No {self.provider} API key configured")


class GeminiEnrichmentClient:
    """Gemini-backed client grounded with Google Maps around the hotel."""

    def __init__(
        self,
        api_key: str,
        prompt: EnrichmentPrompt,
        model: str = "gemini-2.5-flash",
        latitude: float | None = None,
        longitude: float | None = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key (read from settings)
            prompt: Trip framing for the prompt
            model: Model name
            latitude: Grounding bias latitude (hotel)
            longitude: Grounding bias longitude (hotel)
        """
        self.client = genai.Client(api_key=api_key)
        self.prompt = prompt
        self.model = model
        self.latitude = latitude
        self.longitude = longitude

    def _config(self) -> types.GenerateContentConfig:
        tool_config = None
        if self.latitude is not None and self.longitude is not None:
            tool_config = types.ToolConfig(
                retrieval_config=types.RetrievalConfig(
                    lat_lng=types.LatLng(latitude=self.latitude, longitude=self.longitude)
                )
            )
        return types.GenerateContentConfig(
            system_instruction=self.prompt.system_prompt(),
            tools=[types.Tool(google_maps=types.GoogleMaps())],
            tool_config=tool_config,
        )

    async def enrich(self, requests: list[EnrichmentRequest]) -> list[Enrichment]:
        if not requests:
            return []
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=self.prompt.render(requests),
                config=self._config(),
            )
        except Exception as e:
            raise EnrichmentCapabilityError(f"Gemini call failed: {type(e).__name__}") from e
        return parse_enrichment_response(response.text, len(requests))


class OpenAIEnrichmentClient:
    """OpenAI-backed client (no search grounding)."""

    def __init__(self, api_key: str, prompt: EnrichmentPrompt, model: str = "gpt-4o-mini"):
        self.client = AsyncOpenAI(api_key=api_key)
        self.prompt = prompt
        self.model = model

    async def enrich(self, requests: list[EnrichmentRequest]) -> list[Enrichment]:
        if not requests:
            return []
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.prompt.system_prompt()},
                    {"role": "user", "content": self.prompt.render(requests)},
                ],
                temperature=0.2,
                max_tokens=4000,
            )
        except Exception as e:
            raise EnrichmentCapabilityError(f"OpenAI call failed: {type(e).__name__}") from e
        return parse_enrichment_response(response.choices[0].message.content, len(requests))


def get_enrichment_client(settings: Settings) -> EnrichmentClient:
    """Factory function to get the enrichment client based on config.

    Returns:
        Configured provider client, DeterministicStubEnrichmentClient for the
        stub provider, UnconfiguredEnrichmentClient when the key is missing
    """
    prompt = EnrichmentPrompt.from_settings(settings)
    provider = settings.enrichment_provider

    if provider == "gemini" and settings.gemini_api_key and settings.gemini_api_key.get_secret_value():
        logger.info("Using Gemini client for enrichment")
        return GeminiEnrichmentClient(
            api_key=settings.gemini_api_key.get_secret_value(),
            prompt=prompt,
            model=settings.gemini_model,
            latitude=settings.hotel_lat,
            longitude=settings.hotel_lng,
        )
    if provider == "openai" and settings.openai_api_key and settings.openai_api_key.get_secret_value():
        logger.info("Using OpenAI client for enrichment")
        return OpenAIEnrichmentClient(
            api_key=settings.openai_api_key.get_secret_value(),
            prompt=prompt,
            model=settings.openai_model,
        )

    if provider == "stub":
        logger.info("Using deterministic stub client for enrichment")
        return DeterministicStubEnrichmentClient()

    logger.warning(f"No {provider} API key configured, enrichment is disabled")
    return UnconfiguredEnrichmentClient(provider)
