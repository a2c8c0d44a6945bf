"""Health check endpoints.

- /health: process is up
- /healthz: database round trip and enrichment provider configuration
"""

import json
from typing import Any

from fastapi import APIRouter, Response
from sqlalchemy import text

from tripsheet.app.config import Settings, get_settings
from tripsheet.app.db.engine import get_async_engine

router = APIRouter()


async def check_db(settings: Settings) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


async def check_enrichment(settings: Settings) -> tuple[bool, str]:
    """Report which enrichment provider is usable. Never fails the health check.

    Returns:
        (is_ok, status_message)
    """
    provider = settings.enrichment_provider
    key = settings.gemini_api_key if provider == "gemini" else settings.openai_api_key
    if provider == "stub":
        return (True, "stub")
    if key and key.get_secret_value():
        return (True, provider)
    return (True, f"{provider}_not_configured")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz() -> dict[str, Any] | Response:
    """Health check endpoint.

    Returns:
        200 with component status if the database is reachable
        503 otherwise
    """
    settings = get_settings()

    db_ok, db_status = await check_db(settings)
    _enrichment_ok, enrichment_status = await check_enrichment(settings)

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {
            "db": db_status,
            "enrichment": enrichment_status,
        },
    }

    if not db_ok:
        return Response(
            content=json.dumps(response_body),
            status_code=503,
            media_type="application/json",
        )

    return response_body
