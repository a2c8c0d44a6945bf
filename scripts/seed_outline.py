"""Load an outline file into the trip store and enrich it."""

import argparse
import asyncio
from pathlib import Path

from tripsheet.app.config import get_settings
from tripsheet.app.itinerary.service import build_itinerary_service


async def run(path: Path) -> None:
    """Replace the stored outline with the file contents and wait for enrichment."""
    service = await build_itinerary_service(get_settings())
    doc = await service.replace_outline(path.read_text(encoding="utf-8"))
    items = sum(len(day.items) for day in doc.days)
    print(f"Loaded {path}: {len(doc.days)} days, {items} items, {len(doc.reservations)} reservations")

    await service.scheduler.wait_idle()
    print(f"Still missing enrichment: {len(service.pending_enrichment())}")


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "path",
        nargs="?",
        default=settings.seed_outline_path,
        type=Path,
        help="Outline file (default: SEED_OUTLINE_PATH)",
    )
    args = parser.parse_args()
    asyncio.run(run(args.path))


if __name__ == "__main__":
    main()
