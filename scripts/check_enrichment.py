"""List hotel, reservation, and day items still missing enrichment."""

import argparse
import asyncio

from tripsheet.app.config import get_settings
from tripsheet.app.enrichment.targets import NodeKind, find_items_needing_enrichment
from tripsheet.app.itinerary.service import build_itinerary_service


async def run(enrich: bool) -> int:
    """Print pending items; optionally run one enrichment pass first.

    Returns:
        Number of items still missing enrichment
    """
    service = await build_itinerary_service(get_settings())

    if enrich:
        report = await service.scheduler.run_once()
        print(
            f"Enrichment pass: {report.enriched} enriched, {report.placeholders} placeholders, "
            f"{report.failed} failed, {report.stale} stale"
        )

    pending = find_items_needing_enrichment(service.get_document())
    print(f"Items with missing enrichment: {len(pending)}")
    for target in pending:
        if target.path.kind is NodeKind.hotel:
            print(f"  Hotel: {target.prompt_text}")
        elif target.path.kind is NodeKind.reservation:
            print(f"  Reservation {target.path.index}: {target.prompt_text}")
        else:
            print(f"  {target.path}: {target.prompt_text}")

    if not pending:
        print("All items have enrichment!")
    return len(pending)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--enrich", action="store_true", help="Run one enrichment pass before listing"
    )
    args = parser.parse_args()
    missing = asyncio.run(run(args.enrich))
    raise SystemExit(1 if missing else 0)


if __name__ == "__main__":
    main()
