"""Run a full synchronization from the upstream API."""

import argparse
import asyncio
import sys

from offplan.config import settings
from offplan.database import engine, init_db
from offplan.schemas.sync import SyncOptions
from offplan.services.sync_service import property_sync_service
from offplan.utils.logging import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Full property sync")
    parser.add_argument("--batch-size", type=int, default=settings.sync_batch_size)
    parser.add_argument("--include-drafts", action="store_true")
    parser.add_argument("--skip-images", action="store_true")
    parser.add_argument("--skip-floor-plans", action="store_true")
    return parser.parse_args()


async def main(args: argparse.Namespace) -> None:
    """Run the full sync and print its statistics."""
    await init_db()
    try:
        print("Starting full sync...")
        stats = await property_sync_service.sync_all(
            SyncOptions(
                full=True,
                batch_size=args.batch_size,
                include_drafts=args.include_drafts,
                skip_images=args.skip_images,
                skip_floor_plans=args.skip_floor_plans,
            )
        )
        print("Sync complete:")
        print(stats.model_dump_json(indent=2))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging(debug=settings.debug)
    try:
        asyncio.run(main(parse_args()))
    except Exception as e:
        print(f"Sync failed: {e}", file=sys.stderr)
        sys.exit(1)
