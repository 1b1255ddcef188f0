"""Sync only the latest created and updated properties."""

import asyncio
import sys

from sqlalchemy import func, select

from offplan.config import settings
from offplan.database import async_session_maker, engine, init_db
from offplan.models.property import Property
from offplan.services.sync_service import property_sync_service
from offplan.utils.logging import setup_logging


async def main() -> None:
    await init_db()
    try:
        print("Starting incremental sync for latest properties...")
        stats = await property_sync_service.sync_latest_updates()
        print("Sync complete:")
        print(stats.model_dump_json(indent=2))

        async with async_session_maker() as db:
            count = (await db.execute(select(func.count()).select_from(Property))).scalar() or 0
        print(f"\nTotal properties in database: {count}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging(debug=settings.debug)
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"Sync failed: {e}", file=sys.stderr)
        sys.exit(1)
