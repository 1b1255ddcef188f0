"""Print a quick summary of synchronized data."""

import asyncio

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from offplan.database import async_session_maker, engine
from offplan.models.property import Property
from offplan.services.stats_service import get_database_stats


async def check_data() -> None:
    async with async_session_maker() as db:
        stats = await get_database_stats(db)
        print("Database Summary:")
        for key, count in stats.items():
            print(f"  {key}: {count}")

        result = await db.execute(
            select(Property)
            .options(selectinload(Property.developer), selectinload(Property.city))
            .order_by(Property.updated_at.desc())
            .limit(5)
        )
        properties = result.scalars().all()

        print("\nSample Properties:")
        for i, prop in enumerate(properties, 1):
            print(f"{i}. {prop.title} [{prop.slug}]")
            print(f"   Developer: {prop.developer.name}")
            print(f"   City: {prop.city.name}")
            print(f"   Status: {prop.status} / {prop.sales_status}")
            if prop.min_price and prop.max_price:
                print(f"   Price: {prop.min_price:,.0f} - {prop.max_price:,.0f} {prop.currency}")
            if prop.latitude is not None:
                print(f"   Location: {prop.latitude}, {prop.longitude}")


async def main():
    await check_data()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
