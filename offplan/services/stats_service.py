from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from offplan.models import City, Developer, District, FloorPlan, Property, PropertyImage, Unit

COUNTED_MODELS = {
    "developers": Developer,
    "cities": City,
    "districts": District,
    "properties": Property,
    "units": Unit,
    "images": PropertyImage,
    "floor_plans": FloorPlan,
}


async def get_database_stats(db: AsyncSession) -> Dict[str, int]:
    """Row counts for every synchronized table."""
    stats: Dict[str, int] = {}
    for key, model in COUNTED_MODELS.items():
        result = await db.execute(select(func.count()).select_from(model))
        stats[key] = result.scalar() or 0
    return stats
