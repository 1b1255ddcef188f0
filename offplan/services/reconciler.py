"""Create-or-update reconciliation of upstream entities.

Every public method returns ``UpsertOutcome`` values instead of raising for
routine failures (missing parents, constraint violations). Each entity write
runs inside a SAVEPOINT, so one failed write never poisons the caller's
transaction.

Child collections (images, floor plans, units) are a cache of the latest
upstream snapshot: when the payload carries a collection, the stored rows
for that property are deleted and the fresh set inserted in one savepoint.
A collection missing from the payload leaves the stored rows untouched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from offplan.models import (
    City,
    Developer,
    District,
    FloorPlan,
    Property,
    PropertyImage,
    Unit,
)
from offplan.schemas.estaty import (
    CityPayload,
    DeveloperPayload,
    DistrictPayload,
    FloorPlanSet,
    ImageSet,
    PropertyRecord,
    UnitSet,
)
from offplan.schemas.sync import SyncOptions
from offplan.services.field_mapping import (
    map_image_tag,
    map_image_type_code,
    map_property_status,
    map_property_type,
    map_sales_status,
    map_unit_status,
)
from offplan.utils.geo import is_within_service_region, parse_coordinates
from offplan.utils.html_cleaner import (
    clean_html_content,
    extract_key_features,
    extract_location_highlights,
)
from offplan.utils.logging import get_logger
from offplan.utils.text import parse_date, slugify

logger = get_logger("services.reconciler")

UNKNOWN_DEVELOPER = "Unknown Developer"
UNKNOWN_CITY = "Unknown City"


class UpsertAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class UpsertOutcome:
    """Result of reconciling one entity (or one child collection)."""
    entity: str
    action: UpsertAction
    label: str = ""
    record_id: Optional[int] = None
    count: int = 1
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.action in (UpsertAction.CREATED, UpsertAction.UPDATED)

    @classmethod
    def created(cls, entity: str, label: str, record_id: Optional[int] = None, count: int = 1) -> "UpsertOutcome":
        return cls(entity, UpsertAction.CREATED, label, record_id, count)

    @classmethod
    def updated(cls, entity: str, label: str, record_id: Optional[int] = None) -> "UpsertOutcome":
        return cls(entity, UpsertAction.UPDATED, label, record_id)

    @classmethod
    def skipped(cls, entity: str, label: str, message: str) -> "UpsertOutcome":
        return cls(entity, UpsertAction.SKIPPED, label, message=message)

    @classmethod
    def failed(cls, entity: str, label: str, message: str) -> "UpsertOutcome":
        return cls(entity, UpsertAction.FAILED, label, message=message)


def _region_coordinates(latitude: Optional[float], longitude: Optional[float]) -> Tuple[Optional[float], Optional[float]]:
    if latitude is None or longitude is None:
        return None, None
    if not is_within_service_region(latitude, longitude):
        return None, None
    return latitude, longitude


class PropertyReconciler:
    """Upserts reference data and properties into one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------------- lookups ----------------

    async def _find_by_external_id(self, model: Type[Any], external_id: Optional[int]) -> Optional[Any]:
        if external_id is None:
            return None
        result = await self.db.execute(select(model).where(model.external_id == external_id))
        return result.scalar_one_or_none()

    async def unique_slug(self, model: Type[Any], base: str, external_id: int) -> str:
        """First of ``base``, ``base-1``, ``base-2``... not owned by another external id."""
        base = base or f"{model.__tablename__}-{external_id}"
        candidate = base
        counter = 1
        while True:
            result = await self.db.execute(
                select(model.external_id).where(model.slug == candidate)
            )
            owner = result.scalar_one_or_none()
            if owner is None or owner == external_id:
                return candidate
            candidate = f"{base}-{counter}"
            counter += 1

    # ---------------- reference data ----------------

    async def upsert_developer(self, payload: DeveloperPayload) -> UpsertOutcome:
        name = payload.display_name or f"Developer {payload.id}"
        values = {
            "name": name,
            "logo": payload.logo,
            "description": clean_html_content(payload.description) or None,
            "website": payload.website,
            "phone": payload.phone,
            "email": payload.email,
            "headquarters": payload.headquarters,
        }
        return await self._upsert_reference(Developer, "developers", payload.id, name, values)

    async def upsert_city(self, payload: CityPayload) -> UpsertOutcome:
        name = payload.display_name or f"City {payload.id}"
        latitude, longitude = _region_coordinates(payload.latitude, payload.longitude)
        values = {
            "name": name,
            "name_ar": payload.name_ar,
            "latitude": latitude,
            "longitude": longitude,
        }
        return await self._upsert_reference(City, "cities", payload.id, name, values)

    async def upsert_district(self, payload: DistrictPayload) -> UpsertOutcome:
        name = payload.display_name or f"District {payload.id}"
        city = await self._find_by_external_id(City, payload.city_id)
        if city is None:
            logger.warning("district_city_not_found", district=name, city_external_id=payload.city_id)
            return UpsertOutcome.skipped("districts", name, f"City not found for district {name}")

        latitude, longitude = _region_coordinates(payload.latitude, payload.longitude)
        values = {
            "name": name,
            "name_ar": payload.name_ar,
            "city_id": city.id,
            "latitude": latitude,
            "longitude": longitude,
        }
        return await self._upsert_reference(District, "districts", payload.id, name, values)

    async def _upsert_reference(
        self,
        model: Type[Any],
        entity: str,
        external_id: int,
        name: str,
        values: Dict[str, Any],
    ) -> UpsertOutcome:
        try:
            async with self.db.begin_nested():
                existing = await self._find_by_external_id(model, external_id)
                slug = await self.unique_slug(model, slugify(name), external_id)
                if existing is None:
                    record = model(external_id=external_id, slug=slug, **values)
                    self.db.add(record)
                    await self.db.flush()
                    return UpsertOutcome.created(entity, name, record.id)

                for field, value in values.items():
                    setattr(existing, field, value)
                existing.slug = slug
                await self.db.flush()
                return UpsertOutcome.updated(entity, name, existing.id)
        except SQLAlchemyError as e:
            logger.error("reference_upsert_failed", entity=entity, external_id=external_id, error=str(e))
            return UpsertOutcome.failed(entity, name, f"Failed to upsert {entity} {name}: {e}")

    # ---------------- stub parents ----------------

    async def _resolve_parent(
        self,
        model: Type[Any],
        entity: str,
        external_id: Optional[int],
        inline_name: Optional[str],
        fallback_name: str,
    ) -> Tuple[Optional[Any], Optional[UpsertOutcome]]:
        parent = await self._find_by_external_id(model, external_id)
        if parent is not None or external_id is None:
            return parent, None

        name = inline_name or fallback_name
        try:
            async with self.db.begin_nested():
                parent = model(
                    external_id=external_id,
                    name=name,
                    slug=slugify(f"{name}-{external_id}"),
                )
                self.db.add(parent)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.warning("stub_parent_create_failed", entity=entity, external_id=external_id, error=str(e))
            return None, None

        logger.info("stub_parent_created", entity=entity, external_id=external_id, name=name)
        return parent, UpsertOutcome.created(entity, name, parent.id)

    # ---------------- property ----------------

    def _property_values(self, record: PropertyRecord) -> Dict[str, Any]:
        description = clean_html_content(record.description)
        coordinates = parse_coordinates(record.address)
        latitude, longitude = coordinates if coordinates else (None, None)
        return {
            "title": clean_html_content(record.title) or record.title,
            "description": description or None,
            "status": map_property_status(record.status),
            "sales_status": map_sales_status(record.sales_status),
            "property_type": map_property_type(record.property_type),
            "min_price": record.min_price,
            "max_price": record.max_price,
            "currency": record.currency or "AED",
            "min_area": record.min_area,
            "max_area": record.max_area,
            "area_unit": record.area_unit or "sqft",
            "latitude": latitude,
            "longitude": longitude,
            "delivery_date": parse_date(record.delivery_date),
            "handover_year": record.handover_year,
            "handover_quarter": record.handover_quarter,
            "hero_image": record.hero_image,
            "brochure_url": record.brochure_url,
            "video_url": record.video_url,
            "amenities": record.amenities,
            "facilities": record.facilities,
            "payment_plans": record.payment_plans,
            "key_features": extract_key_features(description),
            "location_highlights": extract_location_highlights(description),
        }

    async def upsert_property(
        self, record: PropertyRecord, options: Optional[SyncOptions] = None
    ) -> List[UpsertOutcome]:
        """Upsert one property and replace the child collections it carries.

        The first outcome in the returned list is always the property's own.
        """
        options = options or SyncOptions()
        label = record.title
        outcomes: List[UpsertOutcome] = []

        developer, stub = await self._resolve_parent(
            Developer, "developers", record.developer_external_id, record.developer_name, UNKNOWN_DEVELOPER
        )
        if stub:
            outcomes.append(stub)
        if developer is None:
            logger.warning("property_developer_not_found", property=label, external_id=record.external_id)
            return [UpsertOutcome.skipped("properties", label, f"Developer not found for property {label}")] + outcomes

        city, stub = await self._resolve_parent(
            City, "cities", record.city_external_id, record.city_name, UNKNOWN_CITY
        )
        if stub:
            outcomes.append(stub)
        if city is None:
            logger.warning("property_city_not_found", property=label, external_id=record.external_id)
            return [UpsertOutcome.skipped("properties", label, f"City not found for property {label}")] + outcomes

        district = await self._find_by_external_id(District, record.district_external_id)

        values = self._property_values(record)
        values["developer_id"] = developer.id
        values["city_id"] = city.id
        values["district_id"] = district.id if district else None

        try:
            async with self.db.begin_nested():
                prop = await self._find_by_external_id(Property, record.external_id)
                if prop is None:
                    slug = await self.unique_slug(Property, slugify(values["title"]), record.external_id)
                    prop = Property(external_id=record.external_id, slug=slug, **values)
                    self.db.add(prop)
                    action = UpsertAction.CREATED
                else:
                    # The slug is fixed at creation.
                    for field, value in values.items():
                        setattr(prop, field, value)
                    action = UpsertAction.UPDATED
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("property_upsert_failed", property=label, external_id=record.external_id, error=str(e))
            return [UpsertOutcome.failed("properties", label, f"Property sync failed for {label}: {e}")] + outcomes

        outcomes.insert(0, UpsertOutcome(entity="properties", action=action, label=label, record_id=prop.id))

        if record.images is not None and not options.skip_images:
            outcomes.append(await self.replace_images(prop.id, record.images))
        if record.floor_plans is not None and not options.skip_floor_plans:
            outcomes.append(await self.replace_floor_plans(prop.id, record.floor_plans))
        if record.units is not None:
            outcomes.append(await self.replace_units(prop.id, record.units))

        return outcomes

    # ---------------- children ----------------

    async def _replace_children(
        self, model: Type[Any], entity: str, property_id: int, rows: List[Any]
    ) -> UpsertOutcome:
        label = f"property {property_id}"
        try:
            async with self.db.begin_nested():
                await self.db.execute(delete(model).where(model.property_id == property_id))
                self.db.add_all(rows)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("child_replace_failed", entity=entity, property_id=property_id, error=str(e))
            return UpsertOutcome.failed(entity, label, f"Failed to sync {entity} for {label}: {e}")
        return UpsertOutcome.created(entity, label, property_id, count=len(rows))

    async def replace_images(self, property_id: int, images: ImageSet) -> UpsertOutcome:
        rows = [
            PropertyImage(
                property_id=property_id,
                url=image.url,
                alt=image.alt,
                caption=image.caption,
                tag=(
                    map_image_type_code(image.type_code)
                    if images.source == "current"
                    else map_image_tag(image.tag)
                ),
                sort_order=image.sort_order,
                width=image.width,
                height=image.height,
                file_size=image.file_size,
            )
            for image in images.items
        ]
        return await self._replace_children(PropertyImage, "images", property_id, rows)

    async def replace_floor_plans(self, property_id: int, floor_plans: FloorPlanSet) -> UpsertOutcome:
        rows = [
            FloorPlan(property_id=property_id, **plan.model_dump())
            for plan in floor_plans.items
        ]
        return await self._replace_children(FloorPlan, "floor_plans", property_id, rows)

    async def replace_units(self, property_id: int, units: UnitSet) -> UpsertOutcome:
        rows = [
            Unit(
                property_id=property_id,
                external_id=unit.external_id,
                category=unit.category,
                title=unit.title,
                unit_type=unit.unit_type,
                bedrooms=unit.bedrooms,
                bathrooms=unit.bathrooms,
                size=unit.size,
                price=unit.price,
                price_per_sqft=unit.price_per_sqft,
                floor=unit.floor,
                view=unit.view,
                orientation=unit.orientation,
                status=map_unit_status(unit.status),
                availability=unit.availability if unit.availability is not None else 1,
                service_charge=unit.service_charge,
                payment_plan=unit.payment_plan,
            )
            for unit in units.items
        ]
        return await self._replace_children(Unit, "units", property_id, rows)
