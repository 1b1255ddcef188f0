"""Upstream (Estaty) payload schemas.

The upstream API has shipped two response shapes for property media and
units:

* current: ``property_images``, ``grouped_apartments``,
  ``residential_units`` and ``commercial_units``
* legacy: ``images``, ``floor_plans`` and ``units``

``PropertyPayload.to_record`` folds either shape into one canonical
``PropertyRecord``. Each child collection is resolved on its own. The
current field wins whenever it is present, and the legacy field is only
read when the current one is missing entirely. The two are never merged.
A collection that is missing from the payload comes out as ``None``, which
means "leave stored rows alone". An empty list means "no rows".
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from offplan.utils.text import normalize_payment_plans, parse_float, parse_int, string_list


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, tuple)):
        return None
    text = str(value).strip()
    return text or None


def _as_list(value: Any) -> Optional[List[Any]]:
    if value is None:
        return None
    if isinstance(value, list):
        return value
    # Anything else is as good as absent.
    return None


LenientFloat = Annotated[Optional[float], BeforeValidator(parse_float)]
LenientInt = Annotated[Optional[int], BeforeValidator(parse_int)]
LenientStr = Annotated[Optional[str], BeforeValidator(_as_text)]
RawList = Annotated[Optional[List[Any]], BeforeValidator(_as_list)]

PayloadShape = Literal["current", "legacy"]

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


def parse_items(model: Type[ModelT], raw_items: Optional[List[Any]]) -> List[ModelT]:
    """Validate each item on its own; malformed entries are dropped."""
    items: List[ModelT] = []
    for raw in raw_items or []:
        if not isinstance(raw, dict):
            continue
        try:
            items.append(model.model_validate(raw))
        except ValidationError:
            continue
    return items


# ---------------- Reference data ----------------


class ReferenceItem(UpstreamModel):
    """Shared shape of developers, cities and districts from ``getFilters``."""
    id: int
    name: LenientStr = None
    title: LenientStr = None
    name_ar: LenientStr = None
    latitude: LenientFloat = None
    longitude: LenientFloat = None

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.title


class DeveloperPayload(ReferenceItem):
    logo: LenientStr = None
    description: LenientStr = None
    website: LenientStr = None
    phone: LenientStr = None
    email: LenientStr = None
    headquarters: LenientStr = None


class CityPayload(ReferenceItem):
    pass


class DistrictPayload(ReferenceItem):
    city_id: LenientInt = None


class EstatyFilters(BaseModel):
    """``getFilters`` response with its aliased collection keys resolved."""
    cities: List[Any] = Field(default_factory=list)
    developers: List[Any] = Field(default_factory=list)
    districts: List[Any] = Field(default_factory=list)
    property_types: List[Any] = Field(default_factory=list)
    amenities: List[Any] = Field(default_factory=list)
    facilities: List[Any] = Field(default_factory=list)
    payment_plans: List[Any] = Field(default_factory=list)
    views: List[Any] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict)

    def developer_items(self) -> List[DeveloperPayload]:
        return parse_items(DeveloperPayload, self.developers)

    def city_items(self) -> List[CityPayload]:
        return parse_items(CityPayload, self.cities)

    def district_items(self) -> List[DistrictPayload]:
        return parse_items(DistrictPayload, self.districts)


# ---------------- Child payloads ----------------


class CurrentImagePayload(UpstreamModel):
    image: LenientStr = None
    property_id: LenientInt = None
    type: LenientInt = None


class LegacyImagePayload(UpstreamModel):
    url: LenientStr = None
    image: LenientStr = None
    alt: LenientStr = None
    caption: LenientStr = None
    tag: LenientStr = None
    sort_order: LenientInt = None
    width: LenientInt = None
    height: LenientInt = None
    file_size: LenientInt = None


class GroupedApartmentPayload(UpstreamModel):
    unit_type: LenientStr = Field(default=None, alias="Unit_Type")
    rooms: LenientStr = Field(default=None, alias="Rooms")
    min_price: LenientFloat = None
    max_price: LenientFloat = None
    min_area: LenientFloat = None
    max_area: LenientFloat = None
    floor_plan_image: LenientStr = None
    floor_plan_pdf: LenientStr = None


class LegacyFloorPlanPayload(UpstreamModel):
    title: LenientStr = None
    plan_type: LenientStr = None
    bedrooms: LenientInt = None
    bathrooms: LenientInt = None
    size: LenientFloat = None
    image_url: LenientStr = None
    pdf_url: LenientStr = None
    pages: Any = None
    width: LenientInt = None
    height: LenientInt = None
    file_size: LenientInt = None


class UnitPayload(UpstreamModel):
    id: LenientInt = None
    title: LenientStr = None
    unit_type: LenientStr = None
    bedrooms: LenientInt = None
    bathrooms: LenientInt = None
    size: LenientFloat = None
    price: LenientFloat = None
    price_per_sqft: LenientFloat = None
    floor: LenientInt = None
    view: LenientStr = None
    orientation: LenientStr = None
    status: Any = None
    availability: LenientInt = None
    service_charge: LenientFloat = None
    payment_plan: Any = None


# ---------------- Canonical records ----------------


class ImageRecord(BaseModel):
    url: str
    alt: str = ""
    caption: Optional[str] = None
    tag: Optional[str] = None
    type_code: Optional[int] = None
    sort_order: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None


class FloorPlanRecord(BaseModel):
    title: str
    plan_type: str = "2D"
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size: Optional[float] = None
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None
    pages: Any = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None


class UnitRecord(BaseModel):
    category: str
    external_id: Optional[int] = None
    title: Optional[str] = None
    unit_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size: Optional[float] = None
    price: Optional[float] = None
    price_per_sqft: Optional[float] = None
    floor: Optional[int] = None
    view: Optional[str] = None
    orientation: Optional[str] = None
    status: Any = None
    availability: Optional[int] = None
    service_charge: Optional[float] = None
    payment_plan: Any = None


class ImageSet(BaseModel):
    source: PayloadShape
    items: List[ImageRecord]


class FloorPlanSet(BaseModel):
    source: PayloadShape
    items: List[FloorPlanRecord]


class UnitSet(BaseModel):
    source: PayloadShape
    items: List[UnitRecord]


class PropertyRecord(BaseModel):
    """Canonical property, independent of the upstream response shape."""
    external_id: int
    title: str
    developer_external_id: Optional[int] = None
    developer_name: Optional[str] = None
    city_external_id: Optional[int] = None
    city_name: Optional[str] = None
    district_external_id: Optional[int] = None

    description: Optional[str] = None
    status: Any = None
    sales_status: Any = None
    property_type: Any = None

    min_price: Optional[float] = None
    max_price: Optional[float] = None
    currency: Optional[str] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    area_unit: Optional[str] = None
    address: Optional[str] = None

    delivery_date: Any = None
    handover_year: Optional[int] = None
    handover_quarter: Optional[int] = None

    hero_image: Optional[str] = None
    brochure_url: Optional[str] = None
    video_url: Optional[str] = None

    amenities: List[str] = Field(default_factory=list)
    facilities: List[str] = Field(default_factory=list)
    payment_plans: List[str] = Field(default_factory=list)

    images: Optional[ImageSet] = None
    floor_plans: Optional[FloorPlanSet] = None
    units: Optional[UnitSet] = None


# ---------------- Property payload ----------------


class PropertyPayload(UpstreamModel):
    """Raw upstream property in either response shape."""
    id: int
    title: LenientStr = None
    developer_company_id: LenientInt = None
    developer_name: LenientStr = None
    developer: Any = None
    city_id: LenientInt = None
    city_name: LenientStr = None
    district_id: LenientInt = None

    description: LenientStr = None
    status: Any = None
    sales_status: Any = None
    property_type: Any = None

    min_price: LenientFloat = None
    max_price: LenientFloat = None
    currency: LenientStr = None
    min_area: LenientFloat = None
    max_area: LenientFloat = None
    area_unit: LenientStr = None
    address: Any = None

    delivery_date: Any = None
    handover_year: LenientInt = None
    handover_quarter: LenientInt = None

    hero_image: LenientStr = None
    brochure_url: LenientStr = None
    video_url: LenientStr = None

    amenities: Any = None
    facilities: Any = None
    payment_plans: Any = None

    # Current shape
    property_images: RawList = None
    grouped_apartments: RawList = None
    residential_units: RawList = None
    commercial_units: RawList = None

    # Legacy shape
    images: RawList = None
    floor_plans: RawList = None
    units: RawList = None

    @model_validator(mode="before")
    @classmethod
    def _require_mapping(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("property payload must be an object")
        return data

    @property
    def label(self) -> str:
        return self.title or f"#{self.id}"

    def has_embedded_media(self) -> bool:
        """True when a list response already carries images or floor plans."""
        return any(
            value is not None
            for value in (
                self.property_images,
                self.images,
                self.grouped_apartments,
                self.floor_plans,
            )
        )

    def to_record(self) -> PropertyRecord:
        return PropertyRecord(
            external_id=self.id,
            title=self.title or f"Property {self.id}",
            developer_external_id=self.developer_company_id,
            developer_name=self.developer_name or _as_text(self.developer),
            city_external_id=self.city_id,
            city_name=self.city_name,
            district_external_id=self.district_id,
            description=self.description,
            status=self.status,
            sales_status=self.sales_status,
            property_type=self.property_type,
            min_price=self.min_price,
            max_price=self.max_price,
            currency=self.currency,
            min_area=self.min_area,
            max_area=self.max_area,
            area_unit=self.area_unit,
            address=_as_text(self.address),
            delivery_date=self.delivery_date,
            handover_year=self.handover_year,
            handover_quarter=self.handover_quarter,
            hero_image=self.hero_image,
            brochure_url=self.brochure_url,
            video_url=self.video_url,
            amenities=string_list(self.amenities),
            facilities=string_list(self.facilities),
            payment_plans=normalize_payment_plans(self.payment_plans),
            images=self._image_set(),
            floor_plans=self._floor_plan_set(),
            units=self._unit_set(),
        )

    def _image_set(self) -> Optional[ImageSet]:
        if self.property_images is not None:
            records = [
                ImageRecord(url=item.image, type_code=item.type, sort_order=index)
                for index, item in enumerate(parse_items(CurrentImagePayload, self.property_images))
                if item.image
            ]
            return ImageSet(source="current", items=records)

        if self.images is not None:
            records = []
            for index, item in enumerate(parse_items(LegacyImagePayload, self.images)):
                url = item.url or item.image
                if not url:
                    continue
                records.append(
                    ImageRecord(
                        url=url,
                        alt=item.alt or "",
                        caption=item.caption,
                        tag=item.tag,
                        sort_order=item.sort_order if item.sort_order is not None else index,
                        width=item.width,
                        height=item.height,
                        file_size=item.file_size,
                    )
                )
            return ImageSet(source="legacy", items=records)

        return None

    def _floor_plan_set(self) -> Optional[FloorPlanSet]:
        if self.grouped_apartments is not None:
            records = []
            for apartment in parse_items(GroupedApartmentPayload, self.grouped_apartments):
                title = " - ".join(part for part in (apartment.unit_type, apartment.rooms) if part)
                records.append(
                    FloorPlanRecord(
                        title=title or "Floor Plan",
                        plan_type="2D" if apartment.floor_plan_image else "Text",
                        bedrooms=_first_int(apartment.rooms),
                        size=apartment.min_area or None,
                        image_url=apartment.floor_plan_image,
                        pdf_url=apartment.floor_plan_pdf,
                    )
                )
            return FloorPlanSet(source="current", items=records)

        if self.floor_plans is not None:
            records = [
                FloorPlanRecord(
                    title=plan.title or "Floor Plan",
                    plan_type=plan.plan_type or "2D",
                    bedrooms=plan.bedrooms,
                    bathrooms=plan.bathrooms,
                    size=plan.size,
                    image_url=plan.image_url,
                    pdf_url=plan.pdf_url,
                    pages=plan.pages or None,
                    width=plan.width,
                    height=plan.height,
                    file_size=plan.file_size,
                )
                for plan in parse_items(LegacyFloorPlanPayload, self.floor_plans)
            ]
            return FloorPlanSet(source="legacy", items=records)

        return None

    def _unit_set(self) -> Optional[UnitSet]:
        if self.residential_units is not None or self.commercial_units is not None:
            records = _unit_records(self.residential_units, "residential")
            records += _unit_records(self.commercial_units, "commercial")
            return UnitSet(source="current", items=records)

        if self.units is not None:
            return UnitSet(source="legacy", items=_unit_records(self.units, "legacy"))

        return None


def _first_int(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    digits = ""
    for char in text:
        if char.isdigit():
            digits += char
        elif digits:
            break
    return int(digits) if digits else None


def _unit_records(raw_units: Optional[List[Any]], category: str) -> List[UnitRecord]:
    return [
        UnitRecord(
            category=category,
            external_id=unit.id,
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
            status=unit.status,
            availability=unit.availability,
            service_charge=unit.service_charge,
            payment_plan=unit.payment_plan,
        )
        for unit in parse_items(UnitPayload, raw_units)
    ]
