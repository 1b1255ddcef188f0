"""Upstream free-text values mapped onto local enumerations.

Every lookup normalizes the upstream value first (``"Sold Out"`` and
``"sold-out"`` both become ``sold_out``) and falls back to a default instead
of failing.
"""

from typing import Any, Dict, Optional

from offplan.models.property import PropertyStatus, PropertyType, SalesStatus
from offplan.models.property_image import ImageTag
from offplan.models.unit import UnitStatus
from offplan.utils.text import normalize_key

PROPERTY_STATUS_MAP: Dict[str, PropertyStatus] = {
    "upcoming": PropertyStatus.UPCOMING,
    "under_construction": PropertyStatus.UNDER_CONSTRUCTION,
    "ready": PropertyStatus.READY,
    "completed": PropertyStatus.COMPLETED,
    "sold_out": PropertyStatus.SOLD_OUT,
}

SALES_STATUS_MAP: Dict[str, SalesStatus] = {
    "available": SalesStatus.AVAILABLE,
    "limited_availability": SalesStatus.LIMITED_AVAILABILITY,
    "sold_out": SalesStatus.SOLD_OUT,
    "coming_soon": SalesStatus.COMING_SOON,
}

PROPERTY_TYPE_MAP: Dict[str, PropertyType] = {
    "residential": PropertyType.RESIDENTIAL,
    "commercial": PropertyType.COMMERCIAL,
    "mixed_use": PropertyType.MIXED_USE,
    "industrial": PropertyType.INDUSTRIAL,
}

UNIT_STATUS_MAP: Dict[str, UnitStatus] = {
    "available": UnitStatus.AVAILABLE,
    "reserved": UnitStatus.RESERVED,
    "sold": UnitStatus.SOLD,
    "not_available": UnitStatus.NOT_AVAILABLE,
}

IMAGE_TAG_MAP: Dict[str, ImageTag] = {tag.value.lower(): tag for tag in ImageTag}

# Numeric image types seen on the current response shape.
IMAGE_TYPE_CODES: Dict[int, ImageTag] = {
    1: ImageTag.HERO,
    2: ImageTag.GALLERY,
    3: ImageTag.AMENITY,
}


def map_property_status(value: Any) -> str:
    return PROPERTY_STATUS_MAP.get(normalize_key(value), PropertyStatus.UPCOMING).value


def map_sales_status(value: Any) -> str:
    return SALES_STATUS_MAP.get(normalize_key(value), SalesStatus.AVAILABLE).value


def map_property_type(value: Any) -> str:
    return PROPERTY_TYPE_MAP.get(normalize_key(value), PropertyType.RESIDENTIAL).value


def map_unit_status(value: Any) -> str:
    return UNIT_STATUS_MAP.get(normalize_key(value), UnitStatus.AVAILABLE).value


def map_image_tag(tag: Optional[str]) -> str:
    return IMAGE_TAG_MAP.get(normalize_key(tag), ImageTag.GALLERY).value


def map_image_type_code(code: Optional[int]) -> str:
    return IMAGE_TYPE_CODES.get(code if code is not None else 2, ImageTag.GALLERY).value
