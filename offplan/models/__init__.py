"""Models package initialization."""

from offplan.models.city import City
from offplan.models.developer import Developer
from offplan.models.district import District
from offplan.models.floor_plan import FloorPlan
from offplan.models.property import Property, PropertyStatus, PropertyType, SalesStatus
from offplan.models.property_image import ImageTag, PropertyImage
from offplan.models.unit import Unit, UnitCategory, UnitStatus

__all__ = [
    # Reference data
    "Developer",
    "City",
    "District",
    # Property
    "Property",
    "PropertyStatus",
    "SalesStatus",
    "PropertyType",
    # Children
    "Unit",
    "UnitStatus",
    "UnitCategory",
    "PropertyImage",
    "ImageTag",
    "FloorPlan",
]
