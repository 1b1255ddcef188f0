"""Schemas package initialization."""

from offplan.schemas.estaty import (
    CityPayload,
    DeveloperPayload,
    DistrictPayload,
    EstatyFilters,
    FloorPlanRecord,
    ImageRecord,
    PropertyPayload,
    PropertyRecord,
    UnitRecord,
)
from offplan.schemas.sync import (
    EntityCounters,
    SyncOptions,
    SyncRequest,
    SyncResponse,
    SyncStats,
    SyncStatus,
    SyncStatusResponse,
)

__all__ = [
    # Upstream payloads
    "DeveloperPayload",
    "CityPayload",
    "DistrictPayload",
    "EstatyFilters",
    "PropertyPayload",
    "PropertyRecord",
    "ImageRecord",
    "FloorPlanRecord",
    "UnitRecord",
    # Sync
    "SyncOptions",
    "SyncStats",
    "EntityCounters",
    "SyncRequest",
    "SyncResponse",
    "SyncStatus",
    "SyncStatusResponse",
]
