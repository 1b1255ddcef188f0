"""Sync schemas for options, statistics and the HTTP trigger."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ENTITY_CATEGORIES = (
    "developers",
    "cities",
    "districts",
    "properties",
    "units",
    "images",
    "floor_plans",
)


class SyncOptions(BaseModel):
    """Options accepted by a full sync run."""
    full: bool = True
    batch_size: int = Field(10, ge=1, le=100)
    include_drafts: bool = False
    skip_images: bool = False
    skip_floor_plans: bool = False


class EntityCounters(BaseModel):
    created: int = 0
    updated: int = 0
    errors: int = 0


class SyncStats(BaseModel):
    """Aggregated result of one sync run."""
    developers: EntityCounters = Field(default_factory=EntityCounters)
    cities: EntityCounters = Field(default_factory=EntityCounters)
    districts: EntityCounters = Field(default_factory=EntityCounters)
    properties: EntityCounters = Field(default_factory=EntityCounters)
    units: EntityCounters = Field(default_factory=EntityCounters)
    images: EntityCounters = Field(default_factory=EntityCounters)
    floor_plans: EntityCounters = Field(default_factory=EntityCounters)
    total_time_ms: int = 0
    errors: List[str] = Field(default_factory=list)

    def counters(self, category: str) -> EntityCounters:
        if category not in ENTITY_CATEGORIES:
            raise KeyError(category)
        return getattr(self, category)

    def record_error(self, category: Optional[str], message: str) -> None:
        if category is not None:
            self.counters(category).errors += 1
        self.errors.append(message)


# ---------------- HTTP ----------------


class SyncRequest(BaseModel):
    """Body of ``POST /api/sync``."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["full", "incremental"] = "incremental"
    force: bool = False
    batch_size: int = Field(10, ge=1, le=100)
    include_drafts: bool = False
    skip_images: bool = False
    skip_floor_plans: bool = False

    def to_options(self) -> SyncOptions:
        return SyncOptions(
            full=True,
            batch_size=self.batch_size,
            include_drafts=self.include_drafts,
            skip_images=self.skip_images,
            skip_floor_plans=self.skip_floor_plans,
        )


class SyncResponse(BaseModel):
    success: bool
    data: Optional[SyncStats] = None
    message: str
    timestamp: datetime


class SyncStatus(BaseModel):
    is_running: bool
    last_sync_time: Optional[datetime] = None
    cooldown_remaining: int = 0
    stats: Optional[Dict[str, int]] = None


class SyncStatusResponse(BaseModel):
    success: bool
    data: SyncStatus
