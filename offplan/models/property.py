"""Property model for off-plan project listings."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from offplan.database import Base

if TYPE_CHECKING:
    from offplan.models.city import City
    from offplan.models.developer import Developer
    from offplan.models.district import District
    from offplan.models.floor_plan import FloorPlan
    from offplan.models.property_image import PropertyImage
    from offplan.models.unit import Unit


class PropertyStatus(str, Enum):
    """Construction lifecycle of a project."""
    UPCOMING = "UPCOMING"
    UNDER_CONSTRUCTION = "UNDER_CONSTRUCTION"
    READY = "READY"
    COMPLETED = "COMPLETED"
    SOLD_OUT = "SOLD_OUT"


class SalesStatus(str, Enum):
    """Commercial availability of a project."""
    AVAILABLE = "AVAILABLE"
    LIMITED_AVAILABILITY = "LIMITED_AVAILABILITY"
    SOLD_OUT = "SOLD_OUT"
    COMING_SOON = "COMING_SOON"


class PropertyType(str, Enum):
    """Property type enumeration."""
    RESIDENTIAL = "RESIDENTIAL"
    COMMERCIAL = "COMMERCIAL"
    MIXED_USE = "MIXED_USE"
    INDUSTRIAL = "INDUSTRIAL"


class Property(Base):
    """Off-plan project mirrored from the upstream API."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(Integer, unique=True, index=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(300), unique=True, index=True, nullable=False)

    # Basic Information
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default=PropertyStatus.UPCOMING.value, index=True
    )
    sales_status: Mapped[str] = mapped_column(
        String(50), default=SalesStatus.AVAILABLE.value, index=True
    )
    property_type: Mapped[str] = mapped_column(
        String(50), default=PropertyType.RESIDENTIAL.value
    )

    # Ownership
    developer_id: Mapped[int] = mapped_column(
        ForeignKey("developers.id"), index=True, nullable=False
    )
    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), index=True, nullable=False)
    district_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("districts.id"), index=True, nullable=True
    )

    # Pricing and size
    min_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True, index=True)
    max_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(10), default="AED")
    min_area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    area_unit: Mapped[str] = mapped_column(String(10), default="sqft")

    # Location
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Delivery
    delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    handover_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    handover_quarter: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Media
    hero_image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    brochure_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    video_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Tags
    amenities: Mapped[List[str]] = mapped_column(JSON, default=list)
    facilities: Mapped[List[str]] = mapped_column(JSON, default=list)
    payment_plans: Mapped[List[str]] = mapped_column(JSON, default=list)
    key_features: Mapped[List[str]] = mapped_column(JSON, default=list)
    location_highlights: Mapped[List[str]] = mapped_column(JSON, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    developer: Mapped["Developer"] = relationship(back_populates="properties")
    city: Mapped["City"] = relationship(back_populates="properties")
    district: Mapped[Optional["District"]] = relationship(back_populates="properties")
    units: Mapped[List["Unit"]] = relationship(
        back_populates="property", cascade="all, delete-orphan", passive_deletes=True
    )
    images: Mapped[List["PropertyImage"]] = relationship(
        back_populates="property", cascade="all, delete-orphan", passive_deletes=True
    )
    floor_plans: Mapped[List["FloorPlan"]] = relationship(
        back_populates="property", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Property {self.title} ({self.external_id})>"
