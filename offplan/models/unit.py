"""Unit model for individual apartments and commercial units."""

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from offplan.database import Base

if TYPE_CHECKING:
    from offplan.models.property import Property


class UnitStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    NOT_AVAILABLE = "NOT_AVAILABLE"


class UnitCategory(str, Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    LEGACY = "legacy"


class Unit(Base):
    """A sellable unit; replaced wholesale on every sync of its property."""

    __tablename__ = "units"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    external_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), index=True, nullable=False
    )
    category: Mapped[str] = mapped_column(String(20), default=UnitCategory.RESIDENTIAL.value)

    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    unit_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price_per_sqft: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    view: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    orientation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=UnitStatus.AVAILABLE.value)
    availability: Mapped[int] = mapped_column(Integer, default=1)
    service_charge: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    payment_plan: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="units")

    def __repr__(self) -> str:
        return f"<Unit {self.title} (property={self.property_id})>"
