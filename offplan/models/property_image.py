"""Property image model."""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from offplan.database import Base

if TYPE_CHECKING:
    from offplan.models.property import Property


class ImageTag(str, Enum):
    """Image classification."""
    HERO = "HERO"
    GALLERY = "GALLERY"
    AMENITY = "AMENITY"
    LOCATION = "LOCATION"
    FLOOR_PLAN = "FLOOR_PLAN"
    EXTERIOR = "EXTERIOR"
    INTERIOR = "INTERIOR"
    LIFESTYLE = "LIFESTYLE"
    MASTER_PLAN = "MASTER_PLAN"


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), index=True, nullable=False
    )

    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    alt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tag: Mapped[str] = mapped_column(String(20), default=ImageTag.GALLERY.value)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="images")

    def __repr__(self) -> str:
        return f"<PropertyImage {self.tag} {self.url}>"
