"""
Wardrobe item model.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Float, Uuid

from wardrobe_vision.core.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WardrobeItem(Base):
    """
    A garment the user committed to their wardrobe.

    The cutout image lives in object storage under image_filename.
    Bounding box columns are in original-photo pixels and may be null for
    items that were not produced by the garment pipeline.
    """
    __tablename__ = "wardrobe_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    image_filename = Column(String(255), nullable=False, unique=True)

    # Classification
    category_name = Column(String(50), nullable=False, index=True)  # e.g., "Tops"
    color_label = Column(String(50), nullable=False)  # e.g., "blue", "multicolor"

    # Provenance
    original_image_filename = Column(String(512), nullable=True)
    bounding_box_x = Column(Float, nullable=True)
    bounding_box_y = Column(Float, nullable=True)
    bounding_box_width = Column(Float, nullable=True)
    bounding_box_height = Column(Float, nullable=True)

    # Timestamps
    date_added = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    @property
    def has_bounding_box(self) -> bool:
        return None not in (
            self.bounding_box_x,
            self.bounding_box_y,
            self.bounding_box_width,
            self.bounding_box_height,
        )

    def __repr__(self):
        return f"<WardrobeItem {self.category_name} ({self.color_label})>"
