"""
Pydantic schemas for garment analysis and wardrobe records.

Field names are serialized in camelCase to match the wardrobe record format
shared with the mobile app and the cart-comparison extension.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from wardrobe_vision.cv.color_extractor import REVIEW_COLOR_LABELS
from wardrobe_vision.cv.garment_analyzer import GarmentItem
from wardrobe_vision.models.wardrobe import WardrobeItem


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BoundingBox(CamelModel):
    """Rectangle in original-photo pixels."""
    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


# Pending review items
class PendingItem(CamelModel):
    """Garment detected in an upload, awaiting review."""
    id: UUID
    category_name: str
    color_label: str
    bounding_box: BoundingBox
    source_filename: str
    color_rgb: List[float] = Field(..., min_length=3, max_length=3)

    @classmethod
    def from_item(cls, item: GarmentItem) -> "PendingItem":
        return cls(
            id=item.id,
            category_name=item.category_name,
            color_label=item.color_label,
            bounding_box=BoundingBox(**item.bounding_box.to_dict()),
            source_filename=item.source_filename,
            color_rgb=list(item.color_rgb),
        )


class ColorLabelUpdate(CamelModel):
    """Schema for relabeling a garment's color during review."""
    color_label: str

    @field_validator("color_label")
    @classmethod
    def validate_color_label(cls, v: str) -> str:
        if v not in REVIEW_COLOR_LABELS:
            raise ValueError(f"Color label must be one of: {', '.join(REVIEW_COLOR_LABELS)}")
        return v


class ItemIdsRequest(CamelModel):
    """Schema for operations on a selection of items."""
    item_ids: List[UUID] = Field(..., min_length=1)

    @field_validator("item_ids")
    @classmethod
    def drop_duplicate_ids(cls, v: List[UUID]) -> List[UUID]:
        # First occurrence wins; a repeated id selects the item once
        return list(dict.fromkeys(v))


# Batch progress
class BatchSummary(CamelModel):
    """Outcome of the last finished batch."""
    processed_count: int
    total_count: int
    item_count: int
    failed_filenames: List[str]
    completed_at: datetime


class BatchProgressResponse(CamelModel):
    """Progress of the upload queue."""
    is_processing: bool
    processed_count: int
    total_count: int
    last_batch: Optional[BatchSummary] = None


class BatchSubmitResponse(CamelModel):
    """Response after queueing uploaded photos."""
    status: str = "queued"
    queued_count: int
    rejected_filenames: List[str] = []
    progress: BatchProgressResponse


# Wardrobe records
class WardrobeItemRecord(CamelModel):
    """
    Persisted wardrobe record.

    Serialized shape: {id, imageFilename, categoryName, colorLabel, dateAdded,
    originalImageFilename?, boundingBox?: {x, y, width, height}}
    """
    id: UUID
    image_filename: str
    category_name: str
    color_label: str
    date_added: datetime
    original_image_filename: Optional[str] = None
    bounding_box: Optional[BoundingBox] = None

    @classmethod
    def from_model(cls, item: WardrobeItem) -> "WardrobeItemRecord":
        bounding_box = None
        if item.has_bounding_box:
            bounding_box = BoundingBox(
                x=item.bounding_box_x,
                y=item.bounding_box_y,
                width=item.bounding_box_width,
                height=item.bounding_box_height,
            )
        return cls(
            id=item.id,
            image_filename=item.image_filename,
            category_name=item.category_name,
            color_label=item.color_label,
            date_added=item.date_added,
            original_image_filename=item.original_image_filename,
            bounding_box=bounding_box,
        )
