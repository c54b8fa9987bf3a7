"""
Pydantic schemas for request/response validation.
"""
from wardrobe_vision.schemas.garment import (
    BatchProgressResponse,
    BatchSubmitResponse,
    BatchSummary,
    BoundingBox,
    ColorLabelUpdate,
    ItemIdsRequest,
    PendingItem,
    WardrobeItemRecord,
)

__all__ = [
    "BatchProgressResponse",
    "BatchSubmitResponse",
    "BatchSummary",
    "BoundingBox",
    "ColorLabelUpdate",
    "ItemIdsRequest",
    "PendingItem",
    "WardrobeItemRecord",
]
