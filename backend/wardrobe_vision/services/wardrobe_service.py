"""
Wardrobe service for committed garment records.

Handles:
- Committing reviewed garments (record + cutout image)
- Listing, recent items and per-category counts
- Color relabeling
- Removal with image cleanup
"""
import logging
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from wardrobe_vision.core.database import get_db
from wardrobe_vision.cv.color_extractor import REVIEW_COLOR_LABELS, UNKNOWN_COLOR
from wardrobe_vision.cv.garment_analyzer import GarmentItem
from wardrobe_vision.models import WardrobeItem
from wardrobe_vision.schemas.garment import WardrobeItemRecord
from wardrobe_vision.services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)


class UnresolvedColorError(ValueError):
    """Raised when a garment still labeled "unknown color" is committed."""

    def __init__(self, items: Sequence[GarmentItem]):
        self.item_ids = [item.id for item in items]
        super().__init__(
            f"{len(self.item_ids)} item(s) still have '{UNKNOWN_COLOR}' and need a color first"
        )


class WardrobeService:
    """Explicit wardrobe store backed by the database and object storage."""

    def __init__(self, db: Session, storage: StorageService):
        """Initialize wardrobe service with database session and storage."""
        self.db = db
        self.storage = storage

    # ========================================================================
    # Commit
    # ========================================================================

    def add_items(self, items: Sequence[GarmentItem]) -> List[WardrobeItem]:
        """
        Commit reviewed garments to the wardrobe.

        Args:
            items: Pending garment items, colors already reviewed

        Returns:
            Created WardrobeItem records

        Raises:
            UnresolvedColorError: If any item is still "unknown color"
            RuntimeError: If a cutout cannot be stored; cutouts already
                uploaded by this call are deleted again
        """
        # The same pending item is committed once
        items = list({item.id: item for item in items}.values())

        unresolved = [item for item in items if item.color_label == UNKNOWN_COLOR]
        if unresolved:
            raise UnresolvedColorError(unresolved)

        records = []
        uploaded: List[str] = []
        try:
            for item in items:
                item_id = uuid4()
                image_filename = f"wardrobe_item_{item_id}.png"
                object_path = self.storage.generate_object_path(image_filename)
                self.storage.upload_bytes(
                    object_path,
                    item.cutout_image_bytes,
                    content_type="image/png",
                )
                uploaded.append(object_path)

                box = item.bounding_box
                record = WardrobeItem(
                    id=item_id,
                    image_filename=image_filename,
                    category_name=item.category_name,
                    color_label=item.color_label,
                    original_image_filename=item.source_filename,
                    bounding_box_x=box.x,
                    bounding_box_y=box.y,
                    bounding_box_width=box.width,
                    bounding_box_height=box.height,
                )
                self.db.add(record)
                records.append(record)

            self.db.commit()
        except Exception:
            self.db.rollback()
            for object_path in uploaded:
                self._delete_object(object_path)
            raise

        for record in records:
            self.db.refresh(record)

        logger.info(f"Added {len(records)} items to wardrobe")
        return records

    # ========================================================================
    # Queries
    # ========================================================================

    def list_items(self) -> List[WardrobeItem]:
        return self.db.query(WardrobeItem).order_by(WardrobeItem.date_added).all()

    def get_item(self, item_id: UUID) -> Optional[WardrobeItem]:
        return self.db.query(WardrobeItem).filter(WardrobeItem.id == item_id).first()

    def get_recent_items(self, count: int = 5) -> List[WardrobeItem]:
        return (
            self.db.query(WardrobeItem)
            .order_by(desc(WardrobeItem.date_added))
            .limit(count)
            .all()
        )

    def get_category_counts(self) -> Dict[str, int]:
        rows = (
            self.db.query(WardrobeItem.category_name, func.count(WardrobeItem.id))
            .group_by(WardrobeItem.category_name)
            .all()
        )
        return {category: count for category, count in rows}

    def load_image(self, item: WardrobeItem) -> bytes:
        """Fetch the stored cutout PNG for an item."""
        return self.storage.download_bytes(self.storage.generate_object_path(item.image_filename))

    def export_records(self) -> List[Dict]:
        """Serialize every item in the shared wardrobe record format."""
        return [
            WardrobeItemRecord.from_model(item).model_dump(mode="json", by_alias=True, exclude_none=True)
            for item in self.list_items()
        ]

    # ========================================================================
    # Updates
    # ========================================================================

    def update_color_label(self, item_id: UUID, color_label: str) -> Optional[WardrobeItem]:
        """
        Relabel an item's color.

        Raises:
            ValueError: If the label is not a known color or "multicolor"
        """
        if color_label not in REVIEW_COLOR_LABELS:
            raise ValueError(f"Unknown color label: {color_label}")

        item = self.get_item(item_id)
        if item is None:
            return None

        item.color_label = color_label
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Relabeled wardrobe item {item_id} as {color_label}")
        return item

    def remove_item(self, item_id: UUID) -> bool:
        """
        Delete an item and its stored image.

        Returns:
            False if no item has this id
        """
        item = self.get_item(item_id)
        if item is None:
            return False

        self._delete_image(item)
        self.db.delete(item)
        self.db.commit()
        return True

    def remove_items(self, item_ids: Sequence[UUID]) -> int:
        """Delete several items; returns how many existed."""
        items = self.db.query(WardrobeItem).filter(WardrobeItem.id.in_(list(item_ids))).all()
        for item in items:
            self._delete_image(item)
            self.db.delete(item)
        self.db.commit()

        logger.info(f"Removed {len(items)} of {len(item_ids)} requested wardrobe items")
        return len(items)

    def _delete_image(self, item: WardrobeItem) -> None:
        self._delete_object(self.storage.generate_object_path(item.image_filename))

    def _delete_object(self, object_path: str) -> None:
        # A missing or unreachable image must not block the database change
        try:
            self.storage.delete_file(object_path)
        except RuntimeError as e:
            logger.error(f"Error deleting image {object_path}: {e}")


def get_wardrobe_service(db: Session = Depends(get_db)) -> WardrobeService:
    """
    Dependency for getting wardrobe service instance.

    Args:
        db: Database session

    Returns:
        WardrobeService instance
    """
    return WardrobeService(db, get_storage_service())
