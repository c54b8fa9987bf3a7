"""
Wardrobe API endpoints.

Handles committed wardrobe items:
- POST /wardrobe/items - Commit reviewed pending garments
- GET /wardrobe/items - List items
- GET /wardrobe/items/recent - Most recently added items
- GET /wardrobe/items/export - Records in the shared wardrobe format
- GET /wardrobe/categories - Item count per category
- GET /wardrobe/items/{item_id}/image - Cutout PNG
- PATCH /wardrobe/items/{item_id}/color - Relabel color
- POST /wardrobe/items/remove - Remove several items
- DELETE /wardrobe/items/{item_id} - Remove item and image
"""
import logging
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from wardrobe_vision.api.v1.analysis import get_sequencer
from wardrobe_vision.schemas import ColorLabelUpdate, ItemIdsRequest, WardrobeItemRecord
from wardrobe_vision.services.batch_sequencer import BatchSequencer
from wardrobe_vision.services.wardrobe_service import (
    UnresolvedColorError,
    WardrobeService,
    get_wardrobe_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wardrobe", tags=["wardrobe"])


def _get_item_or_404(wardrobe: WardrobeService, item_id: UUID):
    item = wardrobe.get_item(item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Wardrobe item {item_id} not found"
        )
    return item


@router.post(
    "/items",
    response_model=List[WardrobeItemRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Commit pending garments to the wardrobe",
    description="""
    Move reviewed garments from the pending list into the wardrobe.

    Every selected garment must have a real color: items still labeled
    "unknown color" are refused with 409 and stay pending until relabeled.
    """,
)
def commit_items(
    request: ItemIdsRequest,
    sequencer: BatchSequencer = Depends(get_sequencer),
    wardrobe: WardrobeService = Depends(get_wardrobe_service),
) -> List[WardrobeItemRecord]:
    items = [sequencer.get_pending_item(item_id) for item_id in request.item_ids]
    missing = [str(item_id) for item_id, item in zip(request.item_ids, items) if item is None]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pending items not found: {', '.join(missing)}"
        )

    try:
        records = wardrobe.add_items(items)
    except UnresolvedColorError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except RuntimeError as e:
        logger.error(f"Failed to commit wardrobe items: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to store wardrobe images"
        )

    sequencer.remove_pending_items(request.item_ids)
    return [WardrobeItemRecord.from_model(record) for record in records]


@router.get(
    "/items",
    response_model=List[WardrobeItemRecord],
    summary="List wardrobe items",
)
def list_items(wardrobe: WardrobeService = Depends(get_wardrobe_service)) -> List[WardrobeItemRecord]:
    return [WardrobeItemRecord.from_model(item) for item in wardrobe.list_items()]


@router.get(
    "/items/recent",
    response_model=List[WardrobeItemRecord],
    summary="Most recently added wardrobe items",
)
def recent_items(
    count: int = Query(5, ge=1, le=100),
    wardrobe: WardrobeService = Depends(get_wardrobe_service),
) -> List[WardrobeItemRecord]:
    return [WardrobeItemRecord.from_model(item) for item in wardrobe.get_recent_items(count)]


@router.get(
    "/items/export",
    summary="Export wardrobe records",
)
def export_items(wardrobe: WardrobeService = Depends(get_wardrobe_service)) -> List[Dict[str, Any]]:
    return wardrobe.export_records()


@router.get(
    "/categories",
    summary="Item count per category",
)
def category_counts(wardrobe: WardrobeService = Depends(get_wardrobe_service)) -> Dict[str, int]:
    return wardrobe.get_category_counts()


@router.get(
    "/items/{item_id}/image",
    response_class=Response,
    summary="Get a wardrobe item's cutout image (PNG)",
)
def get_item_image(
    item_id: UUID = Path(..., description="Wardrobe item UUID"),
    wardrobe: WardrobeService = Depends(get_wardrobe_service),
) -> Response:
    item = _get_item_or_404(wardrobe, item_id)
    try:
        data = wardrobe.load_image(item)
    except RuntimeError as e:
        logger.error(f"Failed to load image for {item_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to load wardrobe image"
        )
    return Response(content=data, media_type="image/png")


@router.patch(
    "/items/{item_id}/color",
    response_model=WardrobeItemRecord,
    summary="Relabel a wardrobe item's color",
)
def update_item_color(
    update: ColorLabelUpdate,
    item_id: UUID = Path(..., description="Wardrobe item UUID"),
    wardrobe: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeItemRecord:
    item = wardrobe.update_color_label(item_id, update.color_label)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Wardrobe item {item_id} not found"
        )
    return WardrobeItemRecord.from_model(item)


@router.post(
    "/items/remove",
    summary="Remove several wardrobe items",
)
def remove_items(
    request: ItemIdsRequest,
    wardrobe: WardrobeService = Depends(get_wardrobe_service),
) -> Dict[str, int]:
    return {"removed": wardrobe.remove_items(request.item_ids)}


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a wardrobe item",
)
def delete_item(
    item_id: UUID = Path(..., description="Wardrobe item UUID"),
    wardrobe: WardrobeService = Depends(get_wardrobe_service),
) -> Response:
    if not wardrobe.remove_item(item_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Wardrobe item {item_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
