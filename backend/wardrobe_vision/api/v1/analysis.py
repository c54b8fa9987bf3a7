"""
Garment Analysis API endpoints.

Handles photo uploads and the pending review list:
- POST /analysis/batches - Queue photos for garment analysis
- GET /analysis/batches/progress - Queue progress
- GET /analysis/pending - Garments awaiting review
- GET /analysis/pending/{item_id}/cutout - Cutout PNG
- PATCH /analysis/pending/{item_id} - Relabel color
- POST /analysis/pending/discard - Drop garments from review
"""
import logging
import os
from typing import Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Path, Response, UploadFile, status

from wardrobe_vision.core.config import settings
from wardrobe_vision.cv.garment_analyzer import ImageJob
from wardrobe_vision.schemas import (
    BatchProgressResponse,
    BatchSubmitResponse,
    BatchSummary,
    ColorLabelUpdate,
    ItemIdsRequest,
    PendingItem,
)
from wardrobe_vision.services.batch_sequencer import BatchSequencer, get_batch_sequencer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["garment-analysis"])


def get_sequencer() -> BatchSequencer:
    """
    Dependency for the process-wide batch sequencer.

    Raises:
        503: No segmentation model configured
    """
    try:
        return get_batch_sequencer()
    except RuntimeError as e:
        logger.error(f"Batch sequencer unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )


def build_progress_response(sequencer: BatchSequencer) -> BatchProgressResponse:
    progress = sequencer.progress()
    summary = sequencer.last_batch
    last_batch = None
    if summary is not None:
        last_batch = BatchSummary(
            processed_count=summary.processed_count,
            total_count=summary.total_count,
            item_count=summary.item_count,
            failed_filenames=list(summary.failed_filenames),
            completed_at=summary.completed_at,
        )
    return BatchProgressResponse(
        is_processing=progress.is_processing,
        processed_count=progress.processed_count,
        total_count=progress.total_count,
        last_batch=last_batch,
    )


def _get_pending_or_404(sequencer: BatchSequencer, item_id: UUID):
    item = sequencer.get_pending_item(item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pending item {item_id} not found"
        )
    return item


# ============================================================================
# Batch Endpoints
# ============================================================================

@router.post(
    "/batches",
    response_model=BatchSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue photos for garment analysis",
    description="""
    Upload one or more photos. Each photo is queued and analyzed one at a
    time; detected garments appear in GET /analysis/pending.

    Files with a disallowed extension or over the size limit are rejected
    up front. Photos that fail to decode or segment are skipped during
    processing without stopping the batch.
    """,
)
async def submit_batch(
    files: List[UploadFile] = File(..., description="Photos to analyze"),
    sequencer: BatchSequencer = Depends(get_sequencer),
) -> BatchSubmitResponse:
    max_bytes = settings.MAX_IMAGE_SIZE_MB * 1024 * 1024
    jobs = []
    rejected = []

    for upload in files:
        filename = upload.filename or "upload"
        extension = os.path.splitext(filename)[1].lower()
        if extension not in settings.ALLOWED_IMAGE_EXTENSIONS:
            logger.warning(f"Rejected {filename}: extension {extension!r} not allowed")
            rejected.append(filename)
            continue

        if upload.size is not None and upload.size > max_bytes:
            logger.warning(f"Rejected {filename}: size {upload.size} bytes over limit")
            rejected.append(filename)
            continue

        data = await upload.read()
        if not data or len(data) > max_bytes:
            logger.warning(f"Rejected {filename}: size {len(data)} bytes outside limits")
            rejected.append(filename)
            continue

        jobs.append(ImageJob(image=data, filename=filename))

    if not jobs:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No acceptable images in upload (rejected: {', '.join(rejected)})"
        )

    sequencer.add_images(jobs)
    logger.info(f"✅ Queued {len(jobs)} images for analysis ({len(rejected)} rejected)")

    return BatchSubmitResponse(
        queued_count=len(jobs),
        rejected_filenames=rejected,
        progress=build_progress_response(sequencer),
    )


@router.get(
    "/batches/progress",
    response_model=BatchProgressResponse,
    summary="Get upload queue progress",
)
def get_progress(sequencer: BatchSequencer = Depends(get_sequencer)) -> BatchProgressResponse:
    return build_progress_response(sequencer)


# ============================================================================
# Pending Review Endpoints
# ============================================================================

@router.get(
    "/pending",
    response_model=List[PendingItem],
    summary="List garments awaiting review",
)
def list_pending(sequencer: BatchSequencer = Depends(get_sequencer)) -> List[PendingItem]:
    return [PendingItem.from_item(item) for item in sequencer.pending_items]


@router.get(
    "/pending/{item_id}/cutout",
    response_class=Response,
    summary="Get a pending garment's cutout image (PNG)",
)
def get_pending_cutout(
    item_id: UUID = Path(..., description="Pending item UUID"),
    sequencer: BatchSequencer = Depends(get_sequencer),
) -> Response:
    item = _get_pending_or_404(sequencer, item_id)
    return Response(content=item.cutout_image_bytes, media_type="image/png")


@router.patch(
    "/pending/{item_id}",
    response_model=PendingItem,
    summary="Relabel a pending garment's color",
)
def update_pending_color(
    update: ColorLabelUpdate,
    item_id: UUID = Path(..., description="Pending item UUID"),
    sequencer: BatchSequencer = Depends(get_sequencer),
) -> PendingItem:
    _get_pending_or_404(sequencer, item_id)
    try:
        item = sequencer.update_pending_color(item_id, update.color_label)
    except KeyError:
        # Removed concurrently
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pending item {item_id} not found"
        )
    return PendingItem.from_item(item)


@router.post(
    "/pending/discard",
    summary="Discard pending garments",
)
def discard_pending(
    request: ItemIdsRequest,
    sequencer: BatchSequencer = Depends(get_sequencer),
) -> Dict[str, int]:
    removed = sequencer.remove_pending_items(request.item_ids)
    logger.info(f"Discarded {len(removed)} pending items")
    return {"removed": len(removed)}
