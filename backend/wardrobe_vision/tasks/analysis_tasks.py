"""
Garment Analysis Tasks

Celery tasks for offline analysis of photos already in object storage.
Runs the same GarmentAnalyzer as the API through a foreground
BatchSequencer, so photos are still processed one at a time.
"""
import logging
import os
from typing import Any, Dict, List, Optional

from wardrobe_vision.core.celery_app import celery_app
from wardrobe_vision.cv.garment_analyzer import ImageJob, create_garment_analyzer
from wardrobe_vision.cv.garment_segmenter import get_segmenter
from wardrobe_vision.services.batch_sequencer import BatchSequencer
from wardrobe_vision.services.storage_service import get_storage_service

logger = logging.getLogger(__name__)


def cutout_object_path(source_filename: str, item_id: str) -> str:
    """Object path for an item's cutout: cutouts/<source stem>/<item id>.png"""
    stem = os.path.splitext(os.path.basename(source_filename))[0]
    return f"cutouts/{stem}/{item_id}.png"


@celery_app.task(
    bind=True,
    name="wardrobe_vision.tasks.analysis_tasks.analyze_stored_images",
    max_retries=2,
    default_retry_delay=60,
)
def analyze_stored_images(
    self,
    object_names: Optional[List[str]] = None,
    prefix: str = "uploads/",
) -> Dict[str, Any]:
    """
    Analyze stored photos and upload every garment cutout.

    This task:
    1. Downloads each photo from object storage
    2. Runs the photos through the garment analyzer one at a time
    3. Reports progress as PROGRESS state meta
    4. Uploads each cutout as PNG

    Args:
        object_names: Object paths of the photos in the images bucket
        prefix: Analyze every object under this prefix when no names are given

    Returns:
        Dict with item summaries, failed photos and counts

    Raises:
        RuntimeError: If no segmentation model is configured or a cutout
            upload fails (upload failures trigger a retry)
    """
    storage = get_storage_service()
    if object_names is None:
        object_names = storage.list_objects(prefix)
    logger.info(f"Starting garment analysis for {len(object_names)} stored images")

    failed: List[str] = []

    # 1. Download photos; a missing photo is skipped like a bad one
    jobs = []
    for object_name in object_names:
        try:
            data = storage.download_bytes(object_name)
        except RuntimeError as e:
            logger.warning(f"Skipping {object_name}: {e}")
            failed.append(object_name)
            continue
        jobs.append(ImageJob(image=data, filename=object_name))

    # 2. Analyze in the foreground, one photo at a time
    sequencer = BatchSequencer(create_garment_analyzer(get_segmenter()), background=False)

    def report_progress(processed: int, total: int) -> None:
        self.update_state(
            state="PROGRESS",
            meta={"processed_count": processed, "total_count": total},
        )

    sequencer.add_progress_listener(report_progress)
    sequencer.add_images(jobs)

    if sequencer.last_batch is not None:
        failed.extend(sequencer.last_batch.failed_filenames)

    # 3. Upload cutouts
    items = []
    try:
        for item in sequencer.pending_items:
            summary = item.to_dict(include_image=False)
            object_path = cutout_object_path(item.source_filename, summary["id"])
            storage.upload_bytes(
                object_path,
                item.cutout_image_bytes,
                content_type="image/png",
                metadata={"source": item.source_filename, "category": item.category_name},
            )
            summary["cutoutPath"] = object_path
            items.append(summary)

    except RuntimeError as e:
        logger.error(f"❌ Cutout upload failed: {e}")
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e)
        raise

    logger.info(
        f"✅ Garment analysis completed: {len(object_names)} images, "
        f"{len(items)} items, {len(failed)} failed"
    )

    return {
        "status": "completed",
        "image_count": len(object_names),
        "item_count": len(items),
        "failed": failed,
        "items": items,
    }
