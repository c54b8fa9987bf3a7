"""
Batch sequencing service for multi-image uploads.

Handles:
- FIFO queue of uploaded photos
- One photo in flight at a time (bounds peak memory)
- Progress counters for the caller
- The pending review list of detected garments
"""
import logging
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Deque, Iterable, List, Optional, Tuple
from uuid import UUID

from wardrobe_vision.cv.color_extractor import REVIEW_COLOR_LABELS
from wardrobe_vision.cv.garment_analyzer import (
    GarmentAnalyzer,
    GarmentItem,
    ImageJob,
    create_garment_analyzer,
)
from wardrobe_vision.cv.garment_segmenter import get_segmenter

logger = logging.getLogger(__name__)

ProgressListener = Callable[[int, int], None]


@dataclass(frozen=True)
class BatchProgress:
    """Caller-visible progress snapshot."""
    is_processing: bool
    processed_count: int
    total_count: int


@dataclass(frozen=True)
class BatchSummary:
    """Outcome of a finished batch."""
    processed_count: int
    total_count: int
    item_count: int
    failed_filenames: Tuple[str, ...]
    completed_at: datetime


class BatchSequencer:
    """
    Feeds queued photos through the garment analyzer one at a time.

    With background=True the queue is drained on a single worker thread so
    the caller never blocks; with background=False add_images() drains the
    queue before returning. Progress counters are only written by the
    sequencer, always under its lock.
    """

    def __init__(self, analyzer: GarmentAnalyzer, background: bool = True):
        """
        Initialize batch sequencer.

        Args:
            analyzer: Per-image garment pipeline
            background: Drain the queue on a worker thread
        """
        self.analyzer = analyzer
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()

        self._queue: Deque[ImageJob] = deque()
        self._pending: List[GarmentItem] = []
        self._is_processing = False
        self._processed_count = 0
        self._total_count = 0
        self._item_count = 0
        self._failed: List[str] = []

        self._progress_listeners: List[ProgressListener] = []
        self._completion_listeners: List[Callable[[BatchSummary], None]] = []
        self.last_batch: Optional[BatchSummary] = None

        self._executor = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="garment-batch")
            if background else None
        )

    # ========================================================================
    # Queue
    # ========================================================================

    def add_images(self, jobs: Iterable[ImageJob]) -> None:
        """
        Queue photos for analysis.

        Starts a new batch when idle. While a batch is running the new
        photos join it and the total grows accordingly.
        """
        jobs = list(jobs)
        if not jobs:
            return

        with self._lock:
            self._queue.extend(jobs)
            if self._is_processing:
                self._total_count += len(jobs)
                logger.info(f"Added {len(jobs)} images to running batch ({self._total_count} total)")
                return

            self._is_processing = True
            self._total_count = len(self._queue)
            self._processed_count = 0
            self._item_count = 0
            self._failed = []
            self._idle.clear()

        logger.info(f"Starting batch of {len(jobs)} images")
        if self._executor is not None:
            self._executor.submit(self._drain)
        else:
            self._drain()

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._queue:
                    summary = self._finish_batch()
                    break
                job = self._queue.popleft()

            items = self._process(job)

            with self._lock:
                if items is None:
                    self._failed.append(job.filename)
                else:
                    self._pending.extend(items)
                    self._item_count += len(items)
                self._processed_count += 1
                processed, total = self._processed_count, self._total_count

            self._notify(self._progress_listeners, processed, total)

        logger.info(
            f"Batch complete: {summary.processed_count}/{summary.total_count} images, "
            f"{summary.item_count} items, {len(summary.failed_filenames)} failed"
        )
        self._notify(self._completion_listeners, summary)

        with self._lock:
            if not self._is_processing:
                self._idle.set()

    def _process(self, job: ImageJob) -> Optional[List[GarmentItem]]:
        try:
            return self.analyzer.analyze(job)
        except Exception as e:
            logger.warning(f"Failed to process image {job.filename}: {e}")
            return None

    def _finish_batch(self) -> BatchSummary:
        # Caller holds the lock
        summary = BatchSummary(
            processed_count=self._processed_count,
            total_count=self._total_count,
            item_count=self._item_count,
            failed_filenames=tuple(self._failed),
            completed_at=datetime.now(timezone.utc),
        )
        self.last_batch = summary
        self._is_processing = False
        self._processed_count = 0
        self._total_count = 0
        return summary

    @staticmethod
    def _notify(listeners, *args) -> None:
        for listener in list(listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Batch listener raised")

    # ========================================================================
    # Progress
    # ========================================================================

    def add_progress_listener(self, listener: ProgressListener) -> None:
        """Call listener(processed_count, total_count) after each image."""
        self._progress_listeners.append(listener)

    def add_completion_listener(self, listener: Callable[[BatchSummary], None]) -> None:
        """Call listener(summary) when the queue empties."""
        self._completion_listeners.append(listener)

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._is_processing

    def progress(self) -> BatchProgress:
        with self._lock:
            return BatchProgress(
                is_processing=self._is_processing,
                processed_count=self._processed_count,
                total_count=self._total_count,
            )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current batch is complete. Returns False on timeout."""
        return self._idle.wait(timeout)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    # ========================================================================
    # Pending Review List
    # ========================================================================

    @property
    def pending_items(self) -> List[GarmentItem]:
        with self._lock:
            return list(self._pending)

    def get_pending_item(self, item_id: UUID) -> Optional[GarmentItem]:
        with self._lock:
            return next((item for item in self._pending if item.id == item_id), None)

    def update_pending_color(self, item_id: UUID, color_label: str) -> GarmentItem:
        """
        Relabel a pending item's color during review.

        Raises:
            ValueError: If the label is not a known color or "multicolor"
            KeyError: If no pending item has this id
        """
        if color_label not in REVIEW_COLOR_LABELS:
            raise ValueError(f"Unknown color label: {color_label}")

        with self._lock:
            for item in self._pending:
                if item.id == item_id:
                    item.color_label = color_label
                    return item
        raise KeyError(item_id)

    def remove_pending_items(self, item_ids: Iterable[UUID]) -> List[GarmentItem]:
        """Drop pending items by id and return the ones removed."""
        ids = set(item_ids)
        with self._lock:
            removed = [item for item in self._pending if item.id in ids]
            self._pending = [item for item in self._pending if item.id not in ids]
        return removed


# ========================================================================
# Singleton Instance
# ========================================================================

_batch_sequencer: Optional[BatchSequencer] = None


def get_batch_sequencer() -> BatchSequencer:
    """
    Get singleton batch sequencer for the API process.

    Raises:
        RuntimeError: If no segmentation model is configured
    """
    global _batch_sequencer

    if _batch_sequencer is None:
        _batch_sequencer = BatchSequencer(create_garment_analyzer(get_segmenter()))

    return _batch_sequencer
