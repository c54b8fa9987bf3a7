"""
Garment Analysis Service

Runs the full per-image pipeline: segmentation, label remapping, region
extraction, masking and color classification. Produces one GarmentItem per
garment category found in the photo.

This is the single shared implementation used by the batch sequencer, the
HTTP API and the offline analysis task.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID, uuid4

import numpy as np

from wardrobe_vision.core.config import settings
from wardrobe_vision.cv.color_extractor import (
    ColorClassifier,
    ColorSampler,
    create_color_classifier,
    create_color_sampler,
)
from wardrobe_vision.cv.garment_segmenter import GarmentSegmenter
from wardrobe_vision.cv.label_remapper import LabelRemapper, create_remapper
from wardrobe_vision.cv.masker import (
    Cutout,
    Masker,
    SourceImage,
    create_masker,
    load_source_image,
)
from wardrobe_vision.cv.region_extractor import (
    BoundingBox,
    GarmentRegion,
    extract_region,
    rescale_box,
)

logger = logging.getLogger(__name__)


class ProcessingTimeout(RuntimeError):
    """Raised when an image exceeds its wall-clock soft limit."""


@dataclass(frozen=True)
class ImageJob:
    """One uploaded photo waiting to be analyzed."""
    image: Union[SourceImage, np.ndarray, bytes]
    filename: str
    original_size: Optional[Tuple[float, float]] = None  # (width, height); defaults to decoded size


@dataclass
class GarmentItem:
    """A garment found in a photo, pending review."""
    category_name: str
    color_label: str
    cutout: Cutout
    bounding_box: BoundingBox
    source_filename: str
    color_rgb: Tuple[float, float, float]
    id: UUID = field(default_factory=uuid4)

    @property
    def cutout_image_bytes(self) -> bytes:
        return self.cutout.to_png_bytes()

    def to_dict(self, include_image: bool = True) -> Dict[str, Any]:
        """Convert to the pipeline output shape."""
        data = {
            "id": str(self.id),
            "categoryName": self.category_name,
            "colorLabel": self.color_label,
            "boundingBox": self.bounding_box.to_dict(),
            "sourceFilename": self.source_filename,
        }
        if include_image:
            data["cutoutImageBytes"] = self.cutout_image_bytes
        return data


class GarmentAnalyzer:
    """
    Analyze photos into garment items.

    Workflow:
    1. Decode the photo and run the segmentation model
    2. Remap raw class indices to garment categories
    3. Per category: bounding box, rescale to original pixels, cutout
    4. Sample the cutout's mean color and name it
    """

    def __init__(
        self,
        segmenter: Optional[GarmentSegmenter] = None,
        remapper: Optional[LabelRemapper] = None,
        masker: Optional[Masker] = None,
        sampler: Optional[ColorSampler] = None,
        classifier: Optional[ColorClassifier] = None,
        time_limit: Optional[float] = None
    ):
        """
        Initialize garment analyzer.

        Args:
            segmenter: GarmentSegmenter instance (required for analyze())
            remapper: LabelRemapper instance (creates default if None)
            masker: Masker instance (creates default if None)
            sampler: ColorSampler instance (creates default if None)
            classifier: ColorClassifier instance (creates default if None)
            time_limit: Per-image soft limit in seconds (None disables it)
        """
        self.segmenter = segmenter
        self.remapper = remapper or create_remapper(include_shoes=settings.INCLUDE_SHOES)
        self.masker = masker or create_masker()
        self.sampler = sampler or create_color_sampler()
        self.classifier = classifier or create_color_classifier()
        self.time_limit = time_limit

    def analyze(self, job: ImageJob) -> List[GarmentItem]:
        """
        Analyze one photo.

        Args:
            job: Image, filename and original size

        Returns:
            GarmentItems in ascending category id order

        Raises:
            ImageDecodeError: If the photo cannot be decoded
            SegmentationError: If the model fails
            ProcessingTimeout: If the soft time limit is exceeded
        """
        if self.segmenter is None:
            raise RuntimeError("GarmentAnalyzer has no segmenter configured")

        deadline = self._deadline()
        source = load_source_image(job.image)
        original_size = job.original_size or (source.width, source.height)

        raw_grid = self.segmenter.segment(source)
        self._check_deadline(deadline, job.filename)

        return self.analyze_grid(raw_grid, source, original_size, job.filename, deadline=deadline)

    def analyze_grid(
        self,
        raw_grid: np.ndarray,
        source: Union[SourceImage, np.ndarray, bytes],
        original_size: Tuple[float, float],
        filename: str,
        deadline: Optional[float] = None
    ) -> List[GarmentItem]:
        """
        Run everything after segmentation on an existing raw label grid.

        Args:
            raw_grid: Raw model class indices (H x W)
            source: Photo at any resolution; resized to the grid for masking
            original_size: (width, height) of the original photo
            filename: Source filename recorded on each item
            deadline: time.monotonic() value after which to give up

        Returns:
            GarmentItems in ascending category id order
        """
        remapped = self.remapper.remap(raw_grid)
        grid = remapped.grid
        grid_height, grid_width = grid.shape
        original_width, original_height = original_size

        if not remapped.categories:
            logger.info(f"No garments found in {filename}")
            return []

        # Resize once for every category; a decode failure here skips each
        # category through the masker instead of failing the image
        try:
            grid_source = load_source_image(source).resized(grid_width, grid_height)
        except ValueError as e:
            logger.warning(f"Cannot prepare {filename} for masking: {e}")
            grid_source = source

        items = []
        for category in remapped.categories:
            self._check_deadline(deadline, filename)

            region = self._extract(grid, category, filename, original_width, original_height)
            if region is None:
                continue

            cutout = self.masker.create_cutout(grid, category, grid_source)
            if cutout is None:
                continue

            classification = self.classifier.classify(self.sampler.sample(cutout))

            items.append(GarmentItem(
                category_name=region.category_name,
                color_label=classification.color_name,
                cutout=cutout,
                bounding_box=region.bounding_box,
                source_filename=filename,
                color_rgb=classification.rgb,
            ))

        logger.info(
            f"Analyzed {filename}: "
            + (", ".join(f"{i.category_name}={i.color_label}" for i in items) or "no items")
        )
        return items

    def _extract(
        self,
        grid: np.ndarray,
        category: int,
        filename: str,
        original_width: float,
        original_height: float
    ) -> Optional[GarmentRegion]:
        name = self.remapper.catalog.name_for(category)
        if name is None:
            return None

        grid_box = extract_region(grid, category)
        if grid_box is None:
            return None

        grid_height, grid_width = grid.shape
        return GarmentRegion(
            category=category,
            category_name=name,
            grid_box=grid_box,
            bounding_box=rescale_box(grid_box, grid_width, grid_height, original_width, original_height),
            source_filename=filename,
        )

    def _deadline(self) -> Optional[float]:
        if self.time_limit is None:
            return None
        return time.monotonic() + self.time_limit

    @staticmethod
    def _check_deadline(deadline: Optional[float], filename: str) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise ProcessingTimeout(f"Soft time limit exceeded while analyzing {filename}")


def create_garment_analyzer(segmenter: Optional[GarmentSegmenter] = None) -> GarmentAnalyzer:
    """
    Factory function to create garment analyzer with default components.

    Args:
        segmenter: GarmentSegmenter wrapping the configured model

    Returns:
        GarmentAnalyzer instance
    """
    return GarmentAnalyzer(
        segmenter=segmenter,
        time_limit=settings.IMAGE_SOFT_TIME_LIMIT_SECONDS,
    )
