"""
Garment Segmentation Module

Wraps the external semantic segmentation model (e.g. a SegFormer "clothes"
checkpoint) behind a small protocol. The model is treated as an oracle: it
receives an RGB image at the processing resolution and returns a grid of
raw class indices.

The concrete model is chosen by configuration (SEGMENTATION_MODEL, an import
path like "my_models.segformer:load"), so this package never depends on a
particular inference runtime.
"""
import importlib
import logging
from typing import Optional, Protocol, runtime_checkable

import numpy as np

from wardrobe_vision.core.config import settings
from wardrobe_vision.cv.masker import SourceImage

logger = logging.getLogger(__name__)


class SegmentationError(RuntimeError):
    """Raised when the model fails or returns something that is not a label grid."""


@runtime_checkable
class SegmentationModel(Protocol):
    """Anything that turns an RGB image into a grid of class indices."""

    def predict(self, image: np.ndarray) -> np.ndarray:
        """
        Args:
            image: RGB uint8 image (H x W x 3)

        Returns:
            Integer class indices, (H' x W') or (1 x H' x W')
        """
        ...


class GarmentSegmenter:
    """
    Produces raw label grids for source photos.

    The source is resized to processing_size x processing_size before
    inference. The returned grid may have a different resolution than the
    model input; callers rescale using the grid's own shape.
    """

    def __init__(self, model: SegmentationModel, processing_size: int = 512):
        """
        Initialize garment segmenter.

        Args:
            model: Segmentation model oracle
            processing_size: Side length of the square model input
        """
        if processing_size <= 0:
            raise ValueError(f"Invalid processing size: {processing_size}")
        self.model = model
        self.processing_size = processing_size

    def segment(self, source: SourceImage) -> np.ndarray:
        """
        Run the model on a source image.

        Args:
            source: Decoded source photo

        Returns:
            Raw label grid (H x W) of integer class indices

        Raises:
            SegmentationError: If inference fails or the output is not a grid
        """
        resized = source.resized(self.processing_size, self.processing_size)
        rgb = np.ascontiguousarray(resized.pixels[:, :, :3])

        try:
            output = self.model.predict(rgb)
        except Exception as e:
            logger.error(f"Segmentation model failed: {e}")
            raise SegmentationError(f"Model inference failed: {e}") from e

        return self._validate_grid(output)

    @staticmethod
    def _validate_grid(output) -> np.ndarray:
        if output is None:
            raise SegmentationError("No results from model")

        grid = np.asarray(output)
        # Drop leading batch dimensions, e.g. (1, H, W)
        while grid.ndim > 2 and grid.shape[0] == 1:
            grid = grid[0]

        if grid.ndim != 2 or grid.size == 0:
            raise SegmentationError(f"Invalid label grid shape: {np.asarray(output).shape}")
        if not np.issubdtype(grid.dtype, np.integer):
            raise SegmentationError(f"Invalid label grid dtype: {grid.dtype}, expected integers")

        return grid


def load_segmentation_model(import_path: str) -> SegmentationModel:
    """
    Build a model from a "module:factory" import path.

    Args:
        import_path: e.g. "my_models.segformer:load_clothes_model"

    Returns:
        Whatever the factory returns (must implement predict)

    Raises:
        RuntimeError: If the path is malformed or the factory is unusable
    """
    module_name, _, attr = import_path.partition(":")
    if not module_name or not attr:
        raise RuntimeError(f"Invalid SEGMENTATION_MODEL '{import_path}', expected 'module:factory'")

    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise RuntimeError(f"Cannot load segmentation model factory '{import_path}': {e}") from e

    model = factory()
    if not isinstance(model, SegmentationModel):
        raise RuntimeError(f"'{import_path}' did not return an object with predict()")

    logger.info(f"Loaded segmentation model from {import_path}")
    return model


# ========================================================================
# Singleton Instance
# ========================================================================

_segmenter: Optional[GarmentSegmenter] = None


def create_segmenter(
    model: SegmentationModel,
    processing_size: Optional[int] = None
) -> GarmentSegmenter:
    """
    Factory function to create garment segmenter.

    Args:
        model: Segmentation model oracle
        processing_size: Model input side length (defaults to settings)

    Returns:
        GarmentSegmenter instance
    """
    return GarmentSegmenter(model, processing_size or settings.PROCESSING_SIZE)


def get_segmenter() -> GarmentSegmenter:
    """
    Get singleton segmenter built from the configured model.

    Raises:
        RuntimeError: If SEGMENTATION_MODEL is not configured
    """
    global _segmenter

    if _segmenter is None:
        if not settings.SEGMENTATION_MODEL:
            raise RuntimeError("No segmentation model configured (set SEGMENTATION_MODEL)")
        _segmenter = create_segmenter(load_segmentation_model(settings.SEGMENTATION_MODEL))

    return _segmenter
