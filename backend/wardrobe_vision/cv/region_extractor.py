"""
Region Extraction Module

Finds the tight bounding box of each garment category in a remapped label
grid and maps it back into the original photo's pixel coordinates.

Grid coordinates are inclusive cell indices. The original photo is usually
not square while the model grid is, so X and Y are scaled independently.
"""
import logging
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional

import numpy as np

logger = logging.getLogger(__name__)


class GridBox(NamedTuple):
    """Inclusive bounding box in grid cells."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1


class BoundingBox(NamedTuple):
    """Rectangle in original-image pixels."""
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class GarmentRegion:
    """One garment category found in a label grid."""
    category: int
    category_name: str
    grid_box: GridBox
    bounding_box: BoundingBox
    source_filename: str


def extract_region(grid: np.ndarray, category: int) -> Optional[GridBox]:
    """
    Compute the tightest box containing every cell equal to ``category``.

    Args:
        grid: Remapped label grid (H x W)
        category: Target category id

    Returns:
        GridBox, or None when no cell matches (empty region)
    """
    ys, xs = np.nonzero(grid == category)
    if xs.size == 0:
        logger.debug(f"Category {category} has no cells, skipping")
        return None

    return GridBox(
        min_x=int(xs.min()),
        min_y=int(ys.min()),
        max_x=int(xs.max()),
        max_y=int(ys.max()),
    )


def rescale_box(
    box: GridBox,
    grid_width: int,
    grid_height: int,
    original_width: float,
    original_height: float
) -> BoundingBox:
    """
    Map a grid-space box to original-image pixel coordinates.

    Args:
        box: Inclusive grid box
        grid_width: Grid width in cells
        grid_height: Grid height in cells
        original_width: Original image width in pixels
        original_height: Original image height in pixels

    Returns:
        BoundingBox in original-image pixels

    Raises:
        ValueError: If the grid dimensions are not positive
    """
    if grid_width <= 0 or grid_height <= 0:
        raise ValueError(f"Invalid grid size: {grid_width}x{grid_height}")

    scale_x = original_width / grid_width
    scale_y = original_height / grid_height

    return BoundingBox(
        x=box.min_x * scale_x,
        y=box.min_y * scale_y,
        width=box.width * scale_x,
        height=box.height * scale_y,
    )
