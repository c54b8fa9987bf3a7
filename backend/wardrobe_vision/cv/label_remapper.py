"""
Label Remapping Module

Translates raw segmentation model class indices into the curated set of
garment categories the wardrobe understands (Tops, Dresses, Coats, Bottoms,
Skirts and optionally shoes). Indices with no mapping collapse into the
"none" category and are never reported.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

NONE_CATEGORY = 0

# Category ids and the exact names downstream filters expect
CATEGORY_NAMES: Dict[int, str] = {
    5: "Tops",
    6: "Dresses",
    7: "Coats",
    9: "Bottoms",
    12: "Skirts",
    18: "Left Shoes",
    19: "Right Shoes",
}

# SegFormer "clothes" label set -> category id
SEGFORMER_TO_CATEGORY: Dict[int, int] = {
    4: 5,   # Upper-clothes -> Tops
    7: 6,   # Dress -> Dresses
    6: 9,   # Pants -> Bottoms
    5: 12,  # Skirt -> Skirts
    9: 18,  # Left-shoe -> Left Shoes
    10: 19,  # Right-shoe -> Right Shoes
}

GARMENT_CATEGORIES: FrozenSet[int] = frozenset({5, 6, 7, 9, 12})
SHOE_CATEGORIES: FrozenSet[int] = frozenset({18, 19})


@dataclass(frozen=True)
class CategoryCatalog:
    """
    Mapping from raw model class index to garment category.

    A dict cannot map one raw index to two categories, so the catalog is
    never ambiguous. Raw indices missing from ``raw_to_category`` are
    implicitly excluded.
    """
    raw_to_category: Mapping[int, int]
    category_names: Mapping[int, str]
    included: FrozenSet[int] = field(default_factory=frozenset)

    def __post_init__(self):
        if NONE_CATEGORY in self.category_names:
            raise ValueError(f"Category id {NONE_CATEGORY} is reserved for 'none'")
        unnamed = set(self.included) - set(self.category_names)
        if unnamed:
            raise ValueError(f"Included categories have no name: {sorted(unnamed)}")

    def name_for(self, category: int) -> Optional[str]:
        return self.category_names.get(category)

    def is_included(self, category: int) -> bool:
        return category in self.included


@dataclass(frozen=True)
class RemapResult:
    """Remapped label grid plus the interesting categories present in it."""
    grid: np.ndarray  # (H, W) category ids, NONE_CATEGORY where unmapped
    categories: Tuple[int, ...]  # sorted, included categories only


class LabelRemapper:
    """Rewrites raw label grids into category grids."""

    def __init__(self, catalog: CategoryCatalog):
        self.catalog = catalog

    def remap(self, raw_grid: np.ndarray) -> RemapResult:
        """
        Replace every cell's raw index with its category id.

        Args:
            raw_grid: 2-D integer array of model class indices (H x W)

        Returns:
            RemapResult with a new grid and the included categories present

        Raises:
            ValueError: If the grid is not 2-D
        """
        raw_grid = np.asarray(raw_grid)
        if raw_grid.ndim != 2:
            raise ValueError(f"Invalid label grid shape: {raw_grid.shape}, expected (H, W)")

        remapped = np.full(raw_grid.shape, NONE_CATEGORY, dtype=np.int32)
        for raw_index, category in self.catalog.raw_to_category.items():
            remapped[raw_grid == raw_index] = category

        present = np.unique(remapped)
        categories = tuple(
            int(c) for c in present if c != NONE_CATEGORY and self.catalog.is_included(int(c))
        )

        logger.debug(f"Remapped {raw_grid.shape} grid, categories present: {categories}")
        return RemapResult(grid=remapped, categories=categories)


def create_catalog(include_shoes: bool = False) -> CategoryCatalog:
    """
    Factory function to create the default SegFormer category catalog.

    Args:
        include_shoes: Also report Left Shoes / Right Shoes regions

    Returns:
        CategoryCatalog instance
    """
    included = GARMENT_CATEGORIES | SHOE_CATEGORIES if include_shoes else GARMENT_CATEGORIES
    return CategoryCatalog(
        raw_to_category=dict(SEGFORMER_TO_CATEGORY),
        category_names=dict(CATEGORY_NAMES),
        included=frozenset(included),
    )


def create_remapper(include_shoes: bool = False) -> LabelRemapper:
    """Factory function to create a remapper over the default catalog."""
    return LabelRemapper(create_catalog(include_shoes=include_shoes))
