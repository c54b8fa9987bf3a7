"""
Unit tests for label remapping.

Tests:
- Raw index to category translation
- Unmapped indices collapse to the none category
- Included set (default garments, optional shoes)
- Catalog validation
"""
import numpy as np
import pytest

from wardrobe_vision.cv.label_remapper import (
    NONE_CATEGORY,
    CategoryCatalog,
    LabelRemapper,
    create_catalog,
    create_remapper,
)


@pytest.mark.unit
class TestRemap:
    """Test grid remapping."""

    def test_maps_known_indices(self):
        raw = np.array([[0, 4], [6, 7]])

        result = create_remapper().remap(raw)

        np.testing.assert_array_equal(result.grid, [[NONE_CATEGORY, 5], [9, 6]])
        assert result.categories == (5, 6, 9)

    def test_unmapped_indices_become_none(self):
        raw = np.array([[1, 2, 3], [11, 99, 4]])

        result = create_remapper().remap(raw)

        assert (result.grid[0] == NONE_CATEGORY).all()
        assert result.grid[1, 0] == NONE_CATEGORY
        assert result.grid[1, 1] == NONE_CATEGORY
        assert result.categories == (5,)

    def test_categories_sorted_ascending(self):
        # Skirt (12) appears before Tops (5) in scan order
        raw = np.array([[5, 5, 4]])

        result = create_remapper().remap(raw)

        assert result.categories == (5, 12)

    def test_does_not_mutate_input(self):
        raw = np.array([[4, 6], [0, 5]])
        original = raw.copy()

        create_remapper().remap(raw)

        np.testing.assert_array_equal(raw, original)

    def test_empty_when_nothing_interesting(self):
        result = create_remapper().remap(np.zeros((4, 4), dtype=np.int64))

        assert result.categories == ()

    def test_rejects_non_2d_grid(self):
        with pytest.raises(ValueError, match="Invalid label grid shape"):
            create_remapper().remap(np.zeros((2, 2, 2)))


@pytest.mark.unit
class TestShoes:
    """Test shoe categories are opt-in."""

    def test_shoes_excluded_by_default(self):
        raw = np.array([[9, 10], [4, 0]])

        result = create_remapper().remap(raw)

        assert result.categories == (5,)

    def test_shoes_included_when_enabled(self):
        raw = np.array([[9, 10], [4, 0]])

        result = create_remapper(include_shoes=True).remap(raw)

        assert result.categories == (5, 18, 19)


@pytest.mark.unit
class TestCatalog:
    """Test catalog construction and validation."""

    def test_default_catalog_names(self):
        catalog = create_catalog()

        assert catalog.name_for(5) == "Tops"
        assert catalog.name_for(7) == "Coats"
        assert catalog.name_for(NONE_CATEGORY) is None
        assert catalog.is_included(7)
        assert not catalog.is_included(18)

    def test_none_category_is_reserved(self):
        with pytest.raises(ValueError, match="reserved"):
            CategoryCatalog(raw_to_category={1: 0}, category_names={0: "Nothing"})

    def test_included_categories_need_names(self):
        with pytest.raises(ValueError, match="no name"):
            CategoryCatalog(
                raw_to_category={1: 3},
                category_names={},
                included=frozenset({3}),
            )

    def test_custom_catalog(self):
        catalog = CategoryCatalog(
            raw_to_category={1: 2, 3: 2},
            category_names={2: "Jackets"},
            included=frozenset({2}),
        )
        raw = np.array([[1, 0, 3]])

        result = LabelRemapper(catalog).remap(raw)

        np.testing.assert_array_equal(result.grid, [[2, NONE_CATEGORY, 2]])
        assert result.categories == (2,)
