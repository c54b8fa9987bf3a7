"""
Unit tests for garment masking and image decoding.
"""
import cv2
import numpy as np
import pytest

from wardrobe_vision.cv.masker import (
    Cutout,
    ImageDecodeError,
    SourceImage,
    create_masker,
    decode_image,
    load_source_image,
    to_rgba,
)
from wardrobe_vision.tests.fakes import encode_png


@pytest.fixture
def source():
    rng = np.random.default_rng(3)
    pixels = rng.integers(0, 256, size=(6, 8, 4), dtype=np.uint8)
    pixels[:, :, 3] = 255
    return SourceImage(pixels=pixels, orientation=6, scale=2.0)


@pytest.fixture
def grid():
    grid = np.zeros((6, 8), dtype=np.int32)
    grid[1:4, 2:6] = 5
    grid[4:, :] = 9
    return grid


@pytest.mark.unit
class TestCreateCutout:
    """Test alpha masking."""

    def test_visible_pixels_match_source(self, source, grid):
        cutout = create_masker().create_cutout(grid, 5, source)

        visible = cutout.alpha > 0
        assert visible.any()
        np.testing.assert_array_equal(
            cutout.pixels[visible][:, :3], source.pixels[visible][:, :3]
        )

    def test_alpha_zeroed_outside_region(self, source, grid):
        cutout = create_masker().create_cutout(grid, 5, source)

        assert (cutout.alpha[grid != 5] == 0).all()
        assert (cutout.alpha[grid == 5] == 255).all()

    def test_rgb_copied_everywhere(self, source, grid):
        cutout = create_masker().create_cutout(grid, 9, source)

        np.testing.assert_array_equal(cutout.pixels[:, :, :3], source.pixels[:, :, :3])

    def test_existing_alpha_left_untouched(self, source, grid):
        pixels = source.pixels.copy()
        pixels[2, 3, 3] = 40
        cutout = create_masker().create_cutout(grid, 5, SourceImage(pixels=pixels))

        assert cutout.alpha[2, 3] == 40

    def test_source_not_mutated(self, source, grid):
        before = source.pixels.copy()

        create_masker().create_cutout(grid, 5, source)

        np.testing.assert_array_equal(source.pixels, before)

    def test_preserves_metadata(self, source, grid):
        cutout = create_masker().create_cutout(grid, 5, source)

        assert cutout.category == 5
        assert cutout.orientation == 6
        assert cutout.scale == 2.0
        assert cutout.pixels.shape == source.pixels.shape

    def test_undecodable_source_is_skipped(self, grid):
        assert create_masker().create_cutout(grid, 5, b"not an image") is None

    def test_size_mismatch_is_skipped(self, grid):
        source = SourceImage(pixels=np.zeros((3, 3, 4), dtype=np.uint8))

        assert create_masker().create_cutout(grid, 5, source) is None

    def test_rgb_source_image_gets_alpha(self, source, grid):
        rgb = SourceImage(pixels=source.pixels[:, :, :3].copy(), orientation=3)

        cutout = create_masker().create_cutout(grid, 5, rgb)

        assert cutout.pixels.shape == (6, 8, 4)
        assert cutout.orientation == 3
        assert (cutout.alpha[grid == 5] == 255).all()
        assert (cutout.alpha[grid != 5] == 0).all()

    def test_wrong_channel_count_is_skipped(self, grid):
        source = SourceImage(pixels=np.zeros((6, 8, 2), dtype=np.uint8))

        assert create_masker().create_cutout(grid, 5, source) is None


@pytest.mark.unit
class TestDecoding:
    """Test conversion of inputs to RGBA buffers."""

    def test_decode_png_keeps_rgb_order(self):
        pixels = np.zeros((2, 2, 3), dtype=np.uint8)
        pixels[:] = (200, 10, 30)

        image = decode_image(encode_png(pixels))

        assert image.pixels.shape == (2, 2, 4)
        assert tuple(image.pixels[0, 0]) == (200, 10, 30, 255)

    def test_decode_invalid_bytes(self):
        with pytest.raises(ImageDecodeError):
            decode_image(b"garbage")

    def test_decode_empty_bytes(self):
        with pytest.raises(ImageDecodeError, match="no data"):
            decode_image(b"")

    def test_to_rgba_from_gray(self):
        rgba = to_rgba(np.full((2, 3), 7, dtype=np.uint8))

        assert rgba.shape == (2, 3, 4)
        assert tuple(rgba[0, 0]) == (7, 7, 7, 255)

    def test_to_rgba_rejects_float(self):
        with pytest.raises(ImageDecodeError, match="dtype"):
            to_rgba(np.zeros((2, 2, 3), dtype=np.float32))

    def test_load_source_image_passthrough(self, source):
        assert load_source_image(source) is source

    def test_load_source_image_rejects_unknown_type(self):
        with pytest.raises(ImageDecodeError, match="Unsupported image type"):
            load_source_image("photo.jpg")

    def test_resized_keeps_metadata(self, source):
        resized = source.resized(4, 3)

        assert (resized.width, resized.height) == (4, 3)
        assert resized.orientation == 6
        assert resized.scale == 2.0


@pytest.mark.unit
def test_cutout_png_keeps_transparency():
    pixels = np.zeros((2, 2, 4), dtype=np.uint8)
    pixels[0, 0] = (10, 20, 30, 255)
    cutout = Cutout(pixels=pixels, category=5)

    decoded = cv2.imdecode(np.frombuffer(cutout.to_png_bytes(), np.uint8), cv2.IMREAD_UNCHANGED)

    assert decoded.shape == (2, 2, 4)
    assert tuple(decoded[0, 0]) == (30, 20, 10, 255)  # BGRA
    assert decoded[1, 1, 3] == 0
