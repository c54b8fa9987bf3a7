"""
Test doubles and image builders shared across the test suite.
"""
import cv2
import numpy as np

from wardrobe_vision.cv.garment_analyzer import GarmentAnalyzer
from wardrobe_vision.cv.garment_segmenter import GarmentSegmenter

RED = (255, 0, 0)
BLUE = (0, 0, 255)

# Raw SegFormer indices
UPPER_CLOTHES = 4
PANTS = 6


def encode_png(rgb_pixels: np.ndarray) -> bytes:
    """Encode an RGB uint8 array as PNG bytes."""
    ok, buffer = cv2.imencode(".png", cv2.cvtColor(rgb_pixels, cv2.COLOR_RGB2BGR))
    assert ok
    return buffer.tobytes()


def make_outfit_pixels(size: int = 16, top=RED, bottom=BLUE) -> np.ndarray:
    """Square RGB photo: top half one color, bottom half another."""
    pixels = np.zeros((size, size, 3), dtype=np.uint8)
    pixels[: size // 2] = top
    pixels[size // 2:] = bottom
    return pixels


def make_outfit_grid(size: int = 8) -> np.ndarray:
    """Raw label grid matching make_outfit_pixels: upper clothes over pants."""
    grid = np.zeros((size, size), dtype=np.int64)
    grid[: size // 2] = UPPER_CLOTHES
    grid[size // 2:] = PANTS
    return grid


class FakeSegmentationModel:
    """Returns a fixed label grid and records the images it was given."""

    def __init__(self, grid: np.ndarray):
        self.grid = grid
        self.calls = []

    def predict(self, image: np.ndarray) -> np.ndarray:
        self.calls.append(image)
        return self.grid.copy()


class FailingSegmentationModel:
    """Raises on every prediction."""

    def predict(self, image: np.ndarray) -> np.ndarray:
        raise RuntimeError("model crashed")


def make_analyzer(model=None, processing_size: int = 16, time_limit=None) -> GarmentAnalyzer:
    """Analyzer over a fake model that always sees the outfit grid."""
    model = model or FakeSegmentationModel(make_outfit_grid())
    return GarmentAnalyzer(
        segmenter=GarmentSegmenter(model, processing_size=processing_size),
        time_limit=time_limit,
    )


def build_blank_model() -> FakeSegmentationModel:
    """Zero-argument model factory, loadable via SEGMENTATION_MODEL."""
    return FakeSegmentationModel(np.zeros((8, 8), dtype=np.int64))
