"""
Color Extraction Module

Samples the mean color of a garment cutout and names it with an ordered
table of HSV ranges.

HSV is expressed in OpenCV 8-bit units throughout, kept as floats:
- H: hue in half-degrees (0-180, so 358 degrees -> 179.0)
- S: saturation (0-255)
- V: value / brightness (0-255)

A range whose hue_low is greater than its hue_high wraps around the 0/180
boundary and matches hue >= hue_low OR hue <= hue_high.
"""
import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np
import cv2

from wardrobe_vision.cv.masker import Cutout

logger = logging.getLogger(__name__)

UNKNOWN_COLOR = "unknown color"
MULTICOLOR = "multicolor"

# Representative color when nothing could be sampled
DEFAULT_GRAY: Tuple[float, float, float] = (128.0, 128.0, 128.0)


class ColorRange(NamedTuple):
    """Named HSV interval, bounds inclusive."""
    name: str
    hue_low: int
    hue_high: int
    sat_low: int
    sat_high: int
    val_low: int
    val_high: int

    @property
    def wraps(self) -> bool:
        return self.hue_low > self.hue_high

    def contains(self, hue: float, sat: float, val: float) -> bool:
        if self.wraps:
            hue_ok = hue >= self.hue_low or hue <= self.hue_high
        else:
            hue_ok = self.hue_low <= hue <= self.hue_high
        return (
            hue_ok
            and self.sat_low <= sat <= self.sat_high
            and self.val_low <= val <= self.val_high
        )


# Evaluated top to bottom; the first match wins
DEFAULT_COLOR_RANGES: Tuple[ColorRange, ...] = (
    ColorRange("white", 0, 179, 0, 18, 231, 255),
    ColorRange("black", 0, 179, 0, 255, 0, 30),
    ColorRange("gray", 0, 179, 0, 18, 40, 230),
    ColorRange("yellow", 25, 35, 50, 255, 70, 255),
    ColorRange("red", 0, 9, 50, 255, 70, 255),
    ColorRange("red", 159, 179, 50, 255, 70, 255),
    ColorRange("blue", 90, 128, 50, 255, 70, 255),
    ColorRange("green", 36, 89, 50, 255, 70, 255),
    ColorRange("brown", 10, 20, 100, 255, 20, 200),
    ColorRange("pink", 160, 179, 20, 100, 180, 255),
    ColorRange("orange", 10, 24, 50, 255, 70, 255),
    ColorRange("purple", 129, 158, 50, 255, 70, 255),
)

# Every label the classifier can produce
COLOR_VOCABULARY: Tuple[str, ...] = (
    "white", "black", "gray", "yellow", "red", "blue",
    "green", "brown", "pink", "orange", "purple", UNKNOWN_COLOR,
)

# Labels a reviewer may assign by hand
REVIEW_COLOR_LABELS: Tuple[str, ...] = COLOR_VOCABULARY + (MULTICOLOR,)


@dataclass(frozen=True)
class ColorSample:
    """Mean RGB (0-255 floats) over the opaque pixels of a cutout."""
    rgb: Tuple[float, float, float]
    pixel_count: int


@dataclass(frozen=True)
class ColorClassification:
    """Color name with the representative RGB it was derived from."""
    color_name: str
    rgb: Tuple[float, float, float]


class ColorSampler:
    """Averages the color of every visible pixel of a cutout."""

    def sample(self, cutout: Cutout) -> Optional[ColorSample]:
        """
        Compute the mean RGB over pixels with alpha > 0.

        Args:
            cutout: Alpha-masked garment image

        Returns:
            ColorSample, or None if the cutout has no opaque pixel
        """
        visible = cutout.alpha > 0
        count = int(np.count_nonzero(visible))
        if count == 0:
            logger.debug(f"Cutout for category {cutout.category} is fully transparent")
            return None

        mean = cutout.pixels[visible][:, :3].astype(np.float64).mean(axis=0)
        return ColorSample(
            rgb=(float(mean[0]), float(mean[1]), float(mean[2])),
            pixel_count=count,
        )


def rgb_to_hsv(rgb: Tuple[float, float, float]) -> Tuple[float, float, float]:
    """
    Convert an RGB triple (0-255) to table units.

    Values are not rounded: range bounds are compared against the
    continuous hue, saturation and value.

    Returns:
        (hue 0-180 half-degrees, saturation 0-255, value 0-255)
    """
    pixel = np.array([[rgb]], dtype=np.float32) / 255.0
    h, s, v = cv2.cvtColor(pixel, cv2.COLOR_RGB2HSV)[0, 0]

    # OpenCV float HSV: H in degrees [0, 360), S and V in [0, 1]
    hue = (float(h) / 2.0) % 180.0
    sat = float(s) * 255.0
    val = float(v) * 255.0
    return hue, sat, val


class ColorClassifier:
    """
    Name a mean color by walking an ordered table of HSV ranges.

    Classification is a pure function of the input RGB. When several ranges
    could match, declaration order decides.
    """

    def __init__(self, ranges: Sequence[ColorRange] = DEFAULT_COLOR_RANGES):
        self.ranges = tuple(ranges)

    def classify_hsv(self, hue: float, sat: float, val: float) -> str:
        for color_range in self.ranges:
            if color_range.contains(hue, sat, val):
                return color_range.name
        return UNKNOWN_COLOR

    def classify_rgb(self, rgb: Tuple[float, float, float]) -> ColorClassification:
        hue, sat, val = rgb_to_hsv(rgb)
        name = self.classify_hsv(hue, sat, val)
        if name == UNKNOWN_COLOR:
            logger.debug(f"No color range matches rgb={rgb} hsv=({hue}, {sat}, {val})")
        return ColorClassification(color_name=name, rgb=tuple(rgb))

    def classify(self, sample: Optional[ColorSample]) -> ColorClassification:
        """
        Classify a color sample.

        Args:
            sample: Output of ColorSampler.sample (None means no sample)

        Returns:
            ColorClassification; "unknown color" with gray for no sample
        """
        if sample is None:
            return ColorClassification(color_name=UNKNOWN_COLOR, rgb=DEFAULT_GRAY)
        return self.classify_rgb(sample.rgb)


def create_color_sampler() -> ColorSampler:
    """Factory function to create a color sampler."""
    return ColorSampler()


def create_color_classifier(ranges: Sequence[ColorRange] = DEFAULT_COLOR_RANGES) -> ColorClassifier:
    """
    Factory function to create a color classifier.

    Args:
        ranges: Ordered color range table

    Returns:
        ColorClassifier instance
    """
    return ColorClassifier(ranges=ranges)
