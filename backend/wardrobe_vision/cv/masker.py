"""
Garment Masking Module

Produces alpha-masked cutouts: pixels that belong to the target garment keep
their color, everything else becomes fully transparent.

All buffers are RGBA uint8 in (H, W, 4) layout. OpenCV decodes and encodes in
BGR(A) order, so conversions happen only at the bytes boundary.
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

import numpy as np
import cv2

logger = logging.getLogger(__name__)


class ImageDecodeError(ValueError):
    """Raised when image bytes or arrays cannot become an RGBA buffer."""


@dataclass(frozen=True)
class SourceImage:
    """RGBA pixel buffer with the display metadata of the photo it came from."""
    pixels: np.ndarray  # (H, W, 4) uint8
    orientation: int = 1  # EXIF orientation code
    scale: float = 1.0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def resized(self, width: int, height: int) -> "SourceImage":
        """Return a copy scaled to width x height, metadata preserved."""
        if (width, height) == (self.width, self.height):
            return self
        pixels = cv2.resize(self.pixels, (width, height), interpolation=cv2.INTER_AREA)
        return replace(self, pixels=pixels)


@dataclass(frozen=True)
class Cutout:
    """Alpha-masked garment image at label grid resolution."""
    pixels: np.ndarray  # (H, W, 4) uint8
    category: int
    orientation: int = 1
    scale: float = 1.0

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    def to_png_bytes(self) -> bytes:
        """Encode as PNG, keeping transparency."""
        ok, buffer = cv2.imencode(".png", cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGRA))
        if not ok:
            raise RuntimeError("PNG encoding failed")
        return buffer.tobytes()


def to_rgba(image: np.ndarray) -> np.ndarray:
    """
    Convert a grayscale, RGB or RGBA uint8 array into a new RGBA array.

    Raises:
        ImageDecodeError: If the array has an unsupported shape or dtype
    """
    if image is None or image.size == 0:
        raise ImageDecodeError("Invalid image: empty or None")

    if image.dtype != np.uint8:
        raise ImageDecodeError(f"Unsupported image dtype: {image.dtype}, expected uint8")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2RGBA)
    if image.ndim == 3 and image.shape[2] == 4:
        return image.copy()

    raise ImageDecodeError(f"Invalid image shape: {image.shape}, expected (H, W), (H, W, 3) or (H, W, 4)")


def decode_image(data: bytes, orientation: int = 1, scale: float = 1.0) -> SourceImage:
    """
    Decode encoded image bytes (JPEG, PNG, ...) into a SourceImage.

    Raises:
        ImageDecodeError: If OpenCV cannot decode the bytes
    """
    if not data:
        raise ImageDecodeError("Invalid image: no data")

    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise ImageDecodeError("Could not decode image bytes")

    if decoded.dtype == np.uint16:
        decoded = (decoded // 257).astype(np.uint8)

    if decoded.ndim == 2:
        pixels = cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    elif decoded.shape[2] == 3:
        pixels = cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    elif decoded.shape[2] == 4:
        pixels = cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    else:
        raise ImageDecodeError(f"Unsupported channel count: {decoded.shape[2]}")

    return SourceImage(pixels=pixels, orientation=orientation, scale=scale)


def load_source_image(image: Union[SourceImage, np.ndarray, bytes]) -> SourceImage:
    """
    Accept a SourceImage, an RGB(A) array or encoded bytes.

    A SourceImage whose buffer is not RGBA is converted, metadata kept.

    Raises:
        ImageDecodeError: If the input cannot become an RGBA buffer
    """
    if isinstance(image, SourceImage):
        pixels = image.pixels
        if isinstance(pixels, np.ndarray) and pixels.ndim == 3 and pixels.shape[2] == 4:
            return image
        if not isinstance(pixels, np.ndarray):
            raise ImageDecodeError(f"Unsupported pixel buffer: {type(pixels).__name__}")
        return replace(image, pixels=to_rgba(pixels))
    if isinstance(image, (bytes, bytearray, memoryview)):
        return decode_image(bytes(image))
    if isinstance(image, np.ndarray):
        return SourceImage(pixels=to_rgba(image))
    raise ImageDecodeError(f"Unsupported image type: {type(image).__name__}")


class Masker:
    """Cuts one garment category out of a grid-resolution source image."""

    def create_cutout(
        self,
        grid: np.ndarray,
        category: int,
        source: Union[SourceImage, np.ndarray, bytes]
    ) -> Optional[Cutout]:
        """
        Build the cutout for ``category``.

        Alpha is zeroed wherever the grid cell is another category and left
        untouched where it matches. RGB is copied unchanged.

        Args:
            grid: Remapped label grid (H x W)
            category: Target category id
            source: Source image at grid resolution

        Returns:
            Cutout, or None if the source cannot be turned into a matching
            RGBA buffer (the caller skips this category)
        """
        try:
            image = load_source_image(source)
        except ImageDecodeError as e:
            logger.warning(f"Skipping category {category}: {e}")
            return None

        if image.pixels.shape[:2] != grid.shape:
            logger.warning(
                f"Skipping category {category}: image {image.pixels.shape[:2]} "
                f"does not match grid {grid.shape}"
            )
            return None

        pixels = image.pixels.copy()
        pixels[grid != category, 3] = 0

        return Cutout(
            pixels=pixels,
            category=category,
            orientation=image.orientation,
            scale=image.scale,
        )


def create_masker() -> Masker:
    """Factory function to create a masker."""
    return Masker()
