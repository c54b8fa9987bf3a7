"""
Computer Vision Pipeline

This package contains the garment classification pipeline:
- Segmentation model wrapper (external oracle)
- Label remapping to garment categories
- Region extraction and coordinate rescaling
- Alpha masking of garment cutouts
- Mean color sampling and HSV color naming
"""

from wardrobe_vision.cv.label_remapper import (
    CategoryCatalog,
    LabelRemapper,
    create_catalog,
    create_remapper,
)
from wardrobe_vision.cv.region_extractor import BoundingBox, GridBox, GarmentRegion, extract_region, rescale_box
from wardrobe_vision.cv.masker import Cutout, ImageDecodeError, Masker, SourceImage, create_masker, decode_image
from wardrobe_vision.cv.color_extractor import (
    ColorClassification,
    ColorClassifier,
    ColorRange,
    ColorSample,
    ColorSampler,
    UNKNOWN_COLOR,
    create_color_classifier,
    create_color_sampler,
)
from wardrobe_vision.cv.garment_segmenter import (
    GarmentSegmenter,
    SegmentationError,
    SegmentationModel,
    create_segmenter,
    get_segmenter,
)
from wardrobe_vision.cv.garment_analyzer import (
    GarmentAnalyzer,
    GarmentItem,
    ImageJob,
    ProcessingTimeout,
    create_garment_analyzer,
)

__all__ = [
    "CategoryCatalog",
    "LabelRemapper",
    "create_catalog",
    "create_remapper",
    "BoundingBox",
    "GridBox",
    "GarmentRegion",
    "extract_region",
    "rescale_box",
    "Cutout",
    "ImageDecodeError",
    "Masker",
    "SourceImage",
    "create_masker",
    "decode_image",
    "ColorClassification",
    "ColorClassifier",
    "ColorRange",
    "ColorSample",
    "ColorSampler",
    "UNKNOWN_COLOR",
    "create_color_classifier",
    "create_color_sampler",
    "GarmentSegmenter",
    "SegmentationError",
    "SegmentationModel",
    "create_segmenter",
    "get_segmenter",
    "GarmentAnalyzer",
    "GarmentItem",
    "ImageJob",
    "ProcessingTimeout",
    "create_garment_analyzer",
]
