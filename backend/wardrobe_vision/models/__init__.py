"""
SQLAlchemy ORM models.
"""
from wardrobe_vision.models.wardrobe import WardrobeItem

__all__ = [
    "WardrobeItem",
]
