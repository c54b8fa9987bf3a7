"""
Background tasks package.

Celery tasks for:
- Offline garment analysis of stored photos
"""
from wardrobe_vision.tasks.analysis_tasks import analyze_stored_images

__all__ = [
    "analyze_stored_images",
]
