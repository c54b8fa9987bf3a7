"""
Services for batch sequencing, wardrobe records and object storage.
"""
from wardrobe_vision.services.batch_sequencer import BatchSequencer, BatchProgress, BatchSummary, get_batch_sequencer
from wardrobe_vision.services.storage_service import get_storage_service, StorageService
from wardrobe_vision.services.wardrobe_service import UnresolvedColorError, WardrobeService, get_wardrobe_service

__all__ = [
    "BatchSequencer",
    "BatchProgress",
    "BatchSummary",
    "get_batch_sequencer",
    "get_storage_service",
    "StorageService",
    "UnresolvedColorError",
    "WardrobeService",
    "get_wardrobe_service",
]
