"""
HTTP API package.
"""
from wardrobe_vision.api.v1 import api_router

__all__ = ["api_router"]
