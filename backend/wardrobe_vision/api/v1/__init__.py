"""
API v1 router aggregation.
"""
from fastapi import APIRouter

from wardrobe_vision.api.v1 import analysis, wardrobe

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(analysis.router)
api_router.include_router(wardrobe.router)

__all__ = ["api_router"]
