"""
Process startup for the API.

Tables are created unconditionally. Storage and the segmentation model are
optional at boot: if either is unreachable the API still starts, and the
endpoints that need them fail individually until it comes back.
"""
import logging
from typing import Callable, List, Tuple

from wardrobe_vision.core.config import settings
from wardrobe_vision.core.database import Base, engine
from wardrobe_vision.cv.garment_segmenter import get_segmenter
from wardrobe_vision.services.storage_service import get_storage_service

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def initialize_database() -> None:
    """Create the wardrobe tables if missing."""
    # Registers WardrobeItem on Base.metadata
    import wardrobe_vision.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Wardrobe tables ready")


def _optional(name: str, step: Callable[[], object]) -> bool:
    try:
        step()
    except Exception as e:
        logger.warning(f"⚠️  {name} unavailable at startup: {e}")
        return False
    logger.info(f"✅ {name} ready")
    return True


def run_startup_tasks() -> List[Tuple[str, bool]]:
    """
    Prepare logging, tables, the images bucket and the segmentation model.

    Returns:
        (component, ready) pairs for the optional components
    """
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME}")

    initialize_database()
    status = [
        ("Object storage", _optional("Object storage", get_storage_service)),
        ("Segmentation model", _optional("Segmentation model", get_segmenter)),
    ]

    missing = [name for name, ready in status if not ready]
    if missing:
        logger.warning(f"⚠️  Started in degraded mode without: {', '.join(missing)}")
    else:
        logger.info("✅ Startup complete")
    return status
