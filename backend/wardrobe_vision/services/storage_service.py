"""
Object storage service for wardrobe images.

Everything lives in one S3-compatible bucket (MinIO/AWS S3) under three
prefixes:
- uploads/   original photos queued for offline analysis
- cutouts/   per-photo garment cutouts written by the analysis task
- wardrobe/  cutouts of committed wardrobe items

MinIO errors surface as RuntimeError so callers don't depend on the client
library.
"""
import io
import logging
import os
from typing import Callable, Dict, List, Optional, TypeVar

from minio import Minio
from minio.error import S3Error

from wardrobe_vision.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

PATH_PREFIXES = ("uploads", "cutouts", "wardrobe")


class StorageService:
    """Byte-level access to the wardrobe images bucket."""

    def __init__(self):
        """Initialize MinIO client from settings."""
        self.client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        self.bucket_name = settings.MINIO_BUCKET
        self.initialized = False

    def _call(self, action: str, operation: Callable[[], T]) -> T:
        try:
            return operation()
        except S3Error as e:
            logger.error(f"❌ Storage {action} failed: {e}")
            raise RuntimeError(f"Storage {action} failed: {e}") from e

    def initialize_bucket(self) -> None:
        """
        Create the images bucket on first use.

        Raises:
            RuntimeError: If the bucket cannot be checked or created
        """
        def create_if_missing() -> bool:
            if self.client.bucket_exists(self.bucket_name):
                return False
            self.client.make_bucket(self.bucket_name)
            return True

        created = self._call("initialization", create_if_missing)
        logger.info(f"✅ Bucket {'created' if created else 'ready'}: {self.bucket_name}")
        self.initialized = True

    def ensure_initialized(self) -> None:
        if not self.initialized:
            self.initialize_bucket()

    # ========================================================================
    # Object Access
    # ========================================================================

    def upload_bytes(
        self,
        object_name: str,
        data: bytes,
        content_type: str = "image/png",
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Optional[str]]:
        """
        Store an in-memory object, replacing any existing one.

        Args:
            object_name: Object key, e.g. "wardrobe/wardrobe_item_<id>.png"
            data: Object contents
            content_type: MIME type
            metadata: Optional user metadata (stored as x-amz-meta-*)

        Returns:
            Dict with "object_name", "etag", "version_id"
        """
        self.ensure_initialized()

        result = self._call("upload", lambda: self.client.put_object(
            self.bucket_name,
            object_name,
            io.BytesIO(data),
            length=len(data),
            content_type=content_type,
            metadata=metadata,
        ))
        logger.info(f"✅ Stored {object_name} ({len(data)} bytes)")

        return {
            "object_name": result.object_name,
            "etag": result.etag,
            "version_id": result.version_id or None,
        }

    def download_bytes(self, object_name: str) -> bytes:
        """Read a whole object into memory."""
        self.ensure_initialized()

        def read() -> bytes:
            response = self.client.get_object(self.bucket_name, object_name)
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()

        data = self._call("download", read)
        logger.debug(f"Fetched {object_name} ({len(data)} bytes)")
        return data

    def delete_file(self, object_name: str) -> None:
        self.ensure_initialized()
        self._call("deletion", lambda: self.client.remove_object(self.bucket_name, object_name))
        logger.info(f"✅ Deleted {object_name}")

    def file_exists(self, object_name: str) -> bool:
        """
        Check whether an object exists.

        Raises:
            RuntimeError: On any storage error other than a missing key
        """
        self.ensure_initialized()

        try:
            self.client.stat_object(self.bucket_name, object_name)
        except S3Error as e:
            if e.code == "NoSuchKey":
                return False
            logger.error(f"❌ Storage existence check failed: {e}")
            raise RuntimeError(f"Storage existence check failed: {e}") from e
        return True

    def list_objects(self, prefix: str) -> List[str]:
        """List object keys under a prefix, e.g. every cutout of one photo."""
        self.ensure_initialized()
        objects = self._call("listing", lambda: list(
            self.client.list_objects(self.bucket_name, prefix=prefix, recursive=True)
        ))
        return [obj.object_name for obj in objects]

    # ========================================================================
    # Object Keys
    # ========================================================================

    def generate_object_path(self, filename: str, path_type: str = "wardrobe") -> str:
        """
        Build the object key for a file.

        Args:
            filename: File name; directory components are dropped
            path_type: One of "uploads", "cutouts", "wardrobe"

        Returns:
            Key like "wardrobe/wardrobe_item_<id>.png"

        Raises:
            ValueError: If path_type is not a known prefix
        """
        if path_type not in PATH_PREFIXES:
            raise ValueError(f"Unknown path type: {path_type}")
        return f"{path_type}/{os.path.basename(filename)}"


# ========================================================================
# Singleton Instance
# ========================================================================

_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """
    Get singleton storage service, creating the bucket on first call.

    Raises:
        RuntimeError: If the bucket cannot be initialized
    """
    global _storage_service

    if _storage_service is None:
        service = StorageService()
        service.initialize_bucket()
        _storage_service = service

    return _storage_service
