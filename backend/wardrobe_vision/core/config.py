"""
Application configuration management using Pydantic Settings.
"""
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Wardrobe Vision"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Database
    DATABASE_URL: str = "sqlite:///./wardrobe.db"
    DB_ECHO: bool = False

    # Storage
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_BUCKET: str = "wardrobe-images"
    MINIO_SECURE: bool = False

    # Image Upload Limits
    MAX_IMAGE_SIZE_MB: int = 20
    ALLOWED_IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".webp"]

    # Garment pipeline
    PROCESSING_SIZE: int = 512  # Model input is PROCESSING_SIZE x PROCESSING_SIZE
    INCLUDE_SHOES: bool = False
    IMAGE_SOFT_TIME_LIMIT_SECONDS: float = 30.0
    SEGMENTATION_MODEL: Optional[str] = None  # "package.module:factory"

    # Processing
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    ANALYSIS_QUEUE: str = "garment_analysis"
    ANALYSIS_TASK_TIME_LIMIT_SECONDS: int = 1800
    ANALYSIS_RESULT_TTL_SECONDS: int = 86400


settings = Settings()
