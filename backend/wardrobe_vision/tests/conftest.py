"""
Pytest configuration and fixtures for testing.
"""
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wardrobe_vision.api.v1.analysis import get_sequencer
from wardrobe_vision.core.database import Base, get_db
from wardrobe_vision.main import app
from wardrobe_vision.models import WardrobeItem  # noqa: F401
from wardrobe_vision.services.batch_sequencer import BatchSequencer
from wardrobe_vision.services.storage_service import StorageService
from wardrobe_vision.services.wardrobe_service import WardrobeService, get_wardrobe_service
from wardrobe_vision.tests.fakes import (
    FakeSegmentationModel,
    encode_png,
    make_analyzer,
    make_outfit_grid,
    make_outfit_pixels,
)

# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: fast tests with no external services"
    )
    config.addinivalue_line(
        "markers", "integration: tests that wire several components together"
    )


@pytest.fixture
def outfit_png():
    """PNG photo with a red top half and a blue bottom half."""
    return encode_png(make_outfit_pixels())


@pytest.fixture
def fake_model():
    return FakeSegmentationModel(make_outfit_grid())


@pytest.fixture
def analyzer(fake_model):
    return make_analyzer(fake_model)


@pytest.fixture
def sequencer(analyzer):
    """Foreground sequencer: add_images() drains before returning."""
    return BatchSequencer(analyzer, background=False)


@pytest.fixture
def mock_storage():
    """Storage service double with real object path generation."""
    storage = Mock(spec=StorageService)
    storage.generate_object_path.side_effect = (
        lambda filename, path_type="wardrobe": f"{path_type}/{filename}"
    )
    storage.download_bytes.return_value = b"\x89PNG stored"
    return storage


@pytest.fixture(scope="function")
def db_session():
    """Create a new database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def wardrobe_service(db_session, mock_storage):
    return WardrobeService(db_session, mock_storage)


@pytest.fixture(scope="function")
def client(db_session, sequencer, wardrobe_service):
    """Create a test client with database, sequencer and storage overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sequencer] = lambda: sequencer
    app.dependency_overrides[get_wardrobe_service] = lambda: wardrobe_service

    # Startup would reach for MinIO and the configured model
    with patch("wardrobe_vision.main.run_startup_tasks"):
        with TestClient(app) as test_client:
            yield test_client
    app.dependency_overrides.clear()
