import shutil
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hp_tracker import storage
from hp_tracker.app import create_app
from hp_tracker.uploads import UploadRegistry

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe and re-init data-tests/ before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    storage.init_storage(TEST_DATA_DIR / "characters.json", TEST_DATA_DIR / "settings.json")
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture
def uploads_dir() -> Path:
    return TEST_DATA_DIR / "uploads"


@pytest.fixture
def uploads(uploads_dir) -> UploadRegistry:
    return UploadRegistry(uploads_dir)


@pytest.fixture
def client(uploads_dir):
    """TestClient over a fresh app backed by data-tests/ (runs lifespan)."""
    app = create_app(data_dir=TEST_DATA_DIR, uploads_dir=uploads_dir)
    with TestClient(app) as c:
        yield c
