"""Shared pytest fixtures for Stockpile tests."""

import pytest
from pathlib import Path
import tempfile
import shutil
from typing import Generator

from fastapi.testclient import TestClient

from stockpile.api.main import create_app
from stockpile.core.blob_store import BlobStore
from stockpile.core.config import StockpileConfig
from stockpile.core.inventory import InventoryStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Path of the blob root used by the test service (not yet created)."""
    return temp_dir / "cache"


@pytest.fixture
def test_config(temp_dir: Path, cache_dir: Path) -> StockpileConfig:
    """Create a test configuration pointing at temporary directories.

    Args:
        temp_dir: Temporary directory from fixture
        cache_dir: Blob root inside the temporary directory

    Returns:
        StockpileConfig instance for testing
    """
    templates_dir = temp_dir / "templates"
    templates_dir.mkdir()
    (templates_dir / "RegisterForm.html").write_text("<form>register</form>")

    return StockpileConfig(
        host="127.0.0.1",
        port=8000,
        cache_dir=str(cache_dir),
        templates_dir=str(templates_dir),
        max_photo_bytes=1024,
        _env_file=None,
    )


@pytest.fixture
def blob_store(cache_dir: Path) -> BlobStore:
    """Blob store rooted in the temporary cache directory."""
    return BlobStore(cache_dir)


@pytest.fixture
def inventory(blob_store: BlobStore) -> InventoryStore:
    """Empty inventory backed by the temporary blob store."""
    return InventoryStore(blob_store)


@pytest.fixture
def test_client(test_config: StockpileConfig, inventory: InventoryStore) -> Generator[TestClient, None, None]:
    """TestClient for an app sharing the ``inventory`` fixture."""
    app = create_app(test_config, inventory=inventory)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def photo_bytes() -> bytes:
    """A small binary payload standing in for a JPEG photo."""
    return b"\xff\xd8\xff\xe0" + bytes(range(256)) + b"\xff\xd9"
