"""
Pytest configuration and fixtures.
"""
import io

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from galeria.core.config import Settings
from galeria.main import app
from galeria.services.album_store import JsonAlbumStore
from galeria.services.archive import ArchiveBuilder
from galeria.services.ingestion import IngestionPipeline
from galeria.services.storage_factory import (
    get_album_store,
    get_archive_builder,
    get_ingestion_pipeline,
)


def image_bytes(width=64, height=48, color=(200, 60, 40), fmt="JPEG", mode="RGB"):
    """Encode a solid-colour image in memory."""
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, fmt)
    return buf.getvalue()


def mpo_bytes(width=64, height=48):
    """Two-frame multi-picture JPEG, as written by many cameras."""
    buf = io.BytesIO()
    first = Image.new("RGB", (width, height), (200, 60, 40))
    second = Image.new("RGB", (width, height), (40, 60, 200))
    first.save(buf, "MPO", save_all=True, append_images=[second])
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory for in-memory test images."""
    return image_bytes


@pytest.fixture
def make_mpo():
    return mpo_bytes


@pytest.fixture
def test_settings(tmp_path):
    """Settings rooted in the test's temporary directory."""
    return Settings(
        STORAGE_ROOT=str(tmp_path),
        OWNER_PASSPHRASE="owner-secret",
        GUEST_PASSPHRASE="guest-secret",
        _env_file=None,
    )


@pytest.fixture
def store(test_settings):
    """Fresh album store for each test."""
    return JsonAlbumStore(
        data_file=test_settings.data_file_path,
        uploads_dir=test_settings.uploads_path,
    )


@pytest.fixture
def pipeline(store, test_settings):
    return IngestionPipeline(store, test_settings)


@pytest.fixture
def builder(store, test_settings):
    return ArchiveBuilder(store, test_settings)


@pytest.fixture
async def client(store, pipeline, builder):
    """HTTP client against the app, wired to the test store."""
    app.dependency_overrides[get_album_store] = lambda: store
    app.dependency_overrides[get_ingestion_pipeline] = lambda: pipeline
    app.dependency_overrides[get_archive_builder] = lambda: builder

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
