"""
Tests for the async API client.
"""
import zipfile

import httpx
import pytest
from httpx import ASGITransport

from galeria.client.api import GaleriaClient, attachment_filename, load_gallery
from galeria.client.folders import collect_albums
from galeria.client.result import Err, Ok, unwrap_or
from galeria.main import app

ALBUM = {
    "id": "a1",
    "name": "Wedding",
    "thumbnail": "/uploads/thumbnails/a1/1.jpg",
    "photos": [],
    "hasLightMax": False,
    "createdAt": "2024-03-15T10:00:00Z",
    "updatedAt": "2024-03-15T10:00:00Z",
}


def mock_client(handler):
    return GaleriaClient("http://gallery.test", transport=httpx.MockTransport(handler))


def app_client():
    return GaleriaClient("http://test", transport=ASGITransport(app=app))


@pytest.fixture
def wedding_dir(tmp_path, make_image):
    """Album folder with three light/max pairs and a stray text file."""
    root = tmp_path / "Wedding"
    for variant in ("light", "max"):
        (root / variant).mkdir(parents=True)
        for i in (1, 2, 10):
            (root / variant / f"img{i}.jpg").write_bytes(make_image(color=(i * 20, 0, 0)))
    (root / "notes.txt").write_text("not a photo")
    return root


@pytest.mark.asyncio
class TestGaleriaClient:
    """Client behaviour against a mocked transport."""

    async def test_list_albums(self):
        def handler(request):
            assert request.url.path == "/api/albums"
            return httpx.Response(200, json=[ALBUM])

        async with mock_client(handler) as client:
            result = await client.list_albums()

        assert isinstance(result, Ok)
        assert result.value[0].name == "Wedding"

    async def test_http_error_becomes_err(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "Album not found: x"})

        async with mock_client(handler) as client:
            result = await client.get_album("x")

        assert isinstance(result, Err)
        assert not result.ok
        assert result.status_code == 404
        assert result.reason == "Album not found: x"

    async def test_network_error_becomes_err(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            result = await client.health()

        assert isinstance(result, Err)
        assert result.status_code is None
        assert "Network error" in result.reason

    async def test_create_and_rename_send_json(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, request.content))
            return httpx.Response(201 if request.method == "POST" else 200, json=ALBUM)

        async with mock_client(handler) as client:
            assert (await client.create_album("Wedding")).ok
            assert (await client.rename_album("a1", "Wedding")).ok

        assert seen[0][:2] == ("POST", "/api/albums")
        assert seen[1][:2] == ("PUT", "/api/albums/a1")
        assert b'"Wedding"' in seen[0][2]

    async def test_delete(self):
        def handler(request):
            return httpx.Response(200, json={"message": "deleted", "id": "a1"})

        async with mock_client(handler) as client:
            assert await client.delete_album("a1") == Ok("a1")
            assert await client.delete_photo("a1", "p1") == Ok("p1")

    async def test_load_gallery_falls_back_to_demo(self):
        def handler(request):
            return httpx.Response(503, text="down")

        async with mock_client(handler) as client:
            albums, is_demo = await load_gallery(client)

        assert is_demo is True
        assert len(albums) == 4

    async def test_load_gallery_uses_backend(self):
        def handler(request):
            if request.url.path == "/api/health":
                return httpx.Response(200, json={"status": "ok"})
            return httpx.Response(200, json=[ALBUM])

        async with mock_client(handler) as client:
            albums, is_demo = await load_gallery(client)

        assert is_demo is False
        assert [a.id for a in albums] == ["a1"]

    async def test_failed_first_batch(self, wedding_dir):
        def handler(request):
            return httpx.Response(500, json={"detail": "Internal server error"})

        upload = collect_albums([wedding_dir])[0]
        async with mock_client(handler) as client:
            result = await client.upload_album(upload)

        assert isinstance(result, Err)
        assert result.status_code == 500
        assert "Batch 1/1" in result.reason


def test_client_requires_context_manager():
    with pytest.raises(RuntimeError):
        GaleriaClient("http://x").client


def test_image_url():
    client = GaleriaClient("http://localhost:3001/")
    assert client.image_url("/uploads/albums/a/1.jpg") == "http://localhost:3001/uploads/albums/a/1.jpg"
    assert client.image_url("https://images.example.com/1.jpg") == "https://images.example.com/1.jpg"


def test_attachment_filename():
    encoded = httpx.Response(200, headers={"content-disposition": "attachment; filename*=utf-8''Lena%20%C5%9Alub.zip"})
    plain = httpx.Response(200, headers={"content-disposition": 'attachment; filename="Lena.zip"'})

    assert attachment_filename(encoded, "x.zip") == "Lena Ślub.zip"
    assert attachment_filename(plain, "x.zip") == "Lena.zip"
    assert attachment_filename(httpx.Response(200), "x.zip") == "x.zip"


def test_unwrap_or():
    assert unwrap_or(Ok(1), 0) == 1
    assert unwrap_or(Err("no"), 0) == 0


@pytest.mark.asyncio
async def test_chunked_light_max_upload(client, wedding_dir):
    """Upload in three batches against the real app; every batch carries both variants."""
    upload = collect_albums([wedding_dir])[0]
    progress = []

    async with app_client() as gallery:
        result = await gallery.upload_album(upload, on_progress=lambda s, t: progress.append((s, t)), batch_size=2)

    assert isinstance(result, Ok)
    summary = result.value
    assert summary.album.name == "Wedding"
    assert summary.album.has_light_max is True
    assert [p.title for p in summary.album.photos] == ["img1", "img2", "img10"]
    assert summary.uploaded_files == 3
    assert progress == [(2, 6), (4, 6), (6, 6)]


@pytest.mark.asyncio
async def test_chunked_flat_upload(client, tmp_path, make_image):
    for i in range(5):
        (tmp_path / f"{i}.jpg").write_bytes(make_image())
    upload = collect_albums(sorted(tmp_path.glob("*.jpg")), default_name="Loose")[0]

    async with app_client() as gallery:
        result = await gallery.upload_album(upload, batch_size=2)

    assert result.ok
    assert result.value.album.name == "Loose"
    assert len(result.value.album.photos) == 5


@pytest.mark.asyncio
async def test_download_albums(client, wedding_dir, tmp_path):
    upload = collect_albums([wedding_dir])[0]

    async with app_client() as gallery:
        album = (await gallery.upload_album(upload)).value.album
        result = await gallery.download_albums([album.id], tmp_path / "out")
        missing = await gallery.download_albums(["nope"], tmp_path / "out")

    assert isinstance(result, Ok)
    assert result.value.name == "Lena Wedding.zip"
    with zipfile.ZipFile(result.value) as zf:
        assert len([n for n in zf.namelist() if not n.endswith("/")]) == 6
    assert isinstance(missing, Err) and missing.status_code == 404


@pytest.mark.asyncio
async def test_uneven_light_max_upload(client, store, tmp_path, make_image):
    """More light than max files: batches stay bounded and no extra max file is stored."""
    root = tmp_path / "Party"
    (root / "light").mkdir(parents=True)
    (root / "max").mkdir()
    for i in (1, 2, 3):
        (root / "light" / f"img{i}.jpg").write_bytes(make_image())
    (root / "max" / "img1.jpg").write_bytes(make_image())
    (root / "max" / "extra.jpg").write_bytes(make_image())
    upload = collect_albums([root])[0]
    progress = []

    async with app_client() as gallery:
        result = await gallery.upload_album(upload, on_progress=lambda s, t: progress.append((s, t)), batch_size=2)

    assert result.ok
    summary = result.value
    assert [p.title for p in summary.album.photos] == ["img1", "img2", "img3"]
    assert [r.filename for r in summary.rejected] == ["max___extra.jpg"]
    assert progress == [(3, 5), (4, 5), (5, 5)]
    max_dir = store.album_dir(summary.album.id) / "max"
    assert sorted(p.name for p in max_dir.iterdir()) == ["img1.jpg"]
