"""
HTTP API tests: albums, uploads, downloads and health.
"""
import io
import zipfile

import pytest


def _jpegs(make_image, *names):
    return [("photos", (name, make_image(color=(i * 50, 20, 20)), "image/jpeg")) for i, name in enumerate(names)]


async def _create(client, name):
    response = await client.post("/api/albums", json={"name": name})
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data
    assert data["storage"]["mode"] == "local"
    assert "albumsPath" in data["storage"]


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")
    assert response.json()["status"] == "running"
    assert response.headers["x-content-type-options"] == "nosniff"


@pytest.mark.asyncio
async def test_create_and_get_album(client):
    album = await _create(client, "Wedding")

    assert album["id"]
    assert album["name"] == "Wedding"
    assert album["photos"] == []
    assert album["hasLightMax"] is False
    assert "createdAt" in album and "updatedAt" in album

    response = await client.get(f"/api/albums/{album['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Wedding"


@pytest.mark.asyncio
async def test_create_album_without_name(client):
    response = await client.post("/api/albums", json={"name": "  "})
    assert response.status_code == 400
    assert "name" in response.json()["detail"]

    response = await client.post("/api/albums", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_unknown_album(client):
    response = await client.get("/api/albums/does-not-exist")
    assert response.status_code == 404
    assert "detail" in response.json()


@pytest.mark.asyncio
async def test_rename_album(client):
    album = await _create(client, "Old")

    response = await client.put(f"/api/albums/{album['id']}", json={"name": "New"})
    assert response.status_code == 200
    assert response.json()["name"] == "New"

    response = await client.put("/api/albums/nope", json={"name": "New"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_wedding_scenario(client, make_image):
    album = await _create(client, "Wedding")

    response = await client.post(
        f"/api/albums/{album['id']}/photos",
        files=_jpegs(make_image, "1.jpg", "2.jpg", "3.jpg"),
    )
    assert response.status_code == 201
    body = response.json()
    assert len(body["photos"]) == 3
    assert body["rejected"] == []

    albums = (await client.get("/api/albums")).json()
    assert len(albums) == 1
    assert albums[0]["name"] == "Wedding"
    assert len(albums[0]["photos"]) == 3
    assert albums[0]["thumbnail"] == albums[0]["photos"][0]["thumbnail"]
    for photo in albums[0]["photos"]:
        assert photo["width"] > 0 and photo["height"] > 0
        assert photo["src"].startswith(f"/uploads/albums/{album['id']}/")
        assert "uploadedAt" in photo


@pytest.mark.asyncio
async def test_upload_without_files(client):
    album = await _create(client, "Empty")
    response = await client.post(f"/api/albums/{album['id']}/photos", data={"x": "y"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_upload_only_invalid_files(client):
    album = await _create(client, "Bad")
    response = await client.post(
        f"/api/albums/{album['id']}/photos",
        files=[("photos", ("notes.txt", b"hello", "text/plain"))],
    )
    assert response.status_code == 400
    assert (await client.get(f"/api/albums/{album['id']}")).json()["photos"] == []


@pytest.mark.asyncio
async def test_upload_to_unknown_album(client, make_image):
    response = await client.post("/api/albums/nope/photos", files=_jpegs(make_image, "a.jpg"))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_light_max_scenario(client, make_image):
    album = await _create(client, "Pairs")

    response = await client.post(
        f"/api/albums/{album['id']}/photos",
        files=_jpegs(make_image, "light___a.jpg", "max___a.jpg", "light___b.jpg", "max___b.jpg"),
    )
    assert response.status_code == 201

    updated = (await client.get(f"/api/albums/{album['id']}")).json()
    assert updated["hasLightMax"] is True
    assert len(updated["photos"]) == 2

    response = await client.get(f"/api/albums/{album['id']}/download")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"

    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        files = [n for n in zf.namelist() if not n.endswith("/")]
    light = [n for n in files if " - Light - " in n]
    full = [n for n in files if " - Max - " in n]
    assert len(light) == 2 and len(full) == 2
    assert len({n.split("/", 1)[0] for n in files}) == 2


@pytest.mark.asyncio
async def test_structure_mismatch(client, make_image):
    album = await _create(client, "Pairs")
    await client.post(
        f"/api/albums/{album['id']}/photos",
        files=_jpegs(make_image, "light___a.jpg", "max___a.jpg"),
    )

    response = await client.post(
        f"/api/albums/{album['id']}/photos",
        files=_jpegs(make_image, "light___b.jpg"),
    )

    assert response.status_code == 400
    assert "light" in response.json()["detail"]
    assert len((await client.get(f"/api/albums/{album['id']}")).json()["photos"]) == 1


@pytest.mark.asyncio
async def test_bulk_upload(client, make_image):
    response = await client.post(
        "/api/upload",
        data={"albumName": "Bulk"},
        files=_jpegs(make_image, "a.jpg", "b.jpg"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["album"]["name"] == "Bulk"
    assert len(body["album"]["photos"]) == 2
    assert body["structure"] == "flat"
    assert "Bulk" in body["message"]


@pytest.mark.asyncio
async def test_bulk_upload_validation(client, make_image):
    response = await client.post("/api/upload", data={"albumName": ""}, files=_jpegs(make_image, "a.jpg"))
    assert response.status_code == 400

    response = await client.post(
        "/api/upload",
        data={"albumName": "Junk"},
        files=[("photos", ("a.txt", b"text", "text/plain"))],
    )
    assert response.status_code == 400
    assert (await client.get("/api/albums")).json() == []


@pytest.mark.asyncio
async def test_delete_album_twice(client, make_image, store):
    album = await _create(client, "Gone")
    await client.post(f"/api/albums/{album['id']}/photos", files=_jpegs(make_image, "a.jpg"))

    response = await client.delete(f"/api/albums/{album['id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "Album deleted", "id": album["id"]}
    assert not store.album_dir(album["id"]).exists()

    assert (await client.get(f"/api/albums/{album['id']}")).status_code == 404
    assert (await client.delete(f"/api/albums/{album['id']}")).status_code == 404
    assert (await client.get("/api/albums")).json() == []


@pytest.mark.asyncio
async def test_delete_photo(client, make_image):
    album = await _create(client, "Trim")
    photos = (await client.post(
        f"/api/albums/{album['id']}/photos",
        files=_jpegs(make_image, "a.jpg", "b.jpg"),
    )).json()["photos"]

    response = await client.delete(f"/api/albums/{album['id']}/photos/{photos[0]['id']}")
    assert response.status_code == 200
    assert response.json()["id"] == photos[0]["id"]

    updated = (await client.get(f"/api/albums/{album['id']}")).json()
    assert [p["id"] for p in updated["photos"]] == [photos[1]["id"]]
    assert updated["thumbnail"] == photos[1]["thumbnail"]

    response = await client.delete(f"/api/albums/{album['id']}/photos/{photos[0]['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_download_flat_album(client, make_image, store):
    album = await _create(client, "Wedding")
    await client.post(f"/api/albums/{album['id']}/photos", files=_jpegs(make_image, "a.jpg", "b.jpg"))

    response = await client.get(f"/api/albums/{album['id']}/download")

    assert response.status_code == 200
    assert "Lena%20Wedding.zip" in response.headers["content-disposition"] or \
        "Lena Wedding.zip" in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        for name in ("a.jpg", "b.jpg"):
            assert zf.read(f"Lena Wedding/{name}") == (store.album_dir(album["id"]) / name).read_bytes()


@pytest.mark.asyncio
async def test_download_unknown_album(client):
    response = await client.get("/api/albums/nope/download")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_download_multiple(client, make_image):
    first = await _create(client, "One")
    second = await _create(client, "Two")
    for album in (first, second):
        await client.post(f"/api/albums/{album['id']}/photos", files=_jpegs(make_image, "a.jpg"))

    response = await client.post(
        "/api/download-multiple",
        json={"albumIds": [first["id"], "unknown", second["id"], first["id"]]},
    )

    assert response.status_code == 200
    assert "Galeria.zip" in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert {n.split("/", 1)[0] for n in zf.namelist()} == {"Lena One", "Lena Two"}


@pytest.mark.asyncio
async def test_download_multiple_errors(client):
    response = await client.post("/api/download-multiple", json={"albumIds": []})
    assert response.status_code == 400

    response = await client.post("/api/download-multiple", json={"albumIds": ["a", "b"]})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_corrupt_store_is_a_generic_500(client, store):
    store.data_file.write_text("{broken")

    response = await client.get("/api/albums")

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
