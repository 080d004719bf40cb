"""
Albums API endpoints for CRUD operations, photo uploads and downloads.
"""
import os
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from typing import List, Optional

from galeria.api.errors import to_http_exception
from galeria.core.exceptions import GaleriaError
from galeria.schemas.album import (
    Album,
    AlbumCreate,
    AlbumUpdate,
    DeleteResponse,
    PhotosUploadResponse,
)
from galeria.services.archive import ArchiveBuilder
from galeria.services.ingestion import IncomingFile, IngestionPipeline
from galeria.services.storage_factory import (
    get_album_store,
    get_archive_builder,
    get_ingestion_pipeline,
)
from galeria.services.storage_interface import AlbumRepository

router = APIRouter()


async def read_uploads(photos: List[UploadFile]) -> List[IncomingFile]:
    """Read multipart uploads into memory, keeping the client's relative path."""
    files = []
    for upload in photos:
        content = await upload.read()
        files.append(IncomingFile(
            filename=upload.filename or "",
            content=content,
            content_type=upload.content_type,
        ))
    return files


def zip_response(builder: ArchiveBuilder, archive_path: str, albums: List[Album]) -> FileResponse:
    """Stream a built archive from disk and delete it afterwards."""
    return FileResponse(
        archive_path,
        media_type="application/zip",
        filename=builder.archive_filename(albums),
        background=BackgroundTask(os.unlink, archive_path),
    )


# List albums
@router.get("", response_model=List[Album])
async def list_albums(store: AlbumRepository = Depends(get_album_store)):
    """Get all albums with their photos."""
    try:
        return await store.list_albums()
    except GaleriaError as e:
        raise to_http_exception(e)


# Get album details
@router.get("/{album_id}", response_model=Album)
async def get_album(album_id: str, store: AlbumRepository = Depends(get_album_store)):
    """Get a single album with photos."""
    try:
        return await store.get_album(album_id)
    except GaleriaError as e:
        raise to_http_exception(e)


# Create album
@router.post("", response_model=Album, status_code=status.HTTP_201_CREATED)
async def create_album(album_data: AlbumCreate, store: AlbumRepository = Depends(get_album_store)):
    """Create a new, empty album."""
    if not album_data.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Album name is required"
        )
    try:
        return await store.create_album(album_data.name)
    except GaleriaError as e:
        raise to_http_exception(e)


# Update album
@router.put("/{album_id}", response_model=Album)
async def update_album(
    album_id: str,
    album_data: AlbumUpdate,
    store: AlbumRepository = Depends(get_album_store)
):
    """Rename an album."""
    try:
        return await store.rename_album(album_id, album_data.name or "")
    except GaleriaError as e:
        raise to_http_exception(e)


# Delete album
@router.delete("/{album_id}", response_model=DeleteResponse)
async def delete_album(album_id: str, store: AlbumRepository = Depends(get_album_store)):
    """Delete an album with all of its files and thumbnails."""
    try:
        await store.delete_album(album_id)
    except GaleriaError as e:
        raise to_http_exception(e)
    return DeleteResponse(message="Album deleted", id=album_id)


# Upload photos into an existing album
@router.post(
    "/{album_id}/photos",
    response_model=PhotosUploadResponse,
    status_code=status.HTTP_201_CREATED
)
async def upload_photos(
    album_id: str,
    photos: Optional[List[UploadFile]] = File(None),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline)
):
    """
    Append photos to an album.

    Files whose relative path runs through a light/ or max/ folder (or carries
    a light___ / max___ prefix) are stored as web and full-size variants.
    Invalid files are skipped and listed under `rejected`.
    """
    files = await read_uploads(photos or [])
    try:
        result = await pipeline.ingest(album_id, files)
    except GaleriaError as e:
        raise to_http_exception(e)

    return PhotosUploadResponse(
        message=f"Added {len(result.photos)} photo(s) to album",
        photos=result.photos,
        rejected=result.rejected,
    )


# Delete photo
@router.delete("/{album_id}/photos/{photo_id}", response_model=DeleteResponse)
async def delete_photo(
    album_id: str,
    photo_id: str,
    store: AlbumRepository = Depends(get_album_store)
):
    """Remove one photo and its files from an album."""
    try:
        await store.remove_photo(album_id, photo_id)
    except GaleriaError as e:
        raise to_http_exception(e)
    return DeleteResponse(message="Photo deleted", id=photo_id)


# Download album
@router.get("/{album_id}/download")
async def download_album(
    album_id: str,
    store: AlbumRepository = Depends(get_album_store),
    builder: ArchiveBuilder = Depends(get_archive_builder)
):
    """Download an album as a ZIP archive."""
    try:
        album = await store.get_album(album_id)
        archive_path = await run_in_threadpool(builder.build, [album])
    except GaleriaError as e:
        raise to_http_exception(e)
    return zip_response(builder, str(archive_path), [album])
