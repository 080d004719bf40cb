"""
Multi-album ZIP download.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from galeria.api.albums import zip_response
from galeria.api.errors import to_http_exception
from galeria.core.exceptions import GaleriaError
from galeria.schemas.album import DownloadMultipleRequest
from galeria.services.archive import ArchiveBuilder
from galeria.services.storage_factory import get_album_store, get_archive_builder
from galeria.services.storage_interface import AlbumRepository

router = APIRouter()


@router.post("/download-multiple")
async def download_multiple(
    request: DownloadMultipleRequest,
    store: AlbumRepository = Depends(get_album_store),
    builder: ArchiveBuilder = Depends(get_archive_builder)
):
    """Download several albums as one ZIP. Unknown ids are ignored."""
    if not request.album_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No albums selected for download"
        )

    try:
        by_id = {album.id: album for album in await store.list_albums()}
        albums = [by_id[album_id] for album_id in dict.fromkeys(request.album_ids) if album_id in by_id]
        if not albums:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No matching albums found"
            )
        archive_path = await run_in_threadpool(builder.build, albums)
    except GaleriaError as e:
        raise to_http_exception(e)

    return zip_response(builder, str(archive_path), albums)
