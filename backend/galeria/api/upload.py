"""
Bulk upload endpoint: create an album and ingest its photos in one request.
"""
from fastapi import APIRouter, Depends, status, UploadFile, File, Form
from typing import List, Optional

from galeria.api.albums import read_uploads
from galeria.api.errors import to_http_exception
from galeria.core.exceptions import GaleriaError
from galeria.schemas.album import BulkUploadResponse
from galeria.services.ingestion import IngestionPipeline
from galeria.services.storage_factory import get_ingestion_pipeline

router = APIRouter()


@router.post("", response_model=BulkUploadResponse, status_code=status.HTTP_201_CREATED)
async def bulk_upload(
    album_name: str = Form("", alias="albumName"),
    photos: Optional[List[UploadFile]] = File(None),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline)
):
    """
    Create an album named `albumName` from the uploaded photos.

    No album is created when the name is blank or no file passes validation.
    """
    files = await read_uploads(photos or [])
    try:
        result = await pipeline.create_and_ingest(album_name, files)
    except GaleriaError as e:
        raise to_http_exception(e)

    return BulkUploadResponse(
        message=f'Album "{result.album.name}" created with {len(result.album.photos)} photo(s)',
        album=result.album,
        structure=result.structure,
        rejected=result.rejected,
    )
