"""
Album and photo schemas.

The same models describe the persisted JSON document and the HTTP payloads,
using the camelCase keys the gallery front end reads.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Photo(BaseModel):
    id: str
    src: str
    thumbnail: str
    title: str = ""
    width: int = 0
    height: int = 0
    uploaded_at: datetime = Field(default_factory=utcnow, alias="uploadedAt")

    class Config:
        populate_by_name = True


class Album(BaseModel):
    id: str
    name: str
    thumbnail: str = ""
    photos: List[Photo] = []
    has_light_max: bool = Field(default=False, alias="hasLightMax")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    class Config:
        populate_by_name = True


class AlbumDocument(BaseModel):
    """Root of the JSON metadata file."""
    albums: List[Album] = []


# Request / response payloads
class AlbumCreate(BaseModel):
    name: str = ""

    class Config:
        json_schema_extra = {"example": {"name": "Wedding"}}


class AlbumUpdate(BaseModel):
    name: Optional[str] = None


class DeleteResponse(BaseModel):
    message: str
    id: str


class RejectedFile(BaseModel):
    filename: str
    reason: str


class PhotosUploadResponse(BaseModel):
    message: str
    photos: List[Photo]
    rejected: List[RejectedFile] = []


class BulkUploadResponse(BaseModel):
    message: str
    album: Album
    structure: str
    rejected: List[RejectedFile] = []


class DownloadMultipleRequest(BaseModel):
    album_ids: List[str] = Field(default=[], alias="albumIds")

    class Config:
        populate_by_name = True


class StorageInfo(BaseModel):
    mode: str = "local"
    albums_path: str = Field(alias="albumsPath")

    class Config:
        populate_by_name = True


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    storage: StorageInfo
