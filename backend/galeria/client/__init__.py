"""HTTP client for the gallery API: folder collection, chunked uploads, downloads."""

from galeria.client.api import GaleriaClient, UploadSummary, load_gallery
from galeria.client.folders import AlbumUpload, UploadItem, collect_albums
from galeria.client.result import Err, Ok, Result

__all__ = [
    "GaleriaClient",
    "UploadSummary",
    "load_gallery",
    "AlbumUpload",
    "UploadItem",
    "collect_albums",
    "Ok",
    "Err",
    "Result",
]
