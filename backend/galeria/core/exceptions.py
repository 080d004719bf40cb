"""
Error taxonomy shared by the services and the HTTP layer.
"""


class GaleriaError(Exception):
    """Base exception for gallery errors."""

    pass


class AlbumNotFoundError(GaleriaError):
    """Raised when an album id is unknown."""

    def __init__(self, album_id: str):
        super().__init__(f"Album not found: {album_id}")
        self.album_id = album_id


class PhotoNotFoundError(GaleriaError):
    """Raised when a photo id is unknown within its album."""

    def __init__(self, album_id: str, photo_id: str):
        super().__init__(f"Photo not found: {photo_id}")
        self.album_id = album_id
        self.photo_id = photo_id


class UploadValidationError(GaleriaError):
    """Raised when a request carries no usable input (bad name, empty or fully invalid batch)."""

    pass


class StructureMismatchError(GaleriaError):
    """Raised when a light/max album receives a batch without both variants."""

    pass


class ThumbnailError(GaleriaError):
    """Raised when a preview cannot be generated for a source image."""

    pass


class StorageError(GaleriaError):
    """Raised on filesystem or archive failures."""

    pass
