import asyncio
from pathlib import Path
from typing import Protocol, List, Optional

from galeria.schemas.album import Album, Photo


class AlbumRepository(Protocol):
    """
    Abstract interface for album metadata storage.
    The JSON document store is the only provider today; an embedded
    key-value store can be swapped in behind the same contract.
    All operations are async and raise AlbumNotFoundError / PhotoNotFoundError
    for unknown ids.
    """

    async def list_albums(self) -> List[Album]:
        """Return every album with its photos inlined."""
        ...

    async def get_album(self, album_id: str) -> Album:
        """Return one album."""
        ...

    async def create_album(self, name: str) -> Album:
        """Create an empty album and its storage directory."""
        ...

    async def rename_album(self, album_id: str, name: str) -> Album:
        """Rename an album; a blank name only bumps updatedAt."""
        ...

    async def delete_album(self, album_id: str) -> Album:
        """Delete an album, its files and thumbnails (best-effort on disk)."""
        ...

    async def append_photos(
        self,
        album_id: str,
        photos: List[Photo],
        has_light_max: Optional[bool] = None
    ) -> Album:
        """
        Append photos in order, set the album thumbnail if unset and bump updatedAt.
        Passing has_light_max=True switches the album to light/max mode.
        """
        ...

    async def remove_photo(self, album_id: str, photo_id: str) -> Photo:
        """Remove one photo entry and its files."""
        ...

    def album_lock(self, album_id: str) -> asyncio.Lock:
        """Lock serialising multi-step work (ingestion, deletion) on one album."""
        ...

    # File layout shared with the ingestion pipeline and archive builder
    thumbnails_dir: Path

    def album_dir(self, album_id: str) -> Path:
        """Directory holding an album's files (flat, or light/ and max/)."""
        ...

    def thumbnail_dir(self, album_id: str) -> Path:
        """Directory holding an album's previews."""
        ...

    def public_path(self, path: Path) -> str:
        """URL path (/uploads/...) under which a stored file is served."""
        ...
