"""
Album metadata store backed by a single JSON document.

Every mutation re-reads, modifies and rewrites the whole document under a
process-local lock. There is no cross-process locking: run one server process.
"""
import asyncio
import json
import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from galeria.core.exceptions import (
    AlbumNotFoundError,
    PhotoNotFoundError,
    StorageError,
    UploadValidationError,
)
from galeria.schemas.album import Album, AlbumDocument, Photo, utcnow

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class JsonAlbumStore:
    """Album repository persisted as {"albums": [...]} in one file."""

    def __init__(self, data_file: Path, uploads_dir: Path):
        self.data_file = Path(data_file)
        self.uploads_dir = Path(uploads_dir)
        self.albums_dir = self.uploads_dir / "albums"
        self.thumbnails_dir = self.uploads_dir / "thumbnails"
        self._lock = asyncio.Lock()
        self._album_locks: Dict[str, asyncio.Lock] = {}
        self._ensure_layout()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def album_dir(self, album_id: str) -> Path:
        return self.albums_dir / album_id

    def thumbnail_dir(self, album_id: str) -> Path:
        return self.thumbnails_dir / album_id

    def public_path(self, path: Path) -> str:
        """Map a file under the uploads root to its served URL path."""
        relative = Path(path).resolve().relative_to(self.uploads_dir.resolve())
        return f"{PUBLIC_PREFIX}/{relative.as_posix()}"

    def local_path(self, public_path: str) -> Optional[Path]:
        """Inverse of public_path; None for URLs outside the uploads tree."""
        if not public_path or not public_path.startswith(PUBLIC_PREFIX + "/"):
            return None
        candidate = (self.uploads_dir / public_path[len(PUBLIC_PREFIX) + 1:]).resolve()
        if self.uploads_dir.resolve() not in candidate.parents:
            return None
        return candidate

    def album_lock(self, album_id: str) -> asyncio.Lock:
        if album_id not in self._album_locks:
            self._album_locks[album_id] = asyncio.Lock()
        return self._album_locks[album_id]

    # ------------------------------------------------------------------
    # Document I/O (blocking, run in the threadpool)
    # ------------------------------------------------------------------

    def _ensure_layout(self) -> None:
        for directory in (self.albums_dir, self.thumbnails_dir, self.data_file.parent):
            directory.mkdir(parents=True, exist_ok=True)
        if not self.data_file.exists():
            self._write(AlbumDocument())

    def _read(self) -> AlbumDocument:
        if not self.data_file.exists():
            return AlbumDocument()
        try:
            raw = json.loads(self.data_file.read_text("utf-8") or "{}")
            return AlbumDocument.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Album data file is corrupt: {self.data_file}") from e
        except OSError as e:
            raise StorageError(f"Cannot read album data file: {e}") from e

    def _write(self, document: AlbumDocument) -> None:
        payload = json.dumps(
            document.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False
        )
        try:
            # Write next to the target and swap in, so readers never see half a file
            fd, tmp_name = tempfile.mkstemp(dir=self.data_file.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.data_file)
        except OSError as e:
            raise StorageError(f"Cannot write album data file: {e}") from e

    async def _load(self) -> AlbumDocument:
        return await run_in_threadpool(self._read)

    async def _save(self, document: AlbumDocument) -> None:
        await run_in_threadpool(self._write, document)

    @staticmethod
    def _find(document: AlbumDocument, album_id: str) -> Album:
        for album in document.albums:
            if album.id == album_id:
                return album
        raise AlbumNotFoundError(album_id)

    # ------------------------------------------------------------------
    # Repository operations
    # ------------------------------------------------------------------

    async def list_albums(self) -> List[Album]:
        document = await self._load()
        return document.albums

    async def get_album(self, album_id: str) -> Album:
        document = await self._load()
        return self._find(document, album_id)

    async def create_album(self, name: str) -> Album:
        name = (name or "").strip()
        if not name:
            raise UploadValidationError("Album name is required")

        async with self._lock:
            document = await self._load()
            album = Album(id=str(uuid.uuid4()), name=name)
            try:
                self.album_dir(album.id).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(f"Cannot create album directory: {e}") from e
            document.albums.append(album)
            await self._save(document)

        logger.info(f"Created album '{album.name}' ({album.id})")
        return album

    async def rename_album(self, album_id: str, name: str) -> Album:
        async with self._lock:
            document = await self._load()
            album = self._find(document, album_id)
            name = (name or "").strip()
            if name:
                album.name = name
            album.updated_at = utcnow()
            await self._save(document)

        logger.info(f"Updated album {album_id} (name='{album.name}')")
        return album

    async def delete_album(self, album_id: str) -> Album:
        async with self.album_lock(album_id):
            async with self._lock:
                document = await self._load()
                album = self._find(document, album_id)

                for path in (self.album_dir(album_id), self.thumbnail_dir(album_id)):
                    await run_in_threadpool(_remove_tree, path)

                document.albums = [a for a in document.albums if a.id != album_id]
                await self._save(document)

        self._album_locks.pop(album_id, None)
        logger.info(f"Deleted album '{album.name}' ({album_id})")
        return album

    async def append_photos(
        self,
        album_id: str,
        photos: List[Photo],
        has_light_max: Optional[bool] = None
    ) -> Album:
        async with self._lock:
            document = await self._load()
            album = self._find(document, album_id)

            album.photos.extend(photos)
            if not album.thumbnail and album.photos:
                album.thumbnail = album.photos[0].thumbnail
            if has_light_max:
                album.has_light_max = True
            album.updated_at = utcnow()
            await self._save(document)

        return album

    async def remove_photo(self, album_id: str, photo_id: str) -> Photo:
        async with self._lock:
            document = await self._load()
            album = self._find(document, album_id)

            photo = next((p for p in album.photos if p.id == photo_id), None)
            if photo is None:
                raise PhotoNotFoundError(album_id, photo_id)

            files = [self.local_path(photo.src), self.local_path(photo.thumbnail)]
            if album.has_light_max and files[0] is not None and files[0].parent.name == "light":
                # The matching full-size copy shares the light file's name
                files.append(files[0].parent.parent / "max" / files[0].name)
            for path in files:
                if path is not None:
                    await run_in_threadpool(_remove_file, path)

            album.photos = [p for p in album.photos if p.id != photo_id]
            if album.thumbnail == photo.thumbnail:
                album.thumbnail = album.photos[0].thumbnail if album.photos else ""
            album.updated_at = utcnow()
            await self._save(document)

        logger.info(f"Removed photo {photo_id} from album {album_id}")
        return photo


def _remove_tree(path: Path) -> None:
    """Best-effort recursive delete; a missing path is not an error."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not delete {path}: {e}")


def _remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not delete {path}: {e}")
