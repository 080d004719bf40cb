"""
Upload ingestion: validate, classify and persist a batch of uploaded files.

Albums are either flat (files directly in the album directory) or light/max
(web copies in light/, full-size copies in max/). Once an album has received a
paired light/max batch, every later batch must be paired as well. A max file is
stored only next to a same-named light file of its batch, under the name that
light file was stored as.
"""
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from galeria.core.config import Settings
from galeria.core.exceptions import (
    GaleriaError,
    StorageError,
    StructureMismatchError,
    ThumbnailError,
    UploadValidationError,
)
from galeria.schemas.album import Album, Photo, RejectedFile
from galeria.services.storage_interface import AlbumRepository
from galeria.services.filenames import (
    FolderTag,
    classify_upload_path,
    title_from_filename,
    unique_filename,
)
from galeria.services.thumbnails import detect_mime_type, generate_thumbnail, get_image_dimensions

logger = logging.getLogger(__name__)

STRUCTURE_LIGHT_MAX = "light/max"
STRUCTURE_FLAT = "flat"


@dataclass
class IncomingFile:
    """One uploaded file with the relative path the client sent."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class AcceptedFile:
    source: IncomingFile
    tag: FolderTag
    name: str
    # Max file stored alongside this light file
    twin: Optional["AcceptedFile"] = None


@dataclass
class StoredPhoto:
    entry: AcceptedFile
    photo: Photo
    path: Path
    thumb_path: Path

    def discard(self) -> None:
        self.path.unlink(missing_ok=True)
        self.thumb_path.unlink(missing_ok=True)


@dataclass
class IngestionResult:
    album: Album
    photos: List[Photo]
    rejected: List[RejectedFile] = field(default_factory=list)
    structure: str = STRUCTURE_FLAT


class IngestionPipeline:
    """Turns upload batches into stored files, thumbnails and Photo entries."""

    def __init__(self, store: AlbumRepository, config: Settings):
        self.store = store
        self.config = config

    def validate(self, files: List[IncomingFile]) -> Tuple[List[AcceptedFile], List[RejectedFile]]:
        """
        Check size and detected content type of every file.

        Invalid files are skipped and reported; they never fail their siblings.
        """
        accepted: List[AcceptedFile] = []
        rejected: List[RejectedFile] = []
        allowed = self.config.allowed_mime_types_set

        for upload in files:
            if len(upload.content) > self.config.max_file_size_bytes:
                reason = f"File too large (max {self.config.MAX_FILE_SIZE_MB}MB)"
            else:
                detected = detect_mime_type(upload.content)
                if detected is None or detected not in allowed:
                    reason = f"Unsupported file type: {detected or upload.content_type or 'unknown'}"
                else:
                    reason = None

            if reason:
                logger.warning(f"Rejected upload '{upload.filename}': {reason}")
                rejected.append(RejectedFile(filename=upload.filename, reason=reason))
                continue

            tag, name = classify_upload_path(upload.filename)
            accepted.append(AcceptedFile(source=upload, tag=tag, name=name))

        return accepted, rejected

    async def ingest(self, album_id: str, files: List[IncomingFile]) -> IngestionResult:
        """
        Add a batch to an existing album.

        Raises:
            AlbumNotFoundError: Unknown album
            UploadValidationError: Empty batch or no valid file in it
            StructureMismatchError: Light/max album and the batch lacks one of the variants
        """
        if not files:
            raise UploadValidationError("No files to upload")

        async with self.store.album_lock(album_id):
            album = await self.store.get_album(album_id)
            accepted, rejected = self.validate(files)
            if not accepted:
                raise UploadValidationError(_no_valid_files_message(rejected))
            return await self._ingest_accepted(album, accepted, rejected)

    async def create_and_ingest(self, album_name: str, files: List[IncomingFile]) -> IngestionResult:
        """Create an album and ingest its first batch; nothing is created if no file is valid."""
        if not (album_name or "").strip():
            raise UploadValidationError("Album name is required")
        if not files:
            raise UploadValidationError("No files to upload")

        accepted, rejected = self.validate(files)
        if not accepted:
            raise UploadValidationError(_no_valid_files_message(rejected))

        album = await self.store.create_album(album_name)
        async with self.store.album_lock(album.id):
            return await self._ingest_accepted(album, accepted, rejected)

    async def _ingest_accepted(
        self,
        album: Album,
        accepted: List[AcceptedFile],
        rejected: List[RejectedFile],
    ) -> IngestionResult:
        groups: Dict[FolderTag, List[AcceptedFile]] = {tag: [] for tag in FolderTag}
        for entry in accepted:
            groups[entry.tag].append(entry)

        has_light = bool(groups[FolderTag.LIGHT])
        has_max = bool(groups[FolderTag.MAX])

        # Checked before any write so a mismatched batch leaves no trace
        if album.has_light_max and not (has_light and has_max):
            raise StructureMismatchError(
                "This album requires uploads with both light/ and max/ folders"
            )

        use_light_max = (has_light and has_max) or album.has_light_max
        album_dir = self.store.album_dir(album.id)

        if use_light_max:
            for entry in groups[FolderTag.UNTAGGED]:
                rejected.append(RejectedFile(
                    filename=entry.source.filename,
                    reason="Light/max upload: file is not inside a light/ or max/ folder",
                ))

            _attach_twins(groups[FolderTag.LIGHT], groups[FolderTag.MAX], rejected)
            stored = await self._store_photos(album.id, album_dir / "light", groups[FolderTag.LIGHT], rejected)
            photos = []
            for item in stored:
                twin = item.entry.twin
                if twin is not None:
                    try:
                        # Same name as the light file so the pair stays addressable
                        await run_in_threadpool(_write_twin, album_dir / "max", item.path.name, twin)
                    except StorageError as e:
                        logger.warning(f"Failed to store max file '{twin.source.filename}': {e}")
                        item.discard()
                        rejected.append(RejectedFile(filename=item.entry.source.filename, reason=str(e)))
                        rejected.append(RejectedFile(filename=twin.source.filename, reason=str(e)))
                        continue
                photos.append(item.photo)

            stored_ids = {id(item.entry) for item in stored}
            for entry in groups[FolderTag.LIGHT]:
                if entry.twin is not None and id(entry) not in stored_ids:
                    rejected.append(RejectedFile(
                        filename=entry.twin.source.filename,
                        reason="Matching light file could not be stored",
                    ))
            structure = STRUCTURE_LIGHT_MAX
        else:
            stored = await self._store_photos(album.id, album_dir, accepted, rejected)
            photos = [item.photo for item in stored]
            structure = STRUCTURE_FLAT

        updated = await self.store.append_photos(album.id, photos, has_light_max=use_light_max or None)
        logger.info(
            f"Ingested {len(photos)} photo(s) into album {album.id} "
            f"({structure}, {len(rejected)} rejected)"
        )
        return IngestionResult(album=updated, photos=photos, rejected=rejected, structure=structure)

    async def _store_photos(
        self,
        album_id: str,
        directory: Path,
        entries: List[AcceptedFile],
        rejected: List[RejectedFile],
    ) -> List[StoredPhoto]:
        stored = []
        for entry in entries:
            try:
                item = await run_in_threadpool(self._store_photo, album_id, directory, entry)
            except GaleriaError as e:
                logger.warning(f"Failed to ingest '{entry.source.filename}': {e}")
                rejected.append(RejectedFile(filename=entry.source.filename, reason=str(e)))
                continue
            stored.append(item)
        return stored

    def _store_photo(self, album_id: str, directory: Path, entry: AcceptedFile) -> StoredPhoto:
        """Write one file and build its Photo; on failure nothing of this file remains."""
        path = _write_file(directory, entry)
        thumb_path = None
        try:
            thumb_path = generate_thumbnail(
                path,
                album_id,
                path.name,
                self.store.thumbnails_dir,
                size=self.config.THUMBNAIL_SIZE,
                quality=self.config.THUMBNAIL_QUALITY,
            )
            width, height = get_image_dimensions(path)
            if not width or not height:
                raise ThumbnailError(f"Cannot read dimensions of {path.name}")
        except GaleriaError:
            path.unlink(missing_ok=True)
            if thumb_path is not None:
                thumb_path.unlink(missing_ok=True)
            raise

        photo = Photo(
            id=str(uuid.uuid4()),
            src=self.store.public_path(path),
            thumbnail=self.store.public_path(thumb_path),
            title=title_from_filename(path.name),
            width=width,
            height=height,
        )
        return StoredPhoto(entry=entry, photo=photo, path=path, thumb_path=thumb_path)


def _attach_twins(light: List[AcceptedFile], max_files: List[AcceptedFile], rejected: List[RejectedFile]) -> None:
    """Pair each max file with a same-named light file of the batch; unpaired max files are rejected."""
    waiting: Dict[str, List[AcceptedFile]] = {}
    for entry in light:
        waiting.setdefault(entry.name, []).append(entry)

    for entry in max_files:
        candidates = waiting.get(entry.name)
        if candidates:
            candidates.pop(0).twin = entry
        else:
            rejected.append(RejectedFile(
                filename=entry.source.filename,
                reason="Max file has no matching light file",
            ))


def _write_twin(directory: Path, name: str, entry: AcceptedFile) -> Path:
    """Write a max file under the exact name its light file was stored as."""
    target = directory / name
    try:
        directory.mkdir(parents=True, exist_ok=True)
        # The light name was free, so a file here has no live photo
        with open(target, "wb") as f:
            f.write(entry.source.content)
    except OSError as e:
        target.unlink(missing_ok=True)
        raise StorageError(f"Cannot save {name}: {e}") from e
    return target


def _write_file(directory: Path, entry: AcceptedFile) -> Path:
    """Write an accepted file under a collision-free name."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
        while True:
            target = directory / unique_filename(directory, entry.name)
            try:
                # Exclusive create: a name taken since the check is retried
                with open(target, "xb") as f:
                    f.write(entry.source.content)
            except FileExistsError:
                continue
            except OSError:
                target.unlink(missing_ok=True)
                raise
            return target
    except OSError as e:
        raise StorageError(f"Cannot save {entry.name}: {e}") from e


def _no_valid_files_message(rejected: List[RejectedFile]) -> str:
    reasons = "; ".join(f"{r.filename}: {r.reason}" for r in rejected[:5])
    return f"No valid image files in upload ({reasons})" if reasons else "No valid image files in upload"
