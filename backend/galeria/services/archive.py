"""
ZIP packaging of albums for download.
"""
import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import List, Set, Tuple

from galeria.core.config import Settings
from galeria.core.exceptions import StorageError
from galeria.schemas.album import Album
from galeria.services.storage_interface import AlbumRepository
from galeria.services.filenames import safe_folder_name

logger = logging.getLogger(__name__)


class ArchiveBuilder:
    """Builds a ZIP of one or more albums into a temporary file."""

    def __init__(self, store: AlbumRepository, config: Settings):
        self.store = store
        self.config = config

    def _prefixed(self, name: str) -> str:
        return " ".join(part for part in (self.config.ARCHIVE_PREFIX.strip(), name) if part)

    def archive_filename(self, albums: List[Album]) -> str:
        """Named after the album for a single album, generic otherwise."""
        if len(albums) == 1:
            return f"{self._prefixed(safe_folder_name(albums[0].name))}.zip"
        return f"{self._prefixed(self.config.ARCHIVE_GENERIC_NAME)}.zip"

    def album_folders(self, album: Album) -> List[Tuple[Path, str]]:
        """
        Source directories of an album and the top-level folder each gets in the archive.

        For light/max albums the Light folder also receives files left at the album
        root from before the album switched to light/max.
        """
        base = self._prefixed(safe_folder_name(album.name))
        album_dir = self.store.album_dir(album.id)
        if album.has_light_max:
            return [
                (album_dir / "light", f"{base} - Light - {self.config.ARCHIVE_LIGHT_LABEL}"),
                (album_dir / "max", f"{base} - Max - {self.config.ARCHIVE_MAX_LABEL}"),
            ]
        return [(album_dir, base)]

    def build(self, albums: List[Album]) -> Path:
        """
        Write the archive to a temporary file and return its path.
        The caller owns the file and must delete it once streamed.

        Raises:
            StorageError: If the archive cannot be written
        """
        fd, tmp_name = tempfile.mkstemp(prefix="galeria-", suffix=".zip")
        os.close(fd)
        archive_path = Path(tmp_name)
        used: Set[str] = set()
        file_count = 0

        try:
            with zipfile.ZipFile(
                archive_path,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.config.ZIP_COMPRESSION_LEVEL,
            ) as zf:
                for album in albums:
                    folders = [(source, _unique_folder(folder, used)) for source, folder in self.album_folders(album)]
                    for source, arcname in folders:
                        file_count += _add_folder(zf, source, arcname)
                    if album.has_light_max:
                        # Photos uploaded while the album was still flat
                        file_count += _add_loose_files(zf, self.store.album_dir(album.id), folders[0][1])
        except (OSError, zipfile.BadZipFile) as e:
            archive_path.unlink(missing_ok=True)
            raise StorageError(f"Cannot create ZIP archive: {e}") from e

        logger.info(f"Built archive with {len(albums)} album(s), {file_count} file(s)")
        return archive_path


def _unique_folder(folder: str, used: Set[str]) -> str:
    candidate, counter = folder, 1
    while candidate in used:
        candidate = f"{folder} ({counter})"
        counter += 1
    used.add(candidate)
    return candidate


def _add_folder(zf: zipfile.ZipFile, source: Path, arcname: str) -> int:
    """Copy a directory tree into the archive under `arcname`; missing sources are skipped."""
    if not source.is_dir():
        logger.debug(f"Skipping missing archive source {source}")
        return 0

    count = 0
    zf.writestr(f"{arcname}/", b"")
    for root, dirs, files in os.walk(source):
        dirs.sort()
        relative_root = Path(root).relative_to(source)
        for d in dirs:
            zf.writestr(f"{arcname}/{(relative_root / d).as_posix()}/", b"")
        for name in sorted(files):
            zf.write(Path(root) / name, f"{arcname}/{(relative_root / name).as_posix()}")
            count += 1
    return count


def _add_loose_files(zf: zipfile.ZipFile, source: Path, arcname: str) -> int:
    """Add the files directly inside `source` to `arcname`, renaming on clashes."""
    if not source.is_dir():
        return 0
    files = sorted(p for p in source.iterdir() if p.is_file())
    if not files:
        return 0

    taken = set(zf.namelist())
    if f"{arcname}/" not in taken:
        zf.writestr(f"{arcname}/", b"")
    for path in files:
        target, counter = f"{arcname}/{path.name}", 1
        while target in taken:
            target = f"{arcname}/{path.stem} ({counter}){path.suffix}"
            counter += 1
        zf.write(path, target)
        taken.add(target)
    return len(files)
