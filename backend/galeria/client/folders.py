"""
Collect local folders and files into album uploads.

Each selected directory becomes one album named after it, holding every image
found below it with its relative path (so light/ and max/ sub-folders survive).
Loose image files are grouped into a single album.
"""
import logging
import mimetypes
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, List

logger = logging.getLogger(__name__)

DEFAULT_ALBUM_NAME = "New Album"
WIRE_SEPARATOR = "___"

_DIGITS = re.compile(r"(\d+)")


@dataclass
class UploadItem:
    """A local file and the path it has inside its album folder."""
    path: Path
    relative_path: str

    @property
    def wire_name(self) -> str:
        """Multipart filename: path components joined the way browsers flatten folders."""
        return WIRE_SEPARATOR.join(PurePosixPath(self.relative_path).parts)

    @property
    def content_type(self) -> str:
        return mimetypes.guess_type(self.path.name)[0] or "application/octet-stream"


@dataclass
class AlbumUpload:
    name: str
    items: List[UploadItem] = field(default_factory=list)


def natural_sort_key(text: str):
    """Sort key ordering "img2" before "img10"."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS.split(text)]


def is_image(path: Path) -> bool:
    guessed = mimetypes.guess_type(path.name)[0]
    return bool(guessed and guessed.startswith("image/"))


def _scan_directory(directory: Path) -> List[UploadItem]:
    items = [
        UploadItem(path=p, relative_path=p.relative_to(directory).as_posix())
        for p in directory.rglob("*")
        if p.is_file() and is_image(p)
    ]
    items.sort(key=lambda item: natural_sort_key(item.relative_path))
    return items


def collect_albums(paths: Iterable[Path], default_name: str = DEFAULT_ALBUM_NAME) -> List[AlbumUpload]:
    """
    Build album uploads from selected directories and files.

    Directories without images are skipped; non-image files are ignored.
    """
    albums: List[AlbumUpload] = []
    loose: List[UploadItem] = []

    for path in map(Path, paths):
        if path.is_dir():
            items = _scan_directory(path)
            if items:
                albums.append(AlbumUpload(name=path.resolve().name, items=items))
            else:
                logger.warning(f"No images found in {path}")
        elif path.is_file() and is_image(path):
            loose.append(UploadItem(path=path, relative_path=path.name))
        else:
            logger.warning(f"Skipping {path}: not an image or directory")

    if loose:
        albums.append(AlbumUpload(name=default_name, items=loose))
    return albums
