"""
Filename sanitation and light/max classification for uploaded files.
"""
import os
import re
from enum import Enum
from pathlib import Path
from typing import NamedTuple

# Browsers flatten "light/a.jpg" into "light___a.jpg" when sending folders
PATH_SEPARATORS = re.compile(r"[\\/]|___")
ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*]')
WHITESPACE = re.compile(r"\s+")
FALLBACK_NAME = "photo"


class FolderTag(str, Enum):
    """Variant a file belongs to, taken from its deepest light/max ancestor folder."""
    LIGHT = "light"
    MAX = "max"
    UNTAGGED = "none"


class ClassifiedName(NamedTuple):
    tag: FolderTag
    name: str


def _clean(part: str) -> str:
    part = ILLEGAL_CHARS.sub("_", part)
    part = WHITESPACE.sub(" ", part)
    return part.strip()


def sanitize_filename(filename: str) -> str:
    """
    Reduce an arbitrary client-supplied name to a safe base name.

    Directory components are dropped, characters illegal on common
    filesystems become "_", whitespace runs collapse to one space.
    An empty stem falls back to "photo"; the extension is kept.
    """
    segments = [s for s in PATH_SEPARATORS.split(filename or "") if s.strip()]
    name = segments[-1].strip() if segments else ""
    stem, ext = os.path.splitext(name)
    stem = _clean(stem) or FALLBACK_NAME
    ext = _clean(ext)
    return f"{stem}{ext}" if ext and ext != "." else stem


def classify_upload_path(filename: str) -> ClassifiedName:
    """
    Split a relative upload path into its variant tag and sanitized base name.

    The deepest ancestor segment equal to "light" or "max" (case-insensitive)
    decides the tag; files without one are UNTAGGED.
    """
    segments = [s.strip() for s in PATH_SEPARATORS.split(filename or "")]
    segments = [s for s in segments if s]
    ancestors = segments[:-1]

    tag = FolderTag.UNTAGGED
    for segment in reversed(ancestors):
        lowered = segment.lower()
        if lowered == FolderTag.LIGHT.value:
            tag = FolderTag.LIGHT
            break
        if lowered == FolderTag.MAX.value:
            tag = FolderTag.MAX
            break

    return ClassifiedName(tag, sanitize_filename(segments[-1] if segments else ""))


def safe_folder_name(name: str, fallback: str = "album") -> str:
    """Album display name made usable as a single path component."""
    return _clean(name or "") or fallback


def unique_filename(directory: Path, filename: str) -> str:
    """
    Return `filename` or the first free "<stem> (N)<ext>" variant in `directory`.

    Only checks for existence; nothing is created.
    """
    directory = Path(directory)
    candidate = filename
    stem, ext = os.path.splitext(filename)
    counter = 1
    while (directory / candidate).exists():
        candidate = f"{stem} ({counter}){ext}"
        counter += 1
    return candidate


def title_from_filename(filename: str) -> str:
    """Display title: the base name without its extension."""
    return os.path.splitext(filename)[0]
