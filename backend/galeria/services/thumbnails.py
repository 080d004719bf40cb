"""
Thumbnail generation and image probing using Pillow.
"""
import io
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from galeria.core.exceptions import ThumbnailError
from galeria.services.filenames import title_from_filename, unique_filename

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Multi-picture files from cameras are JPEGs with extra frames
FORMAT_MIME_OVERRIDES = {"MPO": "image/jpeg"}


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img.convert("RGBA"), mask=img.convert("RGBA").split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def generate_thumbnail(
    source_path: PathLike,
    album_id: str,
    filename: str,
    thumbnails_root: PathLike,
    size: int = 400,
    quality: int = 80,
) -> Path:
    """
    Generate a square cover-fit JPEG preview.

    Args:
        source_path: Stored image to read
        album_id: Album owning the image; previews live in <thumbnails_root>/<album_id>/
        filename: Stored file name; the preview is "<stem>.jpg" (made unique in the directory)
        thumbnails_root: Root of the thumbnail tree
        size: Edge length of the square preview
        quality: JPEG quality

    Returns:
        Path of the written preview

    Raises:
        ThumbnailError: If the source cannot be decoded or the preview cannot be written
    """
    thumb_dir = Path(thumbnails_root) / album_id
    thumb_dir.mkdir(parents=True, exist_ok=True)
    thumb_path = thumb_dir / unique_filename(thumb_dir, f"{title_from_filename(filename)}.jpg")

    try:
        with Image.open(source_path) as img:
            # Auto-rotate
            img = ImageOps.exif_transpose(img)
            img = _to_rgb(img)
            # Scale the shorter edge to `size`, crop the overflow around the centre
            preview = ImageOps.fit(
                img, (size, size), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5)
            )
            preview.save(thumb_path, "JPEG", quality=quality, optimize=True)
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        thumb_path.unlink(missing_ok=True)
        raise ThumbnailError(f"Cannot create thumbnail for {Path(source_path).name}: {e}") from e

    return thumb_path


def get_image_dimensions(path: PathLike) -> Tuple[int, int]:
    """Native (width, height) of an image, or (0, 0) when it cannot be read."""
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        logger.warning(f"Could not read dimensions of {path}: {e}")
        return (0, 0)


def detect_mime_type(content: bytes) -> Optional[str]:
    """
    Detect an image's MIME type from its bytes.

    Returns None for content Pillow cannot identify.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            fmt = img.format or ""
            return FORMAT_MIME_OVERRIDES.get(fmt) or Image.MIME.get(fmt)
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError):
        return None
