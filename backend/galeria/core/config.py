"""
Core configuration for Galeria.
Loads settings from environment variables.
"""
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List

from galeria import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    APP_NAME: str = "Galeria"
    APP_VERSION: str = __version__
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Storage
    STORAGE_ROOT: str = "."
    UPLOADS_DIR: str = ""  # defaults to <STORAGE_ROOT>/uploads
    DATA_FILE: str = ""  # defaults to <STORAGE_ROOT>/data/albums.json

    # Uploads
    MAX_FILE_SIZE_MB: int = 50
    ALLOWED_MIME_TYPES: str = "image/jpeg,image/png,image/webp,image/gif"

    # Thumbnails
    THUMBNAIL_SIZE: int = 400
    THUMBNAIL_QUALITY: int = 80

    # Archives
    ARCHIVE_PREFIX: str = "Lena"
    ARCHIVE_LIGHT_LABEL: str = "do dzielenia się w internecie"
    ARCHIVE_MAX_LABEL: str = "do profesjonalnych wydruków"
    ARCHIVE_GENERIC_NAME: str = "Galeria"
    ZIP_COMPRESSION_LEVEL: int = 6

    # Access gate (optional shared secrets)
    OWNER_PASSPHRASE: str = ""
    GUEST_PASSPHRASE: str = ""

    # Client
    API_URL: str = "http://localhost:3001"
    UPLOAD_BATCH_SIZE: int = 30

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def allowed_mime_types_set(self) -> set:
        """Parse ALLOWED_MIME_TYPES string into a set."""
        return {m.strip().lower() for m in self.ALLOWED_MIME_TYPES.split(",") if m.strip()}

    @property
    def max_file_size_bytes(self) -> int:
        """Convert max file size to bytes."""
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    @property
    def uploads_path(self) -> Path:
        return Path(self.UPLOADS_DIR) if self.UPLOADS_DIR else Path(self.STORAGE_ROOT) / "uploads"

    @property
    def albums_path(self) -> Path:
        return self.uploads_path / "albums"

    @property
    def thumbnails_path(self) -> Path:
        return self.uploads_path / "thumbnails"

    @property
    def data_file_path(self) -> Path:
        return Path(self.DATA_FILE) if self.DATA_FILE else Path(self.STORAGE_ROOT) / "data" / "albums.json"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
