import logging

from fastapi import Depends

from galeria.core.config import Settings, settings
from galeria.services.album_store import JsonAlbumStore
from galeria.services.archive import ArchiveBuilder
from galeria.services.ingestion import IngestionPipeline
from galeria.services.storage_interface import AlbumRepository

logger = logging.getLogger(__name__)

_store_instances = {}


def build_album_store(config: Settings) -> AlbumRepository:
    """
    Get the album store for a settings object's data file.
    Instances are cached so every request shares the same locks.
    """
    key = str(config.data_file_path.resolve())

    if key in _store_instances:
        return _store_instances[key]

    logger.info(f"Initializing album store: {key}")
    instance = JsonAlbumStore(
        data_file=config.data_file_path,
        uploads_dir=config.uploads_path,
    )
    _store_instances[key] = instance
    return instance


def get_album_store() -> AlbumRepository:
    """
    Dependency returning the store for the application settings.
    Usage in FastAPI:
        @router.get("")
        async def endpoint(store: AlbumRepository = Depends(get_album_store)):
            ...
    """
    return build_album_store(settings)


def get_ingestion_pipeline(store: AlbumRepository = Depends(get_album_store)) -> IngestionPipeline:
    """Dependency returning an upload pipeline bound to the request's store."""
    return IngestionPipeline(store, settings)


def get_archive_builder(store: AlbumRepository = Depends(get_album_store)) -> ArchiveBuilder:
    """Dependency returning an archive builder bound to the request's store."""
    return ArchiveBuilder(store, settings)
