"""
Translation of service errors into HTTP errors.
"""
import logging

from fastapi import HTTPException, status

from galeria.core.exceptions import (
    AlbumNotFoundError,
    GaleriaError,
    PhotoNotFoundError,
    StructureMismatchError,
    UploadValidationError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: GaleriaError) -> HTTPException:
    """
    Map a GaleriaError to the HTTPException the client should see.
    Storage and thumbnail failures are logged and reported generically.
    """
    if isinstance(error, (AlbumNotFoundError, PhotoNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, (UploadValidationError, StructureMismatchError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))

    logger.error(f"Storage error: {error}", exc_info=error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )
