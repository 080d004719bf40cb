"""
Main FastAPI application entry point.
"""
import logging
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from galeria.core.config import settings
from galeria.api import albums, auth, downloads, upload
from galeria.schemas.album import HealthResponse, StorageInfo
from galeria.services.storage_factory import get_album_store

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: creates the uploads tree and the JSON document if missing
    store = get_album_store()
    logger.info(f"Serving albums from {store.albums_dir} (data: {store.data_file})")
    yield
    logger.info("Shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Password-gated photo gallery: albums, uploads, thumbnails and ZIP downloads",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    return response

# Include routers
app.include_router(albums.router, prefix="/api/albums", tags=["albums"])
app.include_router(upload.router, prefix="/api/upload", tags=["upload"])
app.include_router(downloads.router, prefix="/api", tags=["downloads"])
app.include_router(auth.router, prefix="/api/session", tags=["session"])

# Uploaded images and thumbnails: /uploads/albums/<id>/..., /uploads/thumbnails/<id>/...
app.mount(
    "/uploads",
    StaticFiles(directory=str(settings.uploads_path), check_dir=False),
    name="uploads",
)


@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for monitoring."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        storage=StorageInfo(mode="local", albums_path=str(settings.albums_path)),
    )
