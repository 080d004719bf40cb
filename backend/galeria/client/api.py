"""Async HTTP client for the gallery API using httpx."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple
from urllib.parse import unquote

import httpx
from pydantic import ValidationError

from galeria.client.batching import UNMATCHED_MAX_REASON, plan_batches
from galeria.client.demo import demo_albums
from galeria.client.folders import AlbumUpload, UploadItem
from galeria.client.result import Err, Ok, Result
from galeria.schemas.album import Album, RejectedFile

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
BATCH_TIMEOUT = 300.0

_FILENAME_STAR = re.compile(r"filename\*=(?:UTF-8|utf-8)''([^;]+)")
_FILENAME = re.compile(r'filename="?([^";]+)"?')

ProgressCallback = Callable[[int, int], None]


@dataclass
class UploadSummary:
    """Outcome of a whole album upload across all of its batches."""

    album: Album
    uploaded_files: int = 0
    rejected: List[RejectedFile] = field(default_factory=list)


def _error_reason(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        detail = payload.get("detail") or payload.get("error")
        if isinstance(detail, str):
            return detail
    return response.reason_phrase or f"HTTP {response.status_code}"


def attachment_filename(response: httpx.Response, fallback: str) -> str:
    """Read the download name from Content-Disposition."""
    header = response.headers.get("content-disposition", "")
    match = _FILENAME_STAR.search(header)
    if match:
        return Path(unquote(match.group(1))).name
    match = _FILENAME.search(header)
    if match:
        return Path(match.group(1)).name
    return fallback


class GaleriaClient:
    """Client for the gallery backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend origin, e.g. "http://localhost:3001"
            timeout: Default request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport or ASGITransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GaleriaClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
        self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the httpx AsyncClient instance.

        Raises:
            RuntimeError: If client is used outside of async context manager
        """
        if self._client is None:
            raise RuntimeError("Client must be used within async context manager")
        return self._client

    def image_url(self, src: str) -> str:
        """Absolute URL for a photo or thumbnail path returned by the API."""
        if src.startswith(("http://", "https://")):
            return src
        return f"{self.base_url}/{src.lstrip('/')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Result[httpx.Response]:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            return Err(f"Network error: {e}")
        if response.status_code >= 400:
            reason = _error_reason(response)
            logger.warning(f"{method} {url} returned {response.status_code}: {reason}")
            return Err(reason, response.status_code)
        return Ok(response)

    async def _album_request(self, method: str, url: str, **kwargs: Any) -> Result[Album]:
        result = await self._request(method, url, **kwargs)
        if isinstance(result, Err):
            return result
        try:
            return Ok(Album.model_validate(result.value.json()))
        except (ValueError, ValidationError) as e:
            return Err(f"Unexpected response: {e}", result.value.status_code)

    async def health(self) -> Result[dict]:
        result = await self._request("GET", "/api/health")
        if isinstance(result, Err):
            return result
        return Ok(result.value.json())

    async def list_albums(self) -> Result[List[Album]]:
        result = await self._request("GET", "/api/albums")
        if isinstance(result, Err):
            return result
        try:
            return Ok([Album.model_validate(item) for item in result.value.json()])
        except (ValueError, ValidationError) as e:
            return Err(f"Unexpected response: {e}", result.value.status_code)

    async def get_album(self, album_id: str) -> Result[Album]:
        return await self._album_request("GET", f"/api/albums/{album_id}")

    async def create_album(self, name: str) -> Result[Album]:
        return await self._album_request("POST", "/api/albums", json={"name": name})

    async def rename_album(self, album_id: str, name: str) -> Result[Album]:
        return await self._album_request("PUT", f"/api/albums/{album_id}", json={"name": name})

    async def delete_album(self, album_id: str) -> Result[str]:
        result = await self._request("DELETE", f"/api/albums/{album_id}")
        if isinstance(result, Err):
            return result
        return Ok(album_id)

    async def delete_photo(self, album_id: str, photo_id: str) -> Result[str]:
        result = await self._request("DELETE", f"/api/albums/{album_id}/photos/{photo_id}")
        if isinstance(result, Err):
            return result
        return Ok(photo_id)

    async def _post_batch(
        self, url: str, batch: Sequence[UploadItem], data: Optional[dict] = None
    ) -> Result[dict]:
        files: List[Tuple[str, Tuple[str, bytes, str]]] = []
        for item in batch:
            try:
                files.append(("photos", (item.wire_name, item.path.read_bytes(), item.content_type)))
            except OSError as e:
                return Err(f"Cannot read {item.path}: {e}")
        result = await self._request("POST", url, data=data, files=files, timeout=BATCH_TIMEOUT)
        if isinstance(result, Err):
            return result
        return Ok(result.value.json())

    async def upload_album(
        self,
        upload: AlbumUpload,
        on_progress: Optional[ProgressCallback] = None,
        batch_size: int = 30,
    ) -> Result[UploadSummary]:
        """Upload one album in batches.

        The first batch creates the album; later batches are appended to it.
        Upload stops at the first failed batch.

        Args:
            upload: Album name and the files to send
            on_progress: Called with (files sent, total files) after each batch
            batch_size: Maximum files per request

        Returns:
            Ok with the final album state, or Err describing the failed batch
        """
        plan = plan_batches(upload.items, batch_size)
        batches = plan.batches
        if not batches:
            return Err("No images to upload")

        total = len(upload.items)
        unmatched = [RejectedFile(filename=i.wire_name, reason=UNMATCHED_MAX_REASON) for i in plan.unmatched]
        sent_ids = {id(i) for i in plan.unmatched}
        summary: Optional[UploadSummary] = None

        for number, batch in enumerate(batches, start=1):
            if summary is None:
                result = await self._post_batch("/api/upload", batch, data={"albumName": upload.name})
            else:
                result = await self._post_batch(f"/api/albums/{summary.album.id}/photos", batch)

            if isinstance(result, Err):
                logger.error(f"Batch {number}/{len(batches)} of '{upload.name}' failed: {result.reason}")
                return Err(f"Batch {number}/{len(batches)} failed: {result.reason}", result.status_code)

            # Files already sent earlier only hold the batch structure together
            repeated = {i.wire_name for i in batch if id(i) in sent_ids}
            payload = result.value
            rejected = [
                RejectedFile.model_validate(r) for r in payload.get("rejected", [])
                if r.get("filename") not in repeated
            ]
            if summary is None:
                album = Album.model_validate(payload["album"])
                summary = UploadSummary(album=album, uploaded_files=len(album.photos), rejected=unmatched)
            else:
                summary.uploaded_files += len(payload.get("photos", []))
            summary.rejected.extend(rejected)

            sent_ids.update(id(i) for i in batch)
            sent = len(sent_ids)
            logger.info(f"Uploaded batch {number}/{len(batches)} of '{upload.name}' ({sent}/{total} files)")
            if on_progress:
                on_progress(sent, total)

        refreshed = await self.get_album(summary.album.id)
        if isinstance(refreshed, Ok):
            summary.album = refreshed.value
        return Ok(summary)

    async def download_albums(self, album_ids: Sequence[str], dest: Path) -> Result[Path]:
        """Download one album, or several as a combined archive, into `dest`.

        Returns:
            Ok with the path of the written ZIP file
        """
        if not album_ids:
            return Err("No albums selected for download")
        if len(album_ids) == 1:
            request = self.client.build_request(
                "GET", f"/api/albums/{album_ids[0]}/download", timeout=BATCH_TIMEOUT
            )
        else:
            request = self.client.build_request(
                "POST", "/api/download-multiple",
                json={"albumIds": list(album_ids)}, timeout=BATCH_TIMEOUT,
            )

        dest.mkdir(parents=True, exist_ok=True)
        try:
            response = await self.client.send(request, stream=True)
            try:
                if response.status_code >= 400:
                    await response.aread()
                    return Err(_error_reason(response), response.status_code)
                target = dest / attachment_filename(response, "album.zip")
                with open(target, "wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
            finally:
                await response.aclose()
        except httpx.HTTPError as e:
            logger.warning(f"Download failed: {e}")
            return Err(f"Network error: {e}")

        logger.info(f"Saved {target}")
        return Ok(target)


async def load_gallery(client: GaleriaClient) -> Tuple[List[Album], bool]:
    """
    Fetch albums for display.

    Falls back to the bundled demo albums when the backend is unreachable or
    unhealthy. The flag is True when demo data is returned.
    """
    health = await client.health()
    if isinstance(health, Err):
        logger.warning(f"Backend unavailable ({health.reason}), showing demo albums")
        return demo_albums(), True

    albums = await client.list_albums()
    if isinstance(albums, Err):
        logger.warning(f"Could not load albums ({albums.reason}), showing demo albums")
        return demo_albums(), True
    return albums.value, False
