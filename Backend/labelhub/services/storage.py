import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, Optional
from urllib.parse import urlparse

import httpx
from fastapi import Request

from labelhub.core.config import settings
from labelhub.core.exceptions import UpstreamError, ValidationError
from labelhub.schemas.asset import StagedFile

logger = logging.getLogger(__name__)

# Receives an integer percentage 0..100 for the file being uploaded
ProgressCallback = Callable[[int], None]


class StorageService(ABC):
    """Content-addressable object storage: upload returns a URL, delete takes it back."""

    @abstractmethod
    async def upload(
        self,
        file: StagedFile,
        path_prefix: str,
        filename: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        ...

    @abstractmethod
    async def delete(self, url: str) -> None:
        ...


def object_key(path_prefix: str, filename: str) -> str:
    return re.sub(r"/+", "/", f"{path_prefix}/{filename}").strip("/")


class HttpStorageService(StorageService):
    """
    Storage client for an S3-style HTTP gateway: objects are written with
    PUT {base_url}/{key} and served from {public_url}/{key}.
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        base_url: str = settings.STORAGE_BASE_URL,
        public_url: str = settings.STORAGE_PUBLIC_URL,
        api_token: Optional[str] = settings.STORAGE_API_TOKEN,
        timeout: float = settings.STORAGE_TIMEOUT_S,
        max_track_mb: int = settings.MAX_TRACK_SIZE_MB,
        max_artwork_mb: int = settings.MAX_ARTWORK_SIZE_MB,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.public_url = public_url.rstrip("/")
        self.headers = {"User-Agent": "LabelHub/1.0"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"
        self.max_track_bytes = max_track_mb * 1024 * 1024
        self.max_artwork_bytes = max_artwork_mb * 1024 * 1024
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _check_size(self, file: StagedFile, filename: str) -> None:
        is_audio = filename.lower().endswith(".wav")
        limit = self.max_track_bytes if is_audio else self.max_artwork_bytes
        if file.size > limit:
            kind = "Audio" if is_audio else "Artwork"
            raise ValidationError(f"File too large. Max allowed for {kind} is {limit // (1024 * 1024)}MB.")

    async def _stream(self, file: StagedFile, on_progress: Optional[ProgressCallback]) -> AsyncIterator[bytes]:
        sent = 0
        with open(file.path, "rb") as fh:
            while True:
                chunk = await asyncio.to_thread(fh.read, self.CHUNK_SIZE)
                if not chunk:
                    break
                sent += len(chunk)
                if on_progress and file.size:
                    on_progress(min(100, round(sent * 100 / file.size)))
                yield chunk
        if on_progress:
            on_progress(100)

    async def upload(
        self,
        file: StagedFile,
        path_prefix: str,
        filename: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        key = object_key(path_prefix, filename)
        self._check_size(file, filename)
        is_audio = filename.lower().endswith(".wav")
        headers = {
            **self.headers,
            "Content-Type": file.content_type or ("audio/wav" if is_audio else "image/jpeg"),
            "Content-Length": str(file.size),
            "Cache-Control": "public, max-age=31536000, immutable",
        }
        logger.info(f"StorageService: PUT {key} ({file.size} bytes)")
        try:
            response = await self.client.put(
                f"{self.base_url}/{key}",
                content=self._stream(file, on_progress),
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Storage gateway returned status {e.response.status_code} for {key}")
            raise UpstreamError(f"Upload failed: storage returned {e.response.status_code}", cause=e)
        except httpx.RequestError as e:
            logger.error(f"Request error uploading {key}: {e}")
            raise UpstreamError(f"Upload failed: {e}", cause=e)
        except OSError as e:
            raise UpstreamError(f"Upload failed: cannot read {file.filename}: {e}", cause=e)

        return f"{self.public_url}/{key}"

    def key_for_url(self, url: str) -> str:
        if url.startswith(self.public_url + "/"):
            return url[len(self.public_url) + 1:]
        return urlparse(url).path.lstrip("/")

    async def delete(self, url: str) -> None:
        key = self.key_for_url(url)
        logger.info(f"StorageService: DELETE {key}")
        try:
            response = await self.client.delete(f"{self.base_url}/{key}", headers=self.headers)
            if response.status_code == 404:
                logger.debug(f"Object {key} was already gone")
                return
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"Delete failed: storage returned {e.response.status_code}", cause=e)
        except httpx.RequestError as e:
            raise UpstreamError(f"Delete failed: {e}", cause=e)


# Dependency
async def get_storage_service(request: Request) -> StorageService:
    """Dependency injection for the application's StorageService"""
    return request.app.state.storage
