"""Object storage for shared files - upload by path, get back a retrievable URL."""

import logging
from urllib.parse import quote

import httpx

from peertutor.config import settings
from peertutor.errors import TransientBackendError

logger = logging.getLogger(__name__)


class ObjectStore:
    """Interface for file storage. Failures raise ``TransientBackendError``."""

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    async def delete(self, path: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class HttpObjectStore(ObjectStore):
    """Bucket behind an HTTP endpoint: PUT stores an object, DELETE removes it."""

    def __init__(
        self,
        base_url: str = settings.STORAGE_URL,
        public_url: str = settings.STORAGE_PUBLIC_URL,
        access_token: str = settings.STORAGE_ACCESS_TOKEN,
        timeout: float = settings.STORAGE_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self.base_url = base_url.rstrip("/")
        self.public_url = (public_url or base_url).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    def _object_url(self, base: str, path: str) -> str:
        return f"{base}/{quote(path)}"

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            resp = await self._client.put(
                self._object_url(self.base_url, path),
                content=data,
                headers={"Content-Type": content_type},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Upload of %s failed: %s", path, e)
            raise TransientBackendError("File storage is not available") from e
        logger.info("Stored %s (%d bytes)", path, len(data))
        return self._object_url(self.public_url, path)

    async def delete(self, path: str) -> None:
        """Remove an object; one that is already gone counts as deleted."""
        try:
            resp = await self._client.delete(self._object_url(self.base_url, path))
            if resp.status_code == 404:
                logger.info("Object %s already removed", path)
                return
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Delete of %s failed: %s", path, e)
            raise TransientBackendError("File storage is not available") from e

    async def close(self) -> None:
        await self._client.aclose()
