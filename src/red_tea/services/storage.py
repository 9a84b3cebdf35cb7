"""File storage API client service."""

import logging
from collections.abc import AsyncGenerator

from red_tea.config import get_settings
from red_tea.schemas.external import StorageUploadUrl, StorageUrl
from red_tea.services.base import BaseAPIClient, NotFoundError

logger = logging.getLogger(__name__)


class StorageClient(BaseAPIClient):
    """Client for the binary object storage holding post and verification images.

    Objects are addressed by opaque storage ids. Clients upload directly to a
    short-lived URL, so this service never handles file bytes itself.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 15.0,
    ) -> None:
        """Initialize the storage client.

        Args:
            api_key: Storage API key. If not provided, uses settings.
            base_url: Storage base URL. If not provided, uses settings.
            timeout: Request timeout in seconds.
        """
        settings = get_settings()
        self._api_key = api_key or settings.storage_api_key
        base = base_url or settings.storage_base_url

        if not base:
            raise ValueError("File storage base URL is required")

        super().__init__(base_url=base, timeout=timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        """Return default headers, with Bearer authentication when a key is set."""
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def generate_upload_url(self) -> str:
        """Request a one-time URL the client can upload a file to."""
        data = await self.post("/upload-urls")
        return StorageUploadUrl.model_validate(data).upload_url

    async def get_url(self, storage_id: str) -> str:
        """Resolve a storage id to a servable URL.

        Raises:
            NotFoundError: If the object does not exist.
        """
        data = await self.get(f"/objects/{storage_id}/url")
        return StorageUrl.model_validate(data).url

    async def get_url_or_none(self, storage_id: str | None) -> str | None:
        """Resolve a storage id, returning None if absent or missing."""
        if not storage_id:
            return None
        try:
            return await self.get_url(storage_id)
        except NotFoundError:
            return None

    async def delete_object(self, storage_id: str) -> None:
        """Delete a stored object.

        Raises:
            NotFoundError: If the object does not exist.
        """
        await self.delete(f"/objects/{storage_id}")
        logger.debug("Deleted stored object %s", storage_id)


async def get_storage_client() -> AsyncGenerator[StorageClient | None]:
    """FastAPI dependency yielding a storage client for one request.

    Yields None when no storage endpoint is configured: image URLs then
    resolve to None and stored objects are left in place. The client is
    closed when the request ends.
    """
    if not get_settings().storage_base_url:
        yield None
        return

    client = StorageClient()
    try:
        yield client
    finally:
        await client.close()


async def resolve_url(storage: StorageClient | None, storage_id: str | None) -> str | None:
    """Resolve a storage id, or None when storage is not configured."""
    if storage is None:
        return None
    return await storage.get_url_or_none(storage_id)
