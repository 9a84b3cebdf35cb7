"""Shared httpx plumbing for the storage and identity provider clients."""

from abc import ABC, abstractmethod
from typing import Any

import httpx


class APIError(Exception):
    """An external service failed or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(APIError):
    """The external service answered 429."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int | None = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """The external service has no such object."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class BaseAPIClient(ABC):
    """A lazily opened ``httpx.AsyncClient`` bound to one service.

    Callers own the client's lifetime and must ``close()`` it; the FastAPI
    factories for each subclass do so when the request ends.
    """

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request, typically authentication."""
        ...

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.default_headers,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and decode its JSON body.

        Raises:
            NotFoundError: On 404.
            RateLimitError: On 429.
            APIError: On any other error status, a timeout or a transport failure.
        """
        client = await self._get_client()
        try:
            response = await client.request(
                method=method, url=endpoint.lstrip("/"), params=params, json=json
            )
        except httpx.TimeoutException as e:
            raise APIError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise APIError(f"Request failed: {e}") from e

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 404:
            raise NotFoundError()

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(retry_after=int(retry_after) if retry_after else None)

        if response.status_code >= 400:
            raise APIError(f"API error: {response.text}", status_code=response.status_code)

        # Deletions answer 204 with no body
        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON response: {e}") from e

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("POST", endpoint, json=json)

    async def delete(self, endpoint: str) -> dict[str, Any]:
        return await self._request("DELETE", endpoint)
