"""Identity provider admin API client."""

import logging
from collections.abc import AsyncGenerator

from red_tea.config import get_settings
from red_tea.services.base import BaseAPIClient, NotFoundError

logger = logging.getLogger(__name__)


class IdentityProviderClient(BaseAPIClient):
    """Client for the identity provider's backend API.

    Only user deletion is needed: when a user is wiped here the provider
    account must go too, otherwise the next sign-in would recreate it.
    """

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 15.0,
    ) -> None:
        """Initialize the identity provider client.

        Args:
            secret_key: Provider secret key. If not provided, uses settings.
            base_url: Provider API base URL. If not provided, uses settings.
            timeout: Request timeout in seconds.
        """
        settings = get_settings()
        self._secret_key = secret_key or settings.identity_api_secret_key
        base = base_url or settings.identity_api_base_url

        if not self._secret_key:
            raise ValueError("Identity provider secret key is required")

        super().__init__(base_url=base, timeout=timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        """Return default headers including Bearer token authentication."""
        return {
            "Authorization": f"Bearer {self._secret_key}",
            "Accept": "application/json",
        }

    async def delete_user(self, subject_id: str) -> bool:
        """Delete a user account at the provider.

        Args:
            subject_id: The provider's subject id for the user.

        Returns:
            True if the account was deleted, False if it was already gone.

        Raises:
            APIError: If the provider rejects the deletion.
        """
        try:
            await self.delete(f"/users/{subject_id}")
        except NotFoundError:
            logger.info("Identity provider has no user %s; treating as deleted", subject_id)
            return False
        return True


async def get_identity_client() -> AsyncGenerator[IdentityProviderClient | None]:
    """FastAPI dependency yielding an identity provider client for one request.

    Yields None when no provider secret key is configured, in which case
    wiped users keep their provider account. The client is closed when the
    request ends.
    """
    if not get_settings().identity_api_secret_key:
        yield None
        return

    client = IdentityProviderClient()
    try:
        yield client
    finally:
        await client.close()
