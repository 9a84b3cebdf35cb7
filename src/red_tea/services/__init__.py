"""Business logic and external API clients."""

from red_tea.services.base import (
    APIError,
    BaseAPIClient,
    NotFoundError,
    RateLimitError,
)
from red_tea.services.errors import (
    CascadeError,
    RecordNotFoundError,
    RedTeaError,
    UnauthenticatedError,
    UnauthorizedError,
)
from red_tea.services.identity import IdentityProviderClient, get_identity_client
from red_tea.services.storage import StorageClient, get_storage_client

__all__ = [
    "APIError",
    "BaseAPIClient",
    "NotFoundError",
    "RateLimitError",
    "RedTeaError",
    "UnauthenticatedError",
    "UnauthorizedError",
    "RecordNotFoundError",
    "CascadeError",
    "StorageClient",
    "get_storage_client",
    "IdentityProviderClient",
    "get_identity_client",
]
