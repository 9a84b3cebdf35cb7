"""Security utilities for session tokens, principals and webhook signatures."""

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from svix.webhooks import Webhook, WebhookVerificationError

from red_tea.config import get_settings
from red_tea.database import get_db
from red_tea.services.errors import UnauthenticatedError
from red_tea.services.moderation import Principal, resolve_principal

# Bearer scheme for identity provider session tokens
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a session token signed with the shared secret.

    Production tokens come from the identity provider; this is used for
    local development and tests.

    Args:
        data: Payload data to encode in the token. The "sub" (subject) claim
              must be the identity provider subject id.
        expires_delta: Optional custom expiration time. Defaults to settings value.

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode.update({"exp": expire})
    if settings.auth_jwt_issuer and "iss" not in to_encode:
        to_encode["iss"] = settings.auth_jwt_issuer
    if settings.auth_jwt_audience and "aud" not in to_encode:
        to_encode["aud"] = settings.auth_jwt_audience

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm="HS256",
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a session token.

    Args:
        token: The JWT token string to decode

    Returns:
        Decoded token payload if valid, None if invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_verification_key,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_jwt_issuer,
            options={"verify_aud": settings.auth_jwt_audience is not None},
        )
        return payload
    except JWTError:
        return None


async def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Resolve the request's principal from its bearer token.

    The caller's directory record is loaded on every request, so role and
    ban changes take effect immediately.

    Raises:
        UnauthenticatedError: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise UnauthenticatedError()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthenticatedError("Could not validate credentials")

    return await resolve_principal(
        db,
        payload.get("sub"),
        email=payload.get("email"),
        name=payload.get("name"),
    )


# Type alias for use in route dependencies
CurrentPrincipal = Annotated[Principal, Depends(get_principal)]


def webhook_verifier(secret: str) -> Webhook:
    """Build the verifier for identity provider webhook deliveries.

    Raises:
        WebhookVerificationError: If the signing secret is unset or malformed.
    """
    if not secret:
        raise WebhookVerificationError("Webhook secret is not configured")
    try:
        return Webhook(secret)
    except ValueError as e:
        raise WebhookVerificationError("Webhook secret is not valid base64") from e
