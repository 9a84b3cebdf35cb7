"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Red Tea API"
    debug: bool = False
    secret_key: str  # Required, no default

    # Database
    database_url: str = "sqlite+aiosqlite:///./red_tea.db"

    # Session tokens issued by the identity provider
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_public_key: str | None = None
    auth_jwt_issuer: str | None = None
    auth_jwt_audience: str | None = None
    jwt_access_token_expire_minutes: int = 30

    # Identity provider admin API and webhooks
    identity_api_base_url: str = "https://api.clerk.com/v1"
    identity_api_secret_key: str = ""
    identity_webhook_secret: str = ""

    # File storage
    storage_base_url: str = ""
    storage_api_key: str = ""

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Validate that secret_key is secure."""
        if not v:
            raise ValueError("SECRET_KEY is required")

        # In production mode, ensure secret key is strong
        debug = info.data.get("debug", False)
        if not debug:
            if len(v) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production mode")
            if v in ("change-me-in-production", "secret", "password", "changeme"):
                raise ValueError("SECRET_KEY must not be a common weak value")

        return v

    @property
    def jwt_verification_key(self) -> str:
        """Key used to verify session tokens (public key for RS*, shared secret otherwise)."""
        if self.auth_jwt_algorithm.startswith(("RS", "ES")) and self.auth_jwt_public_key:
            return self.auth_jwt_public_key
        return self.secret_key

    def validate_runtime_config(self) -> list[str]:
        """Validate runtime configuration and return warnings."""
        warnings = []

        if not self.identity_api_secret_key:
            warnings.append(
                "IDENTITY_API_SECRET_KEY is not set - users wiped here will remain "
                "at the identity provider"
            )

        if not self.identity_webhook_secret:
            warnings.append("IDENTITY_WEBHOOK_SECRET is not set - identity webhooks are rejected")

        if not self.storage_base_url:
            warnings.append(
                "STORAGE_BASE_URL is not set - uploads answer 503, image URLs are null and "
                "stored images are never deleted"
            )

        if self.auth_jwt_algorithm.startswith(("RS", "ES")) and not self.auth_jwt_public_key:
            warnings.append(
                f"AUTH_JWT_ALGORITHM is {self.auth_jwt_algorithm} but AUTH_JWT_PUBLIC_KEY is not set"
            )

        # Warn about debug mode in production
        if self.debug:
            warnings.append("DEBUG mode is enabled - should be disabled in production")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
