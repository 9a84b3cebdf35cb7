"""Pydantic schemas for identity provider webhook events."""

from pydantic import BaseModel, ConfigDict, Field


class IdentityEmailAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email_address: str = Field(description="Email address")


class IdentityEventData(BaseModel):
    """The user object carried by a lifecycle event."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, description="Subject id")
    email_addresses: list[IdentityEmailAddress] = Field(default_factory=list)
    first_name: str | None = Field(default=None)
    last_name: str | None = Field(default=None)

    @property
    def primary_email(self) -> str:
        return self.email_addresses[0].email_address if self.email_addresses else ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class IdentityEvent(BaseModel):
    """A webhook delivery from the identity provider."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(description="Event type, e.g. user.created")
    data: IdentityEventData = Field(description="Event payload")
