"""Pydantic schemas for external service payloads."""

from pydantic import BaseModel, ConfigDict, Field


class StorageUploadUrl(BaseModel):
    """File storage response when requesting an upload URL."""

    model_config = ConfigDict(extra="ignore")

    upload_url: str = Field(description="One-time URL to upload a file to")


class StorageUrl(BaseModel):
    """File storage response resolving a storage id."""

    model_config = ConfigDict(extra="ignore")

    url: str = Field(description="Servable URL for the stored object")


class UploadUrlResponse(BaseModel):
    """Upload URL handed back to the client."""

    upload_url: str = Field(description="One-time URL to upload an image to")
