"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class GetCacheRequest(BaseModel):
    """Request DTO for looking up a cached response.

    The handler will convert this to internal calls to the service layer.
    """

    query: str | None = Field(None, description="The query to look up")
    key: str | None = Field(
        None,
        description="Exact storage key; disables derived-key and similarity lookup",
        min_length=1,
    )
    user_id: str | None = Field(None, description="User disambiguator for the derived key")
    model: str | None = Field(None, description="Model disambiguator for the derived key")


class SetCacheRequest(BaseModel):
    """Request DTO for storing a response."""

    query: str = Field(..., description="The original user query", min_length=1)
    response: Any = Field(..., description="The AI response to cache (any JSON value)")
    key: str | None = Field(None, description="Explicit storage key", min_length=1)
    user_id: str | None = Field(None, description="User disambiguator for the derived key")
    model: str | None = Field(None, description="Model disambiguator for the derived key")
