"""
API Request and Response Schemas

Pydantic models for the JSON bodies of the HTTP API. URL and slug rules
live in the service layer so that the same checks apply to every caller.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    long_url: str = Field(..., min_length=1, description="The long URL to shorten")
    custom_slug: Optional[str] = Field(
        default=None,
        description="Optional alphanumeric short code; generated when omitted"
    )


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    short_url: str = Field(..., description="The complete short URL")
    long_url: str = Field(..., description="The original long URL")


class URLInfoResponse(BaseModel):
    """Response model for the info endpoint and stats entries."""
    short_url: str
    long_url: str
    created_at: datetime
    access_count: int


class StatsResponse(BaseModel):
    """Response model for the service-wide statistics endpoint."""
    total_urls: int
    total_clicks: int
    top_urls: List[URLInfoResponse]


class ErrorResponse(BaseModel):
    error: str
