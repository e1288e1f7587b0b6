from pydantic import BaseModel, Field

from .enums import MediaFormat


class DownloadResponse(BaseModel):
    """Response model for the /download endpoint."""

    format: MediaFormat = Field(..., description="Format of the returned media")
    url: str = Field(..., description="Playable URL of the media")
    thumbnail: str | None = Field(None, description="Thumbnail URL, if the post has one")


class StatsResponse(BaseModel):
    total_requests: int = Field(0, description="Download requests served since the counter was created")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error message")
