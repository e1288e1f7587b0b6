from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """A resolved media link stored in the cache for one (url, format) pair."""

    media_url: str = Field(..., description="Direct CDN link or object-store URL")
    thumbnail_url: str | None = Field(None, description="Thumbnail URL")
    storage_id: str | None = Field(None, description="Object-store id of an uploaded MP3")
