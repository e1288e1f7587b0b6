from pydantic import BaseModel, Field


class DownloadRequest(BaseModel):
    """Request body for the /download endpoint.

    Both fields are optional at the model level so that missing values are
    reported by the validator with the service's own error messages.
    """

    url: str | None = Field(
        None,
        description="Instagram post, reel or IGTV URL",
        examples=["https://www.instagram.com/p/ABC/"],
    )
    format: str | None = Field(
        None,
        description="Requested output: mp4 (direct video link) or mp3 (transcoded audio)",
        examples=["mp4"],
    )
