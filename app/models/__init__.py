from .cache import CacheEntry
from .enums import MediaFormat
from .request import DownloadRequest
from .response import DownloadResponse, ErrorResponse, StatsResponse

__all__ = [
    "CacheEntry",
    "DownloadRequest",
    "DownloadResponse",
    "ErrorResponse",
    "MediaFormat",
    "StatsResponse",
]
