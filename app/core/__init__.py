"""Core components: validation, caching, downloading, FFmpeg, storage and cleanup."""

from .cache import MediaCache
from .cleanup import CleanupScheduler, remove_temp_files
from .errors import MediaFetchError
from .ffmpeg import FFmpegTranscoder, get_ffmpeg_version, is_ffmpeg_available
from .http_client import MediaDownloader
from .storage import CloudinaryStore, ObjectStore, StoredObject
from .validator import ValidatedRequest, validate_download_request

__all__ = [
    "CleanupScheduler",
    "CloudinaryStore",
    "FFmpegTranscoder",
    "MediaCache",
    "MediaDownloader",
    "MediaFetchError",
    "ObjectStore",
    "StoredObject",
    "ValidatedRequest",
    "get_ffmpeg_version",
    "is_ffmpeg_available",
    "remove_temp_files",
    "validate_download_request",
]
