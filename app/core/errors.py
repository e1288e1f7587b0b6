"""
Error types raised along the download pipeline.

Each error carries the HTTP status it maps to; the API renders every
MediaFetchError as ``{"error": message}`` with that status.
"""


class MediaFetchError(Exception):
    """Base class for all errors the API reports to clients."""

    status_code: int = 500
    default_code: str = "internal.error"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code or self.default_code


class InvalidRequest(MediaFetchError):
    status_code = 400
    default_code = "request.invalid"


class UnsupportedFormat(MediaFetchError):
    status_code = 400
    default_code = "request.unsupported_format"


class ExtractionError(MediaFetchError):
    """Raised when the extraction library fails to resolve a post."""

    default_code = "extraction.failed"


class NoMediaFound(ExtractionError):
    default_code = "extraction.no_media"


class StoreUnavailable(MediaFetchError):
    """Raised when the cache store cannot be reached."""

    default_code = "store.unavailable"


class DownloadFailed(MediaFetchError):
    default_code = "download.failed"


class TranscodeFailed(MediaFetchError):
    default_code = "transcode.failed"


class UploadFailed(MediaFetchError):
    default_code = "upload.failed"


class StorageError(MediaFetchError):
    """Raised when the object store rejects a delete."""

    default_code = "storage.delete_failed"


class CorsRejected(MediaFetchError):
    status_code = 403
    default_code = "cors.rejected"
