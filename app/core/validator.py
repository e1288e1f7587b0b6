"""
Request validation for the download endpoint.

Checks run in a fixed order: presence of both fields, shape of the URL,
then the requested format. Nothing here touches the network or the cache.
"""

import re
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..models.enums import MediaFormat
from ..models.request import DownloadRequest
from .errors import InvalidRequest, UnsupportedFormat

INSTAGRAM_URL_PATTERN = re.compile(r"^https?://(?:www\.)?instagram\.com/.*", re.IGNORECASE)

SUPPORTED_FORMATS = frozenset(f.value for f in MediaFormat)

MISSING_FIELDS_MESSAGE = "URL and format are required"


@dataclass(frozen=True)
class ValidatedRequest:
    url: str
    format: MediaFormat


def is_instagram_url(url: str) -> bool:
    return INSTAGRAM_URL_PATTERN.match(url) is not None


def parse_download_body(data: Any) -> DownloadRequest:
    """Build a DownloadRequest from a decoded JSON body.

    A body that is not an object counts as empty. Fields of the wrong type
    are reported like missing ones.
    """
    if not isinstance(data, dict):
        data = {}
    try:
        return DownloadRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(MISSING_FIELDS_MESSAGE, error_code="request.malformed") from e


def validate_download_request(request: DownloadRequest) -> ValidatedRequest:
    """Validate a raw download request.

    Raises:
        InvalidRequest: url or format missing, or url is not an Instagram URL.
        UnsupportedFormat: format is neither mp4 nor mp3.
    """
    url = (request.url or "").strip()
    fmt = (request.format or "").strip()

    if not url or not fmt:
        raise InvalidRequest(MISSING_FIELDS_MESSAGE, error_code="request.missing_fields")

    if not is_instagram_url(url):
        raise InvalidRequest("Invalid Instagram URL", error_code="url.unsupported")

    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormat("Unsupported format")

    return ValidatedRequest(url=url, format=MediaFormat(fmt))
