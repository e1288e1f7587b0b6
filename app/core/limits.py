"""
Access control: per-IP rate limiting and the CORS origin allow-list.

The limiter is process-wide: the route decorator binds to it at import.
Its storage backend comes from the environment at import time, and the
ceiling and window are read on every request, so the most recent
create_app() call sets them for every app in the process.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later"
CORS_REJECTED_MESSAGE = "Not allowed by CORS"

LIMITER_STORAGE_URI = get_settings().rate_limit_storage_uri

limiter = Limiter(key_func=get_remote_address, storage_uri=LIMITER_STORAGE_URI)

_download_limit = "100 per 900 seconds"


def configure_download_limit(settings: Settings) -> str:
    """Apply the configured ceiling and window to the download route."""
    global _download_limit
    if settings.rate_limit_storage_uri != LIMITER_STORAGE_URI:
        logger.warning(
            "Ignoring rate_limit_storage_uri=%s: the limiter was created with %s",
            settings.rate_limit_storage_uri,
            LIMITER_STORAGE_URI,
        )
    _download_limit = f"{settings.rate_limit_max} per {settings.rate_limit_window} seconds"
    return _download_limit


def download_limit() -> str:
    return _download_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded for %s on %s", get_remote_address(request), request.url.path)
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})


def is_origin_allowed(origin: str | None, allowed_origins: list[str]) -> bool:
    """Requests without an Origin header (curl, server-to-server) are allowed."""
    if not origin:
        return True
    return origin in allowed_origins
