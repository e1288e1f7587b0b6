"""
API route definitions for the Instagram Media API.
"""

import logging

from fastapi import APIRouter, Depends, Request

from ..config import Settings, get_ffmpeg_path
from ..core.cache import TOTAL_REQUESTS_KEY, MediaCache
from ..core.errors import MediaFetchError, StoreUnavailable
from ..core.ffmpeg import get_ffmpeg_version, is_ffmpeg_available
from ..core.limits import download_limit, limiter
from ..core.validator import parse_download_body, validate_download_request
from ..dependencies import get_app_settings, get_media_cache, get_media_service
from ..models.request import DownloadRequest
from ..models.response import DownloadResponse, ErrorResponse, StatsResponse
from ..services.media import MediaService

logger = logging.getLogger(__name__)

router = APIRouter()

INTERNAL_ERROR_MESSAGE = "Internal server error"


async def read_download_request(request: Request) -> DownloadRequest:
    """Parse the JSON body inside the endpoint, after rate limiting and counting."""
    try:
        data = await request.json()
    except ValueError:
        data = None
    return parse_download_body(data)


@router.post(
    "/download",
    response_model=DownloadResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields, invalid URL or unsupported format"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Resolution failed"},
    },
    summary="Resolve an Instagram post to a playable MP4 or MP3 URL",
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": DownloadRequest.model_json_schema()}},
        },
    },
    description=(
        "mp4 returns the direct CDN link of the post's first media item. "
        "mp3 downloads it, converts it to audio and returns a temporary hosted URL."
    ),
)
@limiter.limit(download_limit)
async def download_media(
    request: Request,
    cache: MediaCache = Depends(get_media_cache),
    service: MediaService = Depends(get_media_service),
    settings: Settings = Depends(get_app_settings),
):
    try:
        total_requests = await cache.increment(TOTAL_REQUESTS_KEY)
    except StoreUnavailable as e:
        logger.error("Failed to count requests: %s", e)
        raise MediaFetchError(INTERNAL_ERROR_MESSAGE, error_code=e.error_code) from e
    logger.info("Total requests: %d", total_requests)

    payload = await read_download_request(request)
    validated = validate_download_request(payload)

    try:
        return await service.resolve(validated)
    except MediaFetchError as e:
        logger.error(
            "Failed to process %s (format=%s): %s",
            validated.url,
            validated.format.value,
            e,
        )
        raise
    except Exception as e:
        logger.exception("Unexpected error while processing %s: %s", validated.url, e)
        # Do not leak exception details in production
        message = str(e) if settings.debug else "Failed to process the URL"
        raise MediaFetchError(message) from e


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={500: {"model": ErrorResponse, "description": "Cache store unavailable"}},
    summary="Total number of download requests",
)
async def get_stats(cache: MediaCache = Depends(get_media_cache)):
    try:
        total_requests = await cache.get_counter(TOTAL_REQUESTS_KEY)
    except StoreUnavailable as e:
        logger.error("Failed to fetch stats: %s", e)
        raise MediaFetchError(INTERNAL_ERROR_MESSAGE, error_code=e.error_code) from e
    return StatsResponse(total_requests=total_requests)


@router.get(
    "/health",
    summary="Health check",
    description="Check the health of the API including FFmpeg and Redis status.",
)
async def health_check(
    cache: MediaCache = Depends(get_media_cache),
    settings: Settings = Depends(get_app_settings),
):
    ffmpeg = get_ffmpeg_path(settings)
    ffmpeg_available = is_ffmpeg_available(ffmpeg)
    ffmpeg_version = get_ffmpeg_version(ffmpeg) if ffmpeg_available else None
    redis_ok = await cache.ping()

    return {
        "status": "healthy" if redis_ok else "degraded",
        "ffmpeg": {
            "available": ffmpeg_available,
            "version": ffmpeg_version,
        },
        "redis": redis_ok,
    }
