"""
Instagram Media API - FastAPI application entry point.

Resolves Instagram posts, reels and IGTV links to a direct MP4 URL, or to
a temporarily hosted MP3 transcoded from the video.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import asyncio as aioredis
from slowapi.errors import RateLimitExceeded

from .config import Settings, get_ffmpeg_path, get_settings, get_temp_dir
from .core.cache import MediaCache, create_redis_client
from .core.cleanup import CleanupScheduler
from .core.errors import CorsRejected, MediaFetchError
from .core.ffmpeg import FFmpegTranscoder, get_ffmpeg_version, is_ffmpeg_available
from .core.http_client import MediaDownloader
from .core.limits import (
    CORS_REJECTED_MESSAGE,
    configure_download_limit,
    is_origin_allowed,
    limiter,
    rate_limit_exceeded_handler,
)
from .core.storage import CloudinaryStore, ObjectStore
from .extractors import BaseExtractor, InstagramExtractor
from .routes.api import router
from .services.media import MediaService

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format=_LOG_FORMAT,
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def configure_file_logging(log_dir: str) -> None:
    """Write combined.log (all records) and error.log (errors only) under log_dir."""
    if not log_dir:
        return
    root = logging.getLogger()
    if any(getattr(h, "_media_api_handler", False) for h in root.handlers):
        return

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(_LOG_FORMAT)
    for filename, level in (("combined.log", logging.NOTSET), ("error.log", logging.ERROR)):
        handler = logging.FileHandler(path / filename, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler._media_api_handler = True
        root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Instagram Media API starting up...")

    settings: Settings = app.state.settings
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Allowed origins: {settings.allowed_origins}")
    logger.info(
        f"Rate limit: {settings.rate_limit_max} requests per {settings.rate_limit_window}s"
    )

    ffmpeg = get_ffmpeg_path(settings)
    if is_ffmpeg_available(ffmpeg):
        logger.info(f"FFmpeg available: {get_ffmpeg_version(ffmpeg)}")
    else:
        logger.warning("FFmpeg not found - mp3 requests will fail")

    app.state.cleanup.start()

    yield

    logger.info("Instagram Media API shutting down...")
    app.state.cleanup.shutdown()
    await app.state.cache.redis.aclose()


async def media_error_handler(request: Request, exc: MediaFetchError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def create_app(
    settings: Settings | None = None,
    *,
    redis: aioredis.Redis | None = None,
    extractor: BaseExtractor | None = None,
    downloader: MediaDownloader | None = None,
    transcoder: FFmpegTranscoder | None = None,
    store: ObjectStore | None = None,
) -> FastAPI:
    """Build the application, constructing any component not passed in."""
    settings = settings or get_settings()
    configure_file_logging(settings.log_dir)

    if redis is None:
        redis = create_redis_client(settings.redis_url)
    if extractor is None:
        extractor = InstagramExtractor(
            cookie_file=settings.instagram_cookie_file,
            user_agent=settings.user_agent,
        )
    if downloader is None:
        downloader = MediaDownloader(
            timeout=settings.request_timeout,
            user_agent=settings.user_agent,
        )
    if transcoder is None:
        transcoder = FFmpegTranscoder(get_ffmpeg_path(settings), bitrate=settings.audio_bitrate)
    if store is None:
        store = CloudinaryStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            resource_type=settings.storage_resource_type,
            folder=settings.storage_folder,
        )

    cache = MediaCache(redis)
    cleanup = CleanupScheduler(
        redis,
        store,
        delay=settings.cleanup_delay,
        poll_interval=settings.cleanup_poll_interval,
        cache=cache,
    )
    media_service = MediaService(
        cache=cache,
        extractor=extractor,
        downloader=downloader,
        transcoder=transcoder,
        store=store,
        cleanup=cleanup,
        temp_dir=get_temp_dir(settings),
        video_ttl=settings.video_cache_ttl,
        audio_ttl=settings.audio_cache_ttl,
    )

    app = FastAPI(
        title="Instagram Media API",
        description=(
            "Resolves Instagram posts, reels and IGTV links to a direct MP4 URL "
            "or a temporarily hosted MP3 transcoded from the video."
        ),
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.cleanup = cleanup
    app.state.media_service = media_service

    configure_download_limit(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(MediaFetchError, media_error_handler)

    allowed_origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # Registered after CORSMiddleware, so it runs first
    @app.middleware("http")
    async def reject_disallowed_origins(request: Request, call_next):
        origin = request.headers.get("origin")
        if not is_origin_allowed(origin, allowed_origins):
            error = CorsRejected(CORS_REJECTED_MESSAGE)
            logger.warning("Rejected request from origin %s to %s", origin, request.url.path)
            return JSONResponse(status_code=error.status_code, content={"error": str(error)})
        return await call_next(request)

    app.include_router(router, prefix="/api")

    @app.get("/", tags=["root"])
    async def root():
        return {
            "name": "Instagram Media API",
            "version": VERSION,
            "docs": "/docs",
            "endpoints": {
                "download": "/api/download",
                "stats": "/api/stats",
                "health": "/api/health",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
