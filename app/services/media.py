"""
Resolution pipeline for download requests.

cache lookup -> extractor -> (mp3 only: download, transcode, upload,
schedule remote delete) -> cache write. Identical requests that arrive
while neither has finished both run the full pipeline.
"""

import logging
import uuid
from pathlib import Path

from ..core.cache import MediaCache
from ..core.cleanup import CleanupScheduler, remove_temp_files
from ..core.ffmpeg import FFmpegTranscoder
from ..core.http_client import MediaDownloader
from ..core.storage import ObjectStore
from ..core.validator import ValidatedRequest
from ..extractors.base import BaseExtractor
from ..models.cache import CacheEntry
from ..models.enums import MediaFormat
from ..models.response import DownloadResponse

logger = logging.getLogger(__name__)


class MediaService:
    """Resolves validated download requests into playable URLs."""

    def __init__(
        self,
        cache: MediaCache,
        extractor: BaseExtractor,
        downloader: MediaDownloader,
        transcoder: FFmpegTranscoder,
        store: ObjectStore,
        cleanup: CleanupScheduler,
        temp_dir: Path,
        video_ttl: int = 60,
        audio_ttl: int = 120,
    ):
        self.cache = cache
        self.extractor = extractor
        self.downloader = downloader
        self.transcoder = transcoder
        self.store = store
        self.cleanup = cleanup
        self.temp_dir = temp_dir
        self.video_ttl = video_ttl
        self.audio_ttl = audio_ttl

    async def resolve(self, request: ValidatedRequest) -> DownloadResponse:
        cached = await self.cache.get(request.url, request.format)
        if cached is not None:
            logger.info("Returning cached file: %s", cached.media_url)
            return DownloadResponse(
                format=request.format,
                url=cached.media_url,
                thumbnail=cached.thumbnail_url,
            )

        item = await self.extractor.extract_first(request.url)

        if request.format == MediaFormat.MP4:
            entry = CacheEntry(media_url=item.url, thumbnail_url=item.thumbnail)
            await self.cache.set(request.url, request.format, entry, self.video_ttl)
        else:
            cache_key = self.cache.cache_key(request.url, request.format)
            entry = await self._resolve_audio(item.url, item.thumbnail, cache_key)
            await self.cache.set(request.url, request.format, entry, self.audio_ttl)

        return DownloadResponse(
            format=request.format,
            url=entry.media_url,
            thumbnail=entry.thumbnail_url,
        )

    def temp_paths(self) -> tuple[Path, Path]:
        """Unique per-request paths for the downloaded video and the MP3."""
        return (
            self.temp_dir / f"{uuid.uuid4()}.mp4",
            self.temp_dir / f"{uuid.uuid4()}.mp3",
        )

    async def _resolve_audio(self, media_url: str, thumbnail: str | None, cache_key: str) -> CacheEntry:
        video_path, audio_path = self.temp_paths()
        try:
            await self.downloader.download(media_url, video_path)
            await self.transcoder.transcode(video_path, audio_path)
            stored = await self.store.upload(audio_path)
        finally:
            remove_temp_files(video_path, audio_path)

        # Recorded before caching so the upload is cleaned up even if the cache write fails
        await self.cleanup.schedule_deletion(stored.storage_id, cache_key=cache_key)

        return CacheEntry(
            media_url=stored.url,
            thumbnail_url=thumbnail,
            storage_id=stored.storage_id,
        )
