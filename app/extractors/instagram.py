"""
Instagram extractor backed by yt-dlp.

Supports posts (/p/), reels (/reel/) and IGTV (/tv/); carousel posts yield
one item per slide. yt-dlp is synchronous, so it runs in a worker thread.
"""

import asyncio
import logging
from typing import Any

import yt_dlp
from yt_dlp.utils import DownloadError

from ..core.errors import ExtractionError
from .base import BaseExtractor, MediaItem

logger = logging.getLogger(__name__)

# Single progressive file preferred so the URL is directly playable
_FORMAT_SELECTOR = "best[ext=mp4]/best"


class _YtdlpLogger:
    def debug(self, msg):
        pass

    def warning(self, msg):
        logger.warning(msg)

    def error(self, msg):
        logger.error(msg)


def _entry_url(entry: dict[str, Any]) -> str | None:
    """Pick the playable URL of one yt-dlp info dict."""
    if entry.get("url"):
        return entry["url"]

    requested = entry.get("requested_formats") or []
    for fmt in requested:
        if fmt.get("url") and fmt.get("vcodec") not in (None, "none"):
            return fmt["url"]

    # yt-dlp sorts formats worst to best
    for fmt in reversed(entry.get("formats") or []):
        if fmt.get("url"):
            return fmt["url"]
    return None


def _entry_thumbnail(entry: dict[str, Any]) -> str | None:
    if entry.get("thumbnail"):
        return entry["thumbnail"]
    thumbnails = entry.get("thumbnails") or []
    for thumb in reversed(thumbnails):
        if thumb.get("url"):
            return thumb["url"]
    return None


class InstagramExtractor(BaseExtractor):
    """Instagram media extractor."""

    name = "instagram"

    def __init__(self, cookie_file: str = "", user_agent: str | None = None):
        self.cookie_file = cookie_file
        self.user_agent = user_agent

    def ydl_options(self) -> dict[str, Any]:
        opts: dict[str, Any] = {
            "format": _FORMAT_SELECTOR,
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": False,
            "logger": _YtdlpLogger(),
        }
        if self.cookie_file:
            opts["cookiefile"] = self.cookie_file
        if self.user_agent:
            opts["http_headers"] = {"User-Agent": self.user_agent}
        return opts

    def _extract_info(self, url: str) -> dict[str, Any] | None:
        with yt_dlp.YoutubeDL(self.ydl_options()) as ydl:
            return ydl.extract_info(url, download=False)

    async def _extract(self, url: str) -> list[MediaItem]:
        try:
            info = await asyncio.to_thread(self._extract_info, url)
        except DownloadError as e:
            raise ExtractionError(f"Failed to extract from instagram: {e}") from e

        items = self.parse_info(info)
        logger.info("Extracted %d media item(s) from %s", len(items), url)
        return items

    @staticmethod
    def parse_info(info: dict[str, Any] | None) -> list[MediaItem]:
        """Turn a yt-dlp info dict into media items, one per carousel entry."""
        if not info:
            return []

        if info.get("_type") == "playlist" or "entries" in info:
            entries = [e for e in (info.get("entries") or []) if e]
            fallback_thumbnail = _entry_thumbnail(info)
        else:
            entries = [info]
            fallback_thumbnail = None

        return [
            MediaItem(
                url=_entry_url(entry),
                thumbnail=_entry_thumbnail(entry) or fallback_thumbnail,
            )
            for entry in entries
        ]
