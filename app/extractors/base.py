"""
Base extractor class that media extractors inherit from.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.errors import ExtractionError, NoMediaFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaItem:
    """One media descriptor of a post: a direct URL and an optional thumbnail."""

    url: str | None
    thumbnail: str | None = None


class BaseExtractor(ABC):
    """
    Abstract base class for extractors.

    Subclasses implement _extract(), which returns every media item of a
    post in order. extract() wraps unexpected failures in ExtractionError.
    """

    name: str = "base"

    async def extract(self, url: str) -> list[MediaItem]:
        try:
            return await self._extract(url)
        except ExtractionError:
            raise
        except Exception as e:
            logger.exception("Extraction failed for %s: %s", self.name, e)
            raise ExtractionError(f"Failed to extract from {self.name}: {e!s}") from e

    async def extract_first(self, url: str) -> MediaItem:
        """Return the first media item of a post.

        Raises:
            NoMediaFound: the post has no items, or the first has no URL.
        """
        items = await self.extract(url)
        if not items or not items[0].url:
            raise NoMediaFound("No media found for the provided URL")
        return items[0]

    @abstractmethod
    async def _extract(self, url: str) -> list[MediaItem]: ...
