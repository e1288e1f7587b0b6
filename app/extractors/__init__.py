"""
Media extractors.

An extractor turns a post URL into the direct URLs of its media.
"""

from ..core.errors import ExtractionError, NoMediaFound
from .base import BaseExtractor, MediaItem
from .instagram import InstagramExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionError",
    "InstagramExtractor",
    "MediaItem",
    "NoMediaFound",
]
