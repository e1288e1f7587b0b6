"""Request pipelines built on the core components."""

from .media import MediaService

__all__ = ["MediaService"]
