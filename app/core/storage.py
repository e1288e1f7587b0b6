"""
Object storage for transcoded audio.

The Cloudinary SDK is synchronous, so calls run in a worker thread.
Credentials are passed per call rather than through cloudinary.config()
so that several stores can coexist in one process.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import cloudinary.exceptions
import cloudinary.uploader

from .errors import StorageError, UploadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """An uploaded object: its store id and public URL."""

    storage_id: str
    url: str


class ObjectStore(ABC):
    @abstractmethod
    async def upload(self, path: Path) -> StoredObject: ...

    @abstractmethod
    async def delete(self, storage_id: str) -> None: ...


class CloudinaryStore(ObjectStore):
    """Cloudinary-backed object store."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        resource_type: str = "video",
        folder: str = "",
    ):
        self.resource_type = resource_type
        self.folder = folder
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    async def upload(self, path: Path) -> StoredObject:
        options = {"resource_type": self.resource_type, **self._credentials}
        if self.folder:
            options["folder"] = self.folder

        try:
            result = await asyncio.to_thread(cloudinary.uploader.upload, str(path), **options)
        except (cloudinary.exceptions.Error, ValueError) as e:
            # The SDK raises ValueError for missing credentials
            raise UploadFailed(f"Failed to upload file to Cloudinary: {e}") from e

        storage_id = result.get("public_id")
        url = result.get("secure_url") or result.get("url")
        if not storage_id or not url:
            raise UploadFailed("Failed to upload file to Cloudinary: incomplete upload response")

        logger.info("Uploaded %s to Cloudinary as %s", path.name, storage_id)
        return StoredObject(storage_id=storage_id, url=url)

    async def delete(self, storage_id: str) -> None:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                storage_id,
                resource_type=self.resource_type,
                invalidate=True,
                **self._credentials,
            )
        except (cloudinary.exceptions.Error, ValueError) as e:
            raise StorageError(f"Failed to delete file from Cloudinary: {e}") from e

        # "not found" means the object is already gone
        outcome = result.get("result")
        if outcome not in ("ok", "not found"):
            raise StorageError(f"Failed to delete file from Cloudinary: {outcome}")
