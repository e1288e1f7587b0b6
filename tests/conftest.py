"""Shared fixtures: in-memory stand-ins for Redis and the external collaborators."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from app.config import Settings
from app.core.errors import StorageError, TranscodeFailed, UploadFailed
from app.core.limits import limiter
from app.core.storage import ObjectStore, StoredObject
from app.extractors.base import BaseExtractor, MediaItem
from app.main import create_app

INSTAGRAM_URL = "https://www.instagram.com/p/ABC/"
CDN_VIDEO_URL = "https://cdn/x.mp4"
CDN_THUMBNAIL_URL = "https://cdn/x.jpg"
STORED_ID = "media-api/abc123"
STORED_URL = "https://res.cloudinary.com/demo/video/upload/media-api/abc123.mp3"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeRedis:
    """The subset of redis.asyncio.Redis used by the service, kept in memory."""

    def __init__(self, clock: FakeClock | None = None):
        self.clock = clock or FakeClock()
        self.data: dict[str, str] = {}
        self.expiry: dict[str, float] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Error 111 connecting to 127.0.0.1:6379. Connection refused.")

    def _expire_if_due(self, key: str):
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= self.clock():
            self.data.pop(key, None)
            self.expiry.pop(key, None)

    def ttl(self, key: str) -> float | None:
        deadline = self.expiry.get(key)
        return None if deadline is None else deadline - self.clock()

    async def get(self, key):
        self._check()
        self._expire_if_due(key)
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = self.clock() + ex
        else:
            self.expiry.pop(key, None)
        return True

    async def incr(self, key):
        self._check()
        self._expire_if_due(key)
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    async def zadd(self, key, mapping):
        self._check()
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update(mapping)
        return added

    async def zrange(self, key, start, end, withscores=False):
        self._check()
        ordered = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1])
        stop = None if end == -1 else end + 1
        ordered = ordered[start:stop]
        if withscores:
            return ordered
        return [member for member, _ in ordered]

    async def zrangebyscore(self, key, min, max):
        self._check()
        low, high = float(min), float(max)
        ordered = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1])
        return [member for member, score in ordered if low <= score <= high]

    async def zrem(self, key, *members):
        self._check()
        zset = self.zsets.get(key, {})
        removed = 0
        for member in members:
            if zset.pop(member, None) is not None:
                removed += 1
        return removed

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            self.expiry.pop(key, None)
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def hset(self, key, field, value):
        self._check()
        fields = self.hashes.setdefault(key, {})
        added = int(field not in fields)
        fields[field] = value
        return added

    async def hget(self, key, field):
        self._check()
        return self.hashes.get(key, {}).get(field)

    async def hdel(self, key, *fields):
        self._check()
        stored = self.hashes.get(key, {})
        return sum(1 for field in fields if stored.pop(field, None) is not None)

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True


class FakeExtractor(BaseExtractor):
    name = "fake"

    def __init__(self, items: list[MediaItem] | None = None, error: Exception | None = None):
        self.items = items if items is not None else [MediaItem(CDN_VIDEO_URL, CDN_THUMBNAIL_URL)]
        self.error = error
        self.calls: list[str] = []

    async def _extract(self, url: str) -> list[MediaItem]:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return list(self.items)


class FakeDownloader:
    def __init__(self, content: bytes = b"\x00\x00\x00\x18ftypmp42"):
        self.content = content
        self.calls: list[tuple[str, Path]] = []

    async def download(self, url: str, destination: Path) -> Path:
        self.calls.append((url, destination))
        destination.write_bytes(self.content)
        return destination


class FakeTranscoder:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.bitrate = 128
        self.calls: list[tuple[Path, Path]] = []

    async def transcode(self, source: Path, output: Path) -> Path:
        self.calls.append((source, output))
        # Leave a partial file behind, as a crashed ffmpeg would
        output.write_bytes(b"ID3")
        if self.fail:
            raise TranscodeFailed("FFmpeg audio conversion failed: Invalid data found when processing input")
        return output


class FakeStore(ObjectStore):
    def __init__(self, fail_upload: bool = False, fail_delete: bool = False):
        self.fail_upload = fail_upload
        self.fail_delete = fail_delete
        self.uploaded: list[Path] = []
        self.deleted: list[str] = []

    async def upload(self, path: Path) -> StoredObject:
        assert path.exists(), "upload must see the transcoded file"
        self.uploaded.append(path)
        if self.fail_upload:
            raise UploadFailed("Failed to upload file to Cloudinary")
        return StoredObject(storage_id=STORED_ID, url=STORED_URL)

    async def delete(self, storage_id: str) -> None:
        if self.fail_delete:
            raise StorageError("Failed to delete file from Cloudinary: error")
        self.deleted.append(storage_id)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def fake_redis(clock):
    return FakeRedis(clock)


@pytest.fixture()
def temp_dir(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture()
def settings(temp_dir):
    return Settings(
        _env_file=None,
        temp_dir=str(temp_dir),
        cors_origins="http://localhost:8080,https://example.com",
        video_cache_ttl=60,
        audio_cache_ttl=120,
        cleanup_delay=60,
        rate_limit_max=100,
        rate_limit_window=900,
    )


@pytest.fixture()
def extractor():
    return FakeExtractor()


@pytest.fixture()
def downloader():
    return FakeDownloader()


@pytest.fixture()
def transcoder():
    return FakeTranscoder()


@pytest.fixture()
def store():
    return FakeStore()


@pytest.fixture()
def app(settings, fake_redis, extractor, downloader, transcoder, store):
    return create_app(
        settings,
        redis=fake_redis,
        extractor=extractor,
        downloader=downloader,
        transcoder=transcoder,
        store=store,
    )


@pytest.fixture()
def client(app):
    # Not used as a context manager: the lifespan (sweeper, Redis close) stays off in tests
    return TestClient(app)
