import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    # When set, combined.log and error.log are written to this directory.
    log_dir: str = ""

    # Comma-separated origins allowed by CORS. Requests without an Origin header always pass.
    cors_origins: str = "http://localhost:8080,https://example.com"

    redis_url: str = "redis://127.0.0.1:6379/0"
    video_cache_ttl: int = 60
    audio_cache_ttl: int = 120

    # Seconds an uploaded MP3 stays in the object store before it is deleted.
    cleanup_delay: int = 60
    cleanup_poll_interval: int = 5

    rate_limit_max: int = 100
    rate_limit_window: int = 15 * 60
    rate_limit_storage_uri: str = "memory://"

    audio_bitrate: int = 128
    ffmpeg_path: str = ""
    temp_dir: str = ""
    request_timeout: int = 30
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )
    # Optional Netscape cookie file handed to yt-dlp for private posts.
    instagram_cookie_file: str = ""

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    # Cloudinary files audio under the "video" resource type.
    storage_resource_type: str = "video"
    storage_folder: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_temp_dir(settings: Settings | None = None) -> Path:
    settings = settings or get_settings()
    temp_path = Path(settings.temp_dir) if settings.temp_dir else Path(tempfile.gettempdir())
    temp_path.mkdir(parents=True, exist_ok=True)
    return temp_path


def get_ffmpeg_path(settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    if settings.ffmpeg_path:
        return settings.ffmpeg_path
    return "ffmpeg"
