"""
FFmpeg integration for converting downloaded Instagram videos to MP3.
"""

import asyncio
import logging
import subprocess
from pathlib import Path

from .errors import TranscodeFailed

logger = logging.getLogger(__name__)

# FFmpeg encoder configuration for the MP3 output
MP3_CODEC = {"codec": "libmp3lame", "ext": "mp3"}

DEFAULT_AUDIO_BITRATE = 128


def is_ffmpeg_available(ffmpeg: str = "ffmpeg") -> bool:
    """Check if FFmpeg is available on the system."""
    try:
        result = subprocess.run(
            [ffmpeg, "-version"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


def get_ffmpeg_version(ffmpeg: str = "ffmpeg") -> str | None:
    """Get the FFmpeg version string."""
    try:
        result = subprocess.run(
            [ffmpeg, "-version"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            first_line = result.stdout.split("\n")[0]
            return first_line
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass
    return None


class FFmpegTranscoder:
    """Converts a local video file to an MP3 file at a fixed bitrate."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", bitrate: int = DEFAULT_AUDIO_BITRATE):
        self.ffmpeg_path = ffmpeg_path
        self.bitrate = bitrate

    def build_command(self, source: Path, output: Path) -> list[str]:
        return [
            self.ffmpeg_path,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(source),
            "-vn",  # No video
            "-c:a",
            MP3_CODEC["codec"],
            "-b:a",
            f"{self.bitrate}k",
            str(output),
        ]

    async def transcode(self, source: Path, output: Path) -> Path:
        """Run ffmpeg and return the output path.

        Raises:
            TranscodeFailed: ffmpeg is missing, exits non-zero or writes nothing.
        """
        cmd = self.build_command(source, output)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise TranscodeFailed(f"FFmpeg not found: {self.ffmpeg_path}") from e

        _stdout, stderr = await process.communicate()

        if process.returncode != 0:
            error_msg = stderr.decode("utf-8", errors="replace").strip()
            raise TranscodeFailed(f"FFmpeg audio conversion failed: {error_msg}")

        if not output.exists() or output.stat().st_size == 0:
            raise TranscodeFailed("FFmpeg produced an empty file")

        logger.debug("Transcoded %s -> %s at %dk", source.name, output.name, self.bitrate)
        return output
