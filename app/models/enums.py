from enum import Enum


class MediaFormat(str, Enum):
    MP4 = "mp4"
    MP3 = "mp3"
