"""Tests for the extractor base class and the yt-dlp backed Instagram extractor."""

import asyncio

import pytest
from yt_dlp.utils import DownloadError

from app.core.errors import ExtractionError, NoMediaFound
from app.extractors import InstagramExtractor, MediaItem
from conftest import FakeExtractor


class TestExtractFirst:
    def test_returns_first_item(self):
        items = [MediaItem("https://cdn/1.mp4", "https://cdn/1.jpg"), MediaItem("https://cdn/2.mp4")]
        item = asyncio.run(FakeExtractor(items).extract_first("https://www.instagram.com/p/ABC/"))
        assert item.url == "https://cdn/1.mp4"
        assert item.thumbnail == "https://cdn/1.jpg"

    def test_empty(self):
        with pytest.raises(NoMediaFound, match="No media found for the provided URL"):
            asyncio.run(FakeExtractor([]).extract_first("https://www.instagram.com/p/ABC/"))

    def test_first_item_without_url(self):
        items = [MediaItem(None, "https://cdn/1.jpg"), MediaItem("https://cdn/2.mp4")]
        with pytest.raises(NoMediaFound):
            asyncio.run(FakeExtractor(items).extract_first("https://www.instagram.com/p/ABC/"))

    def test_unexpected_errors_wrapped(self):
        extractor = FakeExtractor(error=KeyError("shortcode_media"))
        with pytest.raises(ExtractionError, match="Failed to extract from fake") as exc:
            asyncio.run(extractor.extract("https://www.instagram.com/p/ABC/"))
        assert exc.value.error_code == "extraction.failed"


class TestParseInfo:
    def test_single_video(self):
        info = {
            "id": "ABC",
            "url": "https://scontent.cdninstagram.com/v/abc.mp4",
            "thumbnail": "https://scontent.cdninstagram.com/v/abc.jpg",
        }
        assert InstagramExtractor.parse_info(info) == [
            MediaItem(
                "https://scontent.cdninstagram.com/v/abc.mp4",
                "https://scontent.cdninstagram.com/v/abc.jpg",
            )
        ]

    def test_carousel_keeps_order(self):
        info = {
            "_type": "playlist",
            "thumbnail": "https://cdn/cover.jpg",
            "entries": [
                {"url": "https://cdn/1.mp4", "thumbnail": "https://cdn/1.jpg"},
                None,
                {"url": "https://cdn/2.mp4"},
            ],
        }
        assert InstagramExtractor.parse_info(info) == [
            MediaItem("https://cdn/1.mp4", "https://cdn/1.jpg"),
            MediaItem("https://cdn/2.mp4", "https://cdn/cover.jpg"),
        ]

    def test_falls_back_to_requested_formats(self):
        info = {
            "requested_formats": [
                {"url": "https://cdn/audio.m4a", "vcodec": "none"},
                {"url": "https://cdn/video.mp4", "vcodec": "avc1"},
            ]
        }
        assert InstagramExtractor.parse_info(info)[0].url == "https://cdn/video.mp4"

    def test_falls_back_to_best_format(self):
        info = {
            "formats": [
                {"url": "https://cdn/360.mp4"},
                {"url": "https://cdn/1080.mp4"},
            ],
            "thumbnails": [
                {"url": "https://cdn/small.jpg"},
                {"url": "https://cdn/large.jpg"},
            ],
        }
        assert InstagramExtractor.parse_info(info) == [
            MediaItem("https://cdn/1080.mp4", "https://cdn/large.jpg")
        ]

    def test_no_url_anywhere(self):
        assert InstagramExtractor.parse_info({"id": "ABC"}) == [MediaItem(None, None)]

    def test_empty_info(self):
        assert InstagramExtractor.parse_info(None) == []
        assert InstagramExtractor.parse_info({"_type": "playlist", "entries": []}) == []


class TestInstagramExtractor:
    def test_ydl_options(self):
        opts = InstagramExtractor().ydl_options()
        assert opts["skip_download"] is True
        assert opts["format"] == "best[ext=mp4]/best"
        assert "cookiefile" not in opts

    def test_cookie_file_passed_to_ytdlp(self):
        opts = InstagramExtractor(cookie_file="cookies/instagram.txt").ydl_options()
        assert opts["cookiefile"] == "cookies/instagram.txt"

    def test_extract_uses_ytdlp_info(self, monkeypatch):
        extractor = InstagramExtractor()
        monkeypatch.setattr(
            extractor,
            "_extract_info",
            lambda url: {"url": "https://cdn/x.mp4", "thumbnail": "https://cdn/x.jpg"},
        )
        items = asyncio.run(extractor.extract("https://www.instagram.com/p/ABC/"))
        assert items == [MediaItem("https://cdn/x.mp4", "https://cdn/x.jpg")]

    def test_ytdlp_failure(self, monkeypatch):
        def fail(url):
            raise DownloadError("ERROR: [Instagram] ABC: Requested content is not available")

        extractor = InstagramExtractor()
        monkeypatch.setattr(extractor, "_extract_info", fail)
        with pytest.raises(ExtractionError, match="Requested content is not available"):
            asyncio.run(extractor.extract("https://www.instagram.com/p/ABC/"))
