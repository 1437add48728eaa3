"""Unit tests for VideoIdExtractor."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import quote

import pytest

from live_watcher.core.exceptions import UrlError
from live_watcher.core.extractor import VideoIdExtractor


@pytest.fixture
def extractor() -> VideoIdExtractor:
    return VideoIdExtractor()


class TestExtractVideoId:
    """Tests for VideoIdExtractor.extract_video_id()."""

    def test_unwraps_redirect_link(self, extractor: VideoIdExtractor) -> None:
        inner = quote("https://host2/watch?v=ABC123", safe="")
        assert extractor.extract_video_id(f"https://host/redirect?u={inner}") == "ABC123"

    def test_notification_style_link(
        self, extractor: VideoIdExtractor, make_link: Callable[[str], str]
    ) -> None:
        assert extractor.extract_video_id(make_link("dQw4w9WgXcQ")) == "dQw4w9WgXcQ"

    def test_missing_redirect_param_yields_empty(self, extractor: VideoIdExtractor) -> None:
        assert extractor.extract_video_id("https://host/redirect?a=1") == ""

    def test_direct_watch_link_is_not_unwrapped(self, extractor: VideoIdExtractor) -> None:
        assert extractor.extract_video_id("https://host2/watch?v=ABC123") == ""

    def test_inner_url_without_video_param(self, extractor: VideoIdExtractor) -> None:
        inner = quote("https://host2/watch?list=PL1", safe="")
        assert extractor.extract_video_id(f"https://host/redirect?u={inner}") == ""

    def test_malformed_outer_url(self, extractor: VideoIdExtractor) -> None:
        with pytest.raises(UrlError):
            extractor.extract_video_id("https://[::1/redirect?u=x")

    def test_malformed_wrapped_url(self, extractor: VideoIdExtractor) -> None:
        inner = quote("https://host2:notaport/watch?v=ABC", safe="")
        with pytest.raises(UrlError):
            extractor.extract_video_id(f"https://host/redirect?u={inner}")

    def test_custom_param_names(self) -> None:
        extractor = VideoIdExtractor(redirect_param="q", video_param="id")
        inner = quote("https://host2/play?id=Z9", safe="")
        assert extractor.extract_video_id(f"https://host/r?q={inner}") == "Z9"
