"""Video ID extraction from redirect-wrapped notification links."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from live_watcher.core.exceptions import UrlError


class VideoIdExtractor:
    """Unwrap a tracking link and read the video ID off the real destination.

    Notification links look like ``https://host/redirect?u=<encoded-url>``
    where the encoded URL is ``https://host2/watch?v=<video-id>``.
    """

    def __init__(self, redirect_param: str = "u", video_param: str = "v") -> None:
        self._redirect_param = redirect_param
        self._video_param = video_param

    def extract_video_id(self, raw_url: str) -> str:
        """Return the video ID, or "" if the destination carries none.

        Raises:
            UrlError: If the link or its wrapped destination is malformed.
        """
        target = self._query_value(raw_url, self._redirect_param)
        return self._query_value(target, self._video_param)

    @staticmethod
    def _query_value(url: str, param: str) -> str:
        try:
            parts = urlsplit(url)
            # Accessing port validates the netloc; urlsplit alone does not.
            _ = parts.port
        except ValueError as e:
            raise UrlError(f"Malformed URL {url!r}: {e}") from e
        values = parse_qs(parts.query).get(param)
        return values[0] if values else ""
