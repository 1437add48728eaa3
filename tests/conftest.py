"""Shared fixtures for Live Watcher tests."""

from __future__ import annotations

import base64
from collections.abc import Callable
from email.message import EmailMessage
from urllib.parse import quote

import pytest

from live_watcher.core.models import Notification

LIVE_SUBJECT = "Example Channel さんがライブ配信中です"
NOW = 1_700_000_000.0


def wrapped_link(video_id: str) -> str:
    """A tracking link that wraps a watch URL in its ``u`` parameter."""
    inner = f"https://www.youtube.com/watch?v={video_id}&feature=em-lsp"
    return f"https://www.youtube.com/attribution_link?a=xyz&u={quote(inner, safe='')}"


def live_html(video_id: str) -> str:
    """Notification HTML with a channel link before the watch link."""
    return (
        "<html><body>"
        '<a href="https://www.youtube.com/channel/UC123">Example Channel</a>'
        f'<p>is live now</p><a href="{wrapped_link(video_id)}">Watch</a>'
        '<a href="https://www.youtube.com/account_notifications">Settings</a>'
        "</body></html>"
    )


@pytest.fixture
def now() -> float:
    """Fixed reference time in epoch seconds."""
    return NOW


@pytest.fixture
def make_raw() -> Callable[..., str]:
    """Factory building a Gmail-style base64url raw payload."""

    def _make(
        subject: str = LIVE_SUBJECT,
        html: str | None = None,
        plain: str = "Live now",
    ) -> str:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = "YouTube <noreply@youtube.com>"
        msg["To"] = "viewer@example.com"
        msg.set_content(plain)
        if html is not None:
            msg.add_alternative(html, subtype="html")
        return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii").rstrip("=")

    return _make


@pytest.fixture
def make_notification(make_raw: Callable[..., str]) -> Callable[..., Notification]:
    """Factory building a Notification aged relative to NOW."""

    def _make(
        message_id: str,
        *,
        age_hours: float = 1.0,
        revision: int = 100,
        video_id: str | None = "XYZ",
        subject: str = LIVE_SUBJECT,
        raw: str | None = None,
    ) -> Notification:
        if raw is None:
            html = live_html(video_id) if video_id is not None else "<p>no links</p>"
            raw = make_raw(subject=subject, html=html)
        return Notification(
            message_id=message_id,
            arrival_timestamp=NOW - age_hours * 3600,
            raw=raw,
            revision=revision,
        )

    return _make


@pytest.fixture
def make_link() -> Callable[[str], str]:
    """Factory building a redirect-wrapped watch link for a video ID."""
    return wrapped_link


@pytest.fixture
def make_html() -> Callable[[str], str]:
    """Factory building live notification HTML for a video ID."""
    return live_html
