"""Frozen dataclasses for the Live Watcher domain model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Notification:
    """One mail message fetched from Gmail in raw format."""

    message_id: str
    arrival_timestamp: float
    raw: str
    revision: int


@dataclass(frozen=True)
class Envelope:
    """Decoded view of a notification."""

    subject: str
    html: str = ""


class Outcome(str, Enum):
    """Classification of a processed notification."""

    OK = "ok"
    STALE = "stale"
    NOT_LIVE = "not_live"
    PAYLOAD_ERROR = "payload_error"
    LINK_NOT_FOUND = "link_not_found"
    URL_ERROR = "url_error"
    EMPTY_IDENTIFIER = "empty_identifier"


@dataclass(frozen=True)
class DiscoveryResult:
    """Result of running one notification through the discovery pipeline."""

    message_id: str
    outcome: Outcome
    revision: int
    video_id: str = ""
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def is_stale(self) -> bool:
        return self.outcome is Outcome.STALE


@dataclass(frozen=True)
class BatchResult:
    """Aggregate of one batch: discovered video IDs plus the highest revision inspected."""

    video_ids: tuple[str, ...] = ()
    highest_revision: int = 0
    inspected: int = 0
    skipped: int = 0
    stopped_early: bool = False


class PollState(str, Enum):
    """Phase of the poll loop."""

    INITIAL = "initial"
    STEADY = "steady"


@dataclass
class PollProgress:
    """Mutable progress tracker for poll loop status reporting."""

    state: PollState = PollState.INITIAL
    watermark: int = 0
    cycles: int = 0
    notifications_inspected: int = 0
    videos_discovered: int = 0
    transport_errors: int = 0
