"""Live Watcher - Discover live stream video IDs from Gmail notification mail."""

from live_watcher.core.models import (
    BatchResult,
    DiscoveryResult,
    Envelope,
    Notification,
    Outcome,
    PollProgress,
    PollState,
)
from live_watcher.pipeline.discovery import DiscoveryPipeline
from live_watcher.pipeline.poller import PollLoop

__all__ = [
    "BatchResult",
    "DiscoveryPipeline",
    "DiscoveryResult",
    "Envelope",
    "Notification",
    "Outcome",
    "PollLoop",
    "PollProgress",
    "PollState",
]
