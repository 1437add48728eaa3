"""Poll loop: bootstrap full scan, then fixed-interval incremental scans by history ID."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from live_watcher.core.exceptions import HistoryExpiredError, TransportError
from live_watcher.core.gmail_client import GmailClient
from live_watcher.core.models import BatchResult, Notification, PollProgress, PollState
from live_watcher.pipeline.discovery import DiscoveryPipeline

logger = logging.getLogger(__name__)


class PollLoop:
    """Drives discovery forever for one label.

    State INITIAL - Bootstrap: snapshot history ID → list the whole label → process → seed watermark
    State STEADY  - Every tick: list history since watermark → process → advance watermark

    The watermark is owned here and only moves forward, between batches.
    Transport failures never end the loop; the failed phase is retried on
    the next opportunity.
    """

    def __init__(
        self,
        client: GmailClient,
        pipeline: DiscoveryPipeline,
        label_id: str,
        *,
        consumer: Callable[[list[str]], None],
        poll_interval_seconds: float = 60.0,
        bootstrap_retry_delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Callable[[PollProgress], None] | None = None,
    ) -> None:
        self._client = client
        self._pipeline = pipeline
        self._label_id = label_id
        self._consumer = consumer
        self._interval = poll_interval_seconds
        self._bootstrap_delay = bootstrap_retry_delay_seconds
        self._sleep = sleep
        self._on_progress = on_progress

        self._state = PollState.INITIAL
        self._watermark = 0
        self._progress = PollProgress()

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def watermark(self) -> int:
        return self._watermark

    @property
    def progress(self) -> PollProgress:
        return self._progress

    def run(self, max_cycles: int | None = None) -> PollProgress:
        """Run bootstrap then steady polling.

        Args:
            max_cycles: Stop after this many cycles. None means run forever.

        Returns:
            PollProgress with final counts (only reached when max_cycles is set).
        """
        logger.info(
            "Watching label %s (interval=%.0fs)", self._label_id, self._interval
        )
        cycles = 0

        while max_cycles is None or cycles < max_cycles:
            if cycles:
                delay = self._bootstrap_delay if self._state is PollState.INITIAL else self._interval
                if delay > 0:
                    self._sleep(delay)

            self.run_cycle()
            cycles += 1

        return self._progress

    def run_cycle(self) -> bool:
        """Run one cycle of whichever phase is current. Returns True on success."""
        if self._state is PollState.INITIAL:
            ok = self.bootstrap()
        else:
            ok = self.poll_once()

        self._progress.cycles += 1
        self._notify()
        return ok

    def bootstrap(self) -> bool:
        """Full scan of the label; seeds the watermark and switches to STEADY.

        Returns False (state unchanged) on a transport failure.
        """
        try:
            # Snapshot first: anything added later shows up in history after it.
            snapshot = self._client.current_revision()
            batch = self._process(self._client.list_by_label(self._label_id))
        except TransportError as e:
            self._record_transport_error("bootstrap", e)
            return False

        revision = snapshot
        if batch.highest_revision:
            revision = min(batch.highest_revision, snapshot)

        self._emit(batch)
        self._advance_watermark(revision)
        self._state = PollState.STEADY
        self._progress.state = self._state
        logger.info(
            "Bootstrap complete: %d video(s), %d message(s) inspected, watermark=%d",
            len(batch.video_ids), batch.inspected, self._watermark,
        )
        return True

    def poll_once(self) -> bool:
        """Incremental scan since the watermark.

        Returns False on a transport failure; the watermark is left as is.
        An expired history ID sends the loop back to bootstrap.
        """
        try:
            notifications, observed = self._client.list_since(self._label_id, self._watermark)
            batch = self._process(notifications)
        except HistoryExpiredError as e:
            self._record_transport_error("incremental sync", e)
            logger.warning("Watermark %d expired, re-running bootstrap", self._watermark)
            self._state = PollState.INITIAL
            self._progress.state = self._state
            return False
        except TransportError as e:
            self._record_transport_error("incremental sync", e)
            return False

        self._emit(batch)
        if batch.inspected:
            self._advance_watermark(min(batch.highest_revision, observed))
        return True

    def _process(self, notifications: Iterable[Notification]) -> BatchResult:
        batch = self._pipeline.process_batch(notifications)
        self._progress.notifications_inspected += batch.inspected
        return batch

    def _emit(self, batch: BatchResult) -> None:
        if not batch.video_ids:
            return
        self._progress.videos_discovered += len(batch.video_ids)
        self._consumer(list(batch.video_ids))

    def _advance_watermark(self, revision: int) -> None:
        if revision <= self._watermark:
            return
        logger.info("Watermark advanced %d -> %d", self._watermark, revision)
        self._watermark = revision
        self._progress.watermark = revision

    def _record_transport_error(self, phase: str, exc: Exception) -> None:
        self._progress.transport_errors += 1
        logger.error("Transport failure during %s: %s", phase, exc)

    def _notify(self) -> None:
        """Send progress update to callback if registered."""
        if self._on_progress:
            self._on_progress(self._progress)
