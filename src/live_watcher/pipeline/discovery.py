"""Discovery pipeline: time window → decode → scan → extract, per notification and per batch."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import timedelta

from live_watcher.core.decoder import NotificationDecoder
from live_watcher.core.exceptions import NotALiveNotification, PayloadError, UrlError
from live_watcher.core.extractor import VideoIdExtractor
from live_watcher.core.models import BatchResult, DiscoveryResult, Notification, Outcome
from live_watcher.core.scanner import LinkScanner

logger = logging.getLogger(__name__)

# Live archives stay up for at most 12 hours; one extra hour covers borderline mail.
DEFAULT_STALE_AFTER = timedelta(hours=13)


class DiscoveryPipeline:
    """Classifies notifications and collects the video IDs they announce.

    Every notification ends in exactly one :class:`Outcome`. Only ``STALE``
    affects the rest of a batch: with ``stop_on_stale`` (the default) it ends
    the batch, since a newest-first listing holds nothing younger after it.
    """

    def __init__(
        self,
        decoder: NotificationDecoder | None = None,
        scanner: LinkScanner | None = None,
        extractor: VideoIdExtractor | None = None,
        *,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        stop_on_stale: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._decoder = decoder or NotificationDecoder()
        self._scanner = scanner or LinkScanner()
        self._extractor = extractor or VideoIdExtractor()
        self._stale_after = stale_after.total_seconds()
        self._stop_on_stale = stop_on_stale
        self._clock = clock

    def process(self, notification: Notification, now: float | None = None) -> DiscoveryResult:
        """Run one notification through the pipeline.

        Args:
            notification: The fetched message.
            now: Reference epoch seconds for the time window (defaults to the clock).

        Returns:
            DiscoveryResult with the video ID on success, or the skip outcome.
        """
        if now is None:
            now = self._clock()

        def skip(outcome: Outcome, detail: str = "") -> DiscoveryResult:
            return DiscoveryResult(
                message_id=notification.message_id,
                outcome=outcome,
                revision=notification.revision,
                detail=detail,
            )

        age = now - notification.arrival_timestamp
        if age > self._stale_after:
            return skip(Outcome.STALE, f"arrived {age / 3600:.1f}h ago")

        try:
            envelope = self._decoder.decode(notification.raw)
        except NotALiveNotification as e:
            return skip(Outcome.NOT_LIVE, str(e))
        except PayloadError as e:
            return skip(Outcome.PAYLOAD_ERROR, str(e))

        link = self._scanner.find_watch_link(envelope.html)
        if link is None:
            return skip(Outcome.LINK_NOT_FOUND, "no matching anchor in HTML body")

        try:
            video_id = self._extractor.extract_video_id(link)
        except UrlError as e:
            return skip(Outcome.URL_ERROR, str(e))
        if not video_id:
            return skip(Outcome.EMPTY_IDENTIFIER, f"no video ID in {link}")

        return DiscoveryResult(
            message_id=notification.message_id,
            outcome=Outcome.OK,
            revision=notification.revision,
            video_id=video_id,
        )

    def process_batch(self, notifications: Iterable[Notification]) -> BatchResult:
        """Process notifications in listing order (newest first).

        Returns:
            BatchResult with the discovered video IDs in order and the highest
            revision among inspected notifications. The notification that
            triggered an early stop does not count as inspected.
        """
        now = self._clock()
        video_ids: list[str] = []
        highest = 0
        inspected = 0
        skipped = 0
        stopped_early = False

        for notification in notifications:
            result = self.process(notification, now=now)

            if result.is_stale and self._stop_on_stale:
                logger.info(
                    "Stopping batch at stale message %s (%s)",
                    result.message_id, result.detail,
                )
                stopped_early = True
                break

            inspected += 1
            highest = max(highest, result.revision)

            if result.ok:
                logger.info("Discovered video %s in message %s", result.video_id, result.message_id)
                video_ids.append(result.video_id)
                continue

            skipped += 1
            if result.outcome in (Outcome.NOT_LIVE, Outcome.STALE):
                logger.info("Skipped message %s: %s", result.message_id, result.outcome.value)
            else:
                logger.warning(
                    "Skipped message %s: %s (%s)",
                    result.message_id, result.outcome.value, result.detail,
                )

        return BatchResult(
            video_ids=tuple(video_ids),
            highest_revision=highest,
            inspected=inspected,
            skipped=skipped,
            stopped_early=stopped_early,
        )
