"""Gmail API client: label lookup, full listing by label, and incremental history sync."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Iterator
from typing import Any

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from live_watcher.core.exceptions import (
    HistoryExpiredError,
    LabelNotFoundError,
    RateLimitError,
    TransportError,
)
from live_watcher.core.models import Notification

logger = logging.getLogger(__name__)

_RAW_FIELDS = "id,internalDate,historyId,raw"
_RATE_LIMIT_REASONS = frozenset({"rateLimitExceeded", "userRateLimitExceeded"})


def _http_status(exc: Exception) -> int | None:
    """Return the HTTP status carried by a googleapiclient error, if any."""
    if isinstance(exc, HttpError):
        return exc.status_code
    return None


def _is_rate_limit_error(exc: Exception) -> bool:
    """Check whether an exception represents a Gmail API rate limit.

    Gmail signals rate limiting with HTTP 429, or with HTTP 403 carrying a
    rateLimitExceeded / userRateLimitExceeded reason in the error details.
    """
    if not isinstance(exc, HttpError):
        return False
    if exc.status_code == 429:
        return True
    if exc.status_code != 403 or not isinstance(exc.error_details, list):
        return False
    return any(
        isinstance(detail, dict) and detail.get("reason") in _RATE_LIMIT_REASONS
        for detail in exc.error_details
    )


class GmailClient:
    """Read-only view of one Gmail mailbox as a source of notifications.

    Listings are newest first, following the Gmail API convention, and
    message bodies are fetched lazily so a consumer that stops iterating
    early also stops issuing requests.
    """

    def __init__(
        self,
        service: Resource,
        user_id: str = "me",
        *,
        max_results_per_page: int = 100,
        num_retries: int = 3,
    ) -> None:
        self._service = service
        self._user_id = user_id
        self._max_results = max_results_per_page
        self._num_retries = num_retries

    def _execute(self, request: Any, context: str, *, missing_ok: bool = False) -> Any:
        """Execute a single API request, mapping failures onto TransportError.

        Transient HTTP failures are retried inside googleapiclient up to
        ``num_retries`` times; anything left over is the caller's problem.

        Args:
            request: A googleapiclient HttpRequest object.
            context: Description for log and error messages (e.g. "list labels").
            missing_ok: Return None instead of raising on HTTP 404.

        Raises:
            RateLimitError: On HTTP 429, or 403 with a rate limit reason.
            TransportError: On any other failure.
        """
        try:
            return request.execute(num_retries=self._num_retries)
        except Exception as e:
            if missing_ok and _http_status(e) == 404:
                return None
            if _is_rate_limit_error(e):
                raise RateLimitError(f"Rate limited during {context}: {e}") from e
            raise TransportError(f"Failed to {context}: {e}") from e

    def list_labels(self) -> list[dict[str, str]]:
        """List all Gmail labels as dicts with 'id' and 'name' keys."""
        request = self._service.users().labels().list(userId=self._user_id)
        results = self._execute(request, "list labels")
        labels = results.get("labels", [])
        return [{"id": lbl["id"], "name": lbl["name"]} for lbl in labels]

    def resolve_label_id(self, label: str) -> str:
        """Resolve a label name (or ID) to its label ID.

        Raises:
            LabelNotFoundError: If no label matches by name or ID.
        """
        labels = self.list_labels()
        for lbl in labels:
            if lbl["name"] == label:
                return lbl["id"]
        for lbl in labels:
            if lbl["id"] == label:
                return lbl["id"]
        raise LabelNotFoundError(f"Label not found: {label}")

    def current_revision(self) -> int:
        """Return the mailbox's current history ID."""
        request = self._service.users().getProfile(userId=self._user_id)
        profile = self._execute(request, "get profile")
        return int(profile.get("historyId", 0))

    def list_by_label(self, label_id: str) -> Generator[Notification, None, None]:
        """Yield every message under a label, newest first.

        Raises:
            TransportError: On list or fetch failure, possibly mid-iteration.
        """
        page_token: str | None = None

        while True:
            kwargs: dict[str, Any] = {
                "userId": self._user_id,
                "labelIds": [label_id],
                "maxResults": self._max_results,
            }
            if page_token:
                kwargs["pageToken"] = page_token

            request = self._service.users().messages().list(**kwargs)
            response = self._execute(request, "list messages")

            messages = response.get("messages", [])
            logger.debug("Listed %d message IDs (page)", len(messages))
            yield from self._fetch_all((msg["id"], None) for msg in messages)

            page_token = response.get("nextPageToken")
            if not messages or not page_token:
                return

    def list_since(self, label_id: str, watermark: int) -> tuple[Iterator[Notification], int]:
        """List messages added under a label after the given history ID.

        Returns:
            A lazy newest-first iterator of notifications and the highest
            history ID observed (``watermark`` itself when nothing is new).

        Raises:
            HistoryExpiredError: If Gmail no longer holds history that old.
            TransportError: On any other failure.
        """
        added: dict[str, int] = {}
        highest = watermark
        page_token: str | None = None

        while True:
            kwargs: dict[str, Any] = {
                "userId": self._user_id,
                "startHistoryId": str(watermark),
                "labelId": label_id,
                "historyTypes": ["messageAdded"],
                "maxResults": self._max_results,
            }
            if page_token:
                kwargs["pageToken"] = page_token

            request = self._service.users().history().list(**kwargs)
            response = self._execute(request, "list history", missing_ok=True)
            if response is None:
                raise HistoryExpiredError(f"History ID {watermark} is no longer available")

            for record in response.get("history", []):
                record_id = int(record.get("id", 0))
                if record_id <= watermark:
                    continue
                highest = max(highest, record_id)
                for event in record.get("messagesAdded", []):
                    message_id = (event.get("message") or {}).get("id")
                    if message_id:
                        added[message_id] = max(added.get(message_id, 0), record_id)

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        newest_first = sorted(added.items(), key=lambda item: item[1], reverse=True)
        logger.debug(
            "History since %d: %d added message(s), highest=%d",
            watermark, len(newest_first), highest,
        )
        return self._fetch_all(newest_first), highest

    def fetch_notification(
        self, message_id: str, revision: int | None = None
    ) -> Notification | None:
        """Fetch one message in raw format. Returns None if it no longer exists.

        Args:
            message_id: Gmail message ID.
            revision: History ID of the record that added the message. When
                omitted the message's own historyId is used, which moves
                forward whenever the message is modified.
        """
        request = (
            self._service.users()
            .messages()
            .get(userId=self._user_id, id=message_id, format="raw", fields=_RAW_FIELDS)
        )
        response = self._execute(request, f"get message {message_id}", missing_ok=True)
        if response is None:
            logger.warning("Message %s disappeared before it could be fetched", message_id)
            return None

        return Notification(
            message_id=response.get("id", message_id),
            arrival_timestamp=int(response.get("internalDate", 0)) / 1000,
            raw=response.get("raw", ""),
            revision=revision if revision is not None else int(response.get("historyId", 0)),
        )

    def _fetch_all(
        self, refs: Iterable[tuple[str, int | None]]
    ) -> Generator[Notification, None, None]:
        for message_id, revision in refs:
            notification = self.fetch_notification(message_id, revision)
            if notification is not None:
                yield notification
