"""Custom exceptions for the Live Watcher."""


class LiveWatcherError(Exception):
    """Base exception for all Live Watcher errors."""


class AuthenticationError(LiveWatcherError):
    """Failed to authenticate with Gmail API."""


class LabelNotFoundError(LiveWatcherError):
    """The configured label does not exist in the mailbox."""


class TransportError(LiveWatcherError):
    """Gmail API unreachable or refused the request. Transient."""


class RateLimitError(TransportError):
    """Gmail API rate limit exceeded."""


class HistoryExpiredError(TransportError):
    """The start history id is too old for an incremental listing."""


class NotificationError(LiveWatcherError):
    """Base for failures tied to a single notification."""


class PayloadError(NotificationError):
    """Failed to decode the raw payload or parse its MIME content."""


class NotALiveNotification(NotificationError):
    """Subject does not carry the live-start marker."""


class UrlError(NotificationError):
    """Notification link or its wrapped destination is not a valid URL."""
