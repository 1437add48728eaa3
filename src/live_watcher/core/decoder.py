"""Notification decoder: base64url transport decoding, MIME parsing, subject gate."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser

from live_watcher.core.exceptions import NotALiveNotification, PayloadError
from live_watcher.core.models import Envelope

logger = logging.getLogger(__name__)

DEFAULT_LIVE_MARKER = "ライブ配信中です"

_BASE64URL = re.compile(r"[A-Za-z0-9_-]*={0,2}")


class NotificationDecoder:
    """Turns a Gmail ``format=raw`` payload into an :class:`Envelope`.

    Only mail whose subject carries the live-start marker is accepted;
    everything else under the watched label is rejected with
    :class:`NotALiveNotification`, which callers treat as a normal skip.
    """

    def __init__(self, live_marker: str = DEFAULT_LIVE_MARKER) -> None:
        self._live_marker = live_marker
        self._parser = BytesParser(policy=policy.default)

    def decode(self, raw: str) -> Envelope:
        """Decode a raw payload into subject and HTML body.

        Args:
            raw: URL-safe base64 encoded RFC 822 message.

        Returns:
            Envelope with the decoded subject and HTML body ("" if none).

        Raises:
            PayloadError: If the payload is not base64url or not parseable MIME.
            NotALiveNotification: If the subject lacks the live-start marker.
        """
        message = self._parse(self._decode_transport(raw))

        subject = str(message.get("Subject", "") or "")
        logger.info("Inspecting subject: %s", subject)
        if self._live_marker not in subject:
            raise NotALiveNotification(f"Not a live notification: {subject!r}")

        return Envelope(subject=subject, html=self._extract_html(message))

    @staticmethod
    def _decode_transport(raw: str) -> bytes:
        # URL-safe alphabet only (RFC 4648 §5); Gmail omits the padding.
        if not _BASE64URL.fullmatch(raw):
            raise PayloadError("Payload is not valid base64url: unexpected characters")
        padded = raw.rstrip("=")
        padded += "=" * (-len(padded) % 4)
        try:
            data = base64.urlsafe_b64decode(padded)
        except (binascii.Error, ValueError) as e:
            raise PayloadError(f"Payload is not valid base64url: {e}") from e
        if not data:
            raise PayloadError("Payload is empty")
        return data

    def _parse(self, data: bytes) -> EmailMessage:
        try:
            return self._parser.parsebytes(data)
        except Exception as e:
            raise PayloadError(f"Failed to parse MIME envelope: {e}") from e

    @staticmethod
    def _extract_html(message: EmailMessage) -> str:
        """Resolve multipart structure to the preferred text/html part."""
        part = message.get_body(preferencelist=("html",))
        if part is None:
            return ""
        try:
            return part.get_content()
        except Exception as e:
            raise PayloadError(f"Failed to decode HTML body: {e}") from e
