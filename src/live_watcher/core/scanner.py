"""HTML link scanner for notification bodies."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


class LinkScanner:
    """Find the first anchor whose href contains a marker substring."""

    def __init__(self, marker: str = "watch") -> None:
        self._marker = marker

    def find_watch_link(self, html: str) -> str | None:
        """Return the href of the first matching anchor in document order.

        Returns None when the markup is empty, unparseable, or has no match.
        """
        if not html:
            return None

        try:
            soup = BeautifulSoup(html, "html.parser")
        except Exception as e:
            logger.warning("HTML parsing failed: %s", e)
            return None

        anchor = soup.find("a", href=lambda href: bool(href) and self._marker in href)
        if anchor is None:
            return None
        return str(anchor["href"])
