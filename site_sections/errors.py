# File: site_sections/errors.py
"""site_sections.errors: crawler exception hierarchy.

Fatal for the whole run: :class:`SetupError`, :class:`ExportFailure`.
Absorbed per task: :class:`LinkRejected`, :class:`BlockedPage`,
:class:`FetchFailure`.
"""
from __future__ import annotations

from typing import Optional

__all__ = [
    "SiteSectionsError",
    "SetupError",
    "LinkRejected",
    "BlockedPage",
    "FetchFailure",
    "ExportFailure",
]


class SiteSectionsError(Exception):
    """Base class of every project error."""


class SetupError(SiteSectionsError):
    """Missing or invalid credentials, unreachable sink auth."""


class LinkRejected(SiteSectionsError):
    """Link is malformed or outside the crawl scope."""

    def __init__(self, link: str, reason: str) -> None:
        self.link = link
        self.reason = reason
        super().__init__(f"{reason}: {link}")


class BlockedPage(SiteSectionsError):
    """Raised when a fetched page looks like an anti-bot response."""

    def __init__(self, url: str, signature: str) -> None:
        self.url = url
        self.signature = signature
        super().__init__(f"Possible blocking page detected at {url} ({signature!r})")


class FetchFailure(SiteSectionsError):
    """Network or parse failure reported by a fetch backend after its retries."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        self.url = url
        self.status = status
        super().__init__(f"Failed {url}: {message}")


class ExportFailure(SiteSectionsError):
    """Writing the results to the sink failed."""
