"""Centralized exception hierarchy for the portfolio-page package.

All domain-specific exceptions inherit from ``PortfolioError`` so the
loaders can catch the entire family at their boundary with a single
``except`` clause.
"""

from __future__ import annotations


class PortfolioError(Exception):
    """Base exception for all portfolio-page errors."""


# ---------------------------------------------------------------------------
# Fetch errors
# ---------------------------------------------------------------------------


class FetchError(PortfolioError):
    """Raised when a remote endpoint cannot be reached."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class UpstreamStatusError(FetchError):
    """Raised when a remote endpoint answers with a non-2xx status."""

    def __init__(self, status_code: int, url: str = "", reason: str = "") -> None:
        detail = f"{status_code} {reason}".strip()
        super().__init__(f"HTTP {detail}", url=url)
        self.status_code = status_code


class RecordNotFoundError(UpstreamStatusError):
    """Raised on a 404 for a researcher record."""


class AccessDeniedError(UpstreamStatusError):
    """Raised on a 401 or 403 for a researcher record."""


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------


class ParseError(PortfolioError):
    """Raised when a response body cannot be parsed."""


class NoWorkSummariesError(PortfolioError):
    """Raised when a record lists work groups but none carries a summary.

    The loader treats this as an empty result with its own message, not
    as a failure.
    """


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class NotConfiguredError(PortfolioError):
    """Raised when a required identifier is missing or still a placeholder."""
