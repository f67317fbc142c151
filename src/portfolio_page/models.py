"""View models for repository and publication listings.

These are read-only projections built on every run and handed straight
to the renderer; nothing here is persisted.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNTITLED_WORK = "Untitled Work"
UNKNOWN_AUTHOR = "Unknown Author"
NO_DESCRIPTION = "No description provided"
NO_LANGUAGE = "Not specified"

_ISO_DATE_RE = re.compile(r"^\s*(\d{4})(?:-(\d{1,2})(?:-(\d{1,2}))?)?")


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class Repository(BaseModel):
    """One entry of the repository-listing endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    description: str | None = None
    stars: int = Field(default=0, ge=0, alias="stargazers_count")
    forks: int = Field(default=0, ge=0, alias="forks_count")
    updated_at: datetime
    language: str | None = None
    html_url: str

    @property
    def display_description(self) -> str:
        return self.description or NO_DESCRIPTION

    @property
    def display_language(self) -> str:
        return self.language or NO_LANGUAGE


def sort_repositories(repositories: list[Repository]) -> list[Repository]:
    """Return repositories ordered by last update, newest first."""
    return sorted(repositories, key=lambda repo: repo.updated_at, reverse=True)


# ---------------------------------------------------------------------------
# Publications
# ---------------------------------------------------------------------------


class PartialDate(BaseModel):
    """Publication date where month and day may be unknown.

    A day is only meaningful alongside a month; ``format`` drops a
    dangling day rather than rendering ``YYYY--DD``.
    """

    model_config = ConfigDict(frozen=True)

    year: int = Field(ge=1, le=9999)
    month: int | None = Field(default=None, ge=1, le=12)
    day: int | None = Field(default=None, ge=1, le=31)

    def format(self, separator: str = "-") -> str:
        parts = [f"{self.year:04d}"]
        if self.month is not None:
            parts.append(f"{self.month:02d}")
            if self.day is not None:
                parts.append(f"{self.day:02d}")
        return separator.join(parts)

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def from_parts(
        cls, year: Any, month: Any = None, day: Any = None
    ) -> PartialDate | None:
        """Build a date from loosely-typed parts (strings, ints or None).

        Returns ``None`` when the year is missing or not numeric. Month or
        day values that are out of range are discarded individually.
        """
        year_int = _to_int(year)
        if year_int is None or not 1 <= year_int <= 9999:
            return None
        month_int = _to_int(month)
        if month_int is not None and not 1 <= month_int <= 12:
            month_int = None
        day_int = _to_int(day) if month_int is not None else None
        if day_int is not None and not 1 <= day_int <= 31:
            day_int = None
        return cls(year=year_int, month=month_int, day=day_int)

    @classmethod
    def parse(cls, text: str | None) -> PartialDate | None:
        """Parse ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD`` (with optional time)."""
        if not text:
            return None
        match = _ISO_DATE_RE.match(str(text))
        if not match:
            return None
        return cls.from_parts(*match.groups())


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    # str.isdigit accepts superscripts and other non-decimal digits
    return int(text) if text.isascii() and text.isdigit() else None


class Publication(BaseModel):
    """A single work attributed to the profiled researcher."""

    model_config = ConfigDict(frozen=True)

    title: str = UNTITLED_WORK
    authors: list[str] = Field(default_factory=list)
    venue: str = ""
    date: PartialDate | None = None
    link: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> str:
        if value is None:
            return UNTITLED_WORK
        text = " ".join(str(value).split())
        return text or UNTITLED_WORK

    @field_validator("venue", "link", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @property
    def date_text(self) -> str:
        return self.date.format() if self.date else ""


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class ListingStatus(StrEnum):
    """Outcome of a loader run."""

    LOADED = "loaded"
    EMPTY = "empty"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"


class RepositoryListing(BaseModel):
    """What the repository loader hands to the renderer."""

    status: ListingStatus
    repositories: list[Repository] = Field(default_factory=list)
    message: str = ""


class PublicationListing(BaseModel):
    """What the publication loader hands to the renderer."""

    status: ListingStatus
    publications: list[Publication] = Field(default_factory=list)
    message: str = ""
    source: str = Field(
        default="", description="Strategy that produced the publications."
    )
