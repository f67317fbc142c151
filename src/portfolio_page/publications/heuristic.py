"""Best-effort scraping of work entries from rendered profile HTML.

The profile markup is not a stable interface. Selectors below cover
the test attributes the registry's front end has shipped with and a
handful of generic class names; expect this strategy to stop matching
whenever the page is redesigned.
"""

from __future__ import annotations

import re
from typing import ClassVar

import structlog
from bs4 import BeautifulSoup, Tag

from portfolio_page.models import PartialDate, Publication
from portfolio_page.publications.base import PublicationStrategy
from portfolio_page.publications.identifiers import (
    doi_url,
    find_doi,
    is_doi_url,
    normalize_url,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_DATE_RE = re.compile(r"\b(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?\b")
_AUTHOR_SPLIT_RE = re.compile(r"\s*(?:,|\band\b)\s*")

# Container selectors, most specific first
WORK_SELECTORS: tuple[str, ...] = (
    '[data-test="work"]',
    '[data-cy="work"]',
    "app-work-stack",
    "app-work",
    ".work-item",
    ".work",
    ".publication",
    "article.work",
    "li.work",
)

TITLE_SELECTORS: tuple[str, ...] = (
    '[data-test="work-title"]',
    '[data-cy="work-title"]',
    ".work-title",
    ".title",
    "h3",
    "h4",
)
AUTHOR_SELECTORS: tuple[str, ...] = (
    '[data-test="work-contributors"]',
    '[data-cy="work-contributors"]',
    ".contributors",
    ".authors",
    ".work-authors",
)
DATE_SELECTORS: tuple[str, ...] = (
    '[data-test="work-date"]',
    '[data-cy="work-date"]',
    ".publication-date",
    ".work-date",
    ".date",
    "time",
)
JOURNAL_SELECTORS: tuple[str, ...] = (
    '[data-test="work-journal"]',
    '[data-cy="work-journal"]',
    ".journal-title",
    ".journal",
    ".venue",
)


class HeuristicScrapeStrategy(PublicationStrategy):
    """Scrape work cards from the profile page's HTML."""

    name: ClassVar[str] = "html_scrape"
    accept: ClassVar[str] = "text/html"

    def url(self, orcid_id: str) -> str:
        return f"https://{self.settings.registry_host}/{orcid_id}"

    def parse(self, body: str) -> list[Publication]:
        return scrape_publications(body)


def scrape_publications(html: str) -> list[Publication]:
    """Extract publications using the first container selector that matches."""
    soup = BeautifulSoup(html or "", "html.parser")

    for selector in WORK_SELECTORS:
        containers = soup.select(selector)
        if containers:
            logger.debug(
                "html_scrape_matched", selector=selector, count=len(containers)
            )
            return [_scrape_work(container) for container in containers]

    logger.debug("html_scrape_no_match")
    return []


def _scrape_work(container: Tag) -> Publication:
    date_text = _select_text(container, DATE_SELECTORS)
    date_match = _DATE_RE.search(date_text)
    authors_text = _select_text(container, AUTHOR_SELECTORS)
    return Publication(
        title=_select_text(container, TITLE_SELECTORS),
        authors=_split_authors(authors_text),
        venue=_select_text(container, JOURNAL_SELECTORS),
        date=PartialDate.from_parts(*date_match.groups()) if date_match else None,
        link=_link(container),
    )


def _select_text(container: Tag, selectors: tuple[str, ...]) -> str:
    for selector in selectors:
        element = container.select_one(selector)
        if element is not None:
            text = element.get_text(" ", strip=True)
            if text:
                return " ".join(text.split())
    return ""


def _link(container: Tag) -> str:
    anchors = [
        str(anchor.get("href", "")) for anchor in container.select("a[href]")
    ]
    for href in anchors:
        if is_doi_url(href):
            return doi_url(href)
    doi = find_doi(container.get_text(" ", strip=True))
    if doi:
        return doi_url(doi)
    for href in anchors:
        if href.startswith(("http://", "https://")):
            return normalize_url(href)
    return ""


def _split_authors(text: str) -> list[str]:
    """Split an author line; semicolons win so ``Last, F.; Other, G.`` survives."""
    if ";" in text:
        names = text.split(";")
    else:
        names = _AUTHOR_SPLIT_RE.split(text)
    return [name.strip() for name in names if name.strip()]
