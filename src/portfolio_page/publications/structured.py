"""Publication extraction from embedded JSON-LD (Schema.org) blocks.

Parses ``<script type="application/ld+json">`` blocks in a profile
page, keeps the entries whose ``@type`` describes an authored work,
and maps their Schema.org properties onto publication records.
"""

from __future__ import annotations

import json
import re
from typing import Any, ClassVar

import structlog

from portfolio_page.exceptions import ParseError
from portfolio_page.models import PartialDate, Publication
from portfolio_page.publications.base import PublicationStrategy
from portfolio_page.publications.identifiers import (
    doi_url,
    find_doi,
    is_doi_url,
    normalize_url,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_JSON_LD_RE = re.compile(
    r'<script\s+type\s*=\s*["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    re.DOTALL | re.IGNORECASE,
)


class StructuredDataStrategy(PublicationStrategy):
    """Read works from JSON-LD embedded in the profile page."""

    name: ClassVar[str] = "json_ld"
    accept: ClassVar[str] = "text/html"

    def url(self, orcid_id: str) -> str:
        return f"https://{self.settings.registry_host}/{orcid_id}"

    def parse(self, body: str) -> list[Publication]:
        return StructuredDataExtractor().extract(body)


class StructuredDataExtractor:
    """Extracts Schema.org work entries from JSON-LD script blocks.

    Entries are matched by ``@type`` against ``WORK_TYPES``; ``Person``,
    ``WebPage`` and other non-work entries are ignored, but their nested
    ``@graph``, ``mainEntity`` and work-list properties are searched.
    """

    WORK_TYPES: ClassVar[frozenset[str]] = frozenset(
        {
            "Article",
            "Book",
            "Chapter",
            "CreativeWork",
            "Dataset",
            "Report",
            "ScholarlyArticle",
            "Thesis",
            "PublicationIssue",
            "PublicationVolume",
            "Periodical",
            "SoftwareSourceCode",
            "Presentation",
        }
    )

    # Properties that hold lists of works on Person/ProfilePage entries
    NESTED_KEYS: ClassVar[tuple[str, ...]] = (
        "@graph",
        "mainEntity",
        "hasPart",
        "workExample",
        "subjectOf",
        "author_of",
        "itemListElement",
        "item",
    )

    TITLE_KEYS: ClassVar[tuple[str, ...]] = ("name", "headline", "title")
    AUTHOR_KEYS: ClassVar[tuple[str, ...]] = ("author", "contributor", "creator")
    DATE_KEYS: ClassVar[tuple[str, ...]] = ("datePublished", "dateCreated", "date")
    VENUE_KEYS: ClassVar[tuple[str, ...]] = ("isPartOf", "periodical", "publisher")

    def extract(self, html: str) -> list[Publication]:
        """Extract publications from HTML.

        Malformed blocks are skipped while at least one block parses.

        Raises:
            ParseError: Every JSON-LD block on the page is malformed.
        """
        if not html or not html.strip():
            return []

        blocks = _JSON_LD_RE.findall(html)
        documents: list[Any] = []
        malformed = 0
        for block in blocks:
            try:
                documents.append(json.loads(block.strip()))
            except (json.JSONDecodeError, ValueError):
                malformed += 1

        if blocks and malformed == len(blocks):
            msg = f"all {malformed} JSON-LD block(s) are malformed"
            raise ParseError(msg)
        if malformed:
            logger.warning("json_ld_blocks_skipped", malformed=malformed)

        entries: list[dict[str, Any]] = []
        for document in documents:
            self._collect_works(document, entries)

        publications = [self._to_publication(entry) for entry in entries]
        logger.debug(
            "json_ld_extracted", blocks=len(blocks), works=len(publications)
        )
        return publications

    def _collect_works(self, node: Any, out: list[dict[str, Any]]) -> None:
        if isinstance(node, list):
            for child in node:
                self._collect_works(child, out)
            return
        if not isinstance(node, dict):
            return

        if self._is_work(node):
            out.append(node)
            return

        for key in self.NESTED_KEYS:
            if key in node:
                self._collect_works(node[key], out)

    def _is_work(self, node: dict[str, Any]) -> bool:
        declared = node.get("@type", "")
        types = declared if isinstance(declared, list) else [declared]
        return any(
            isinstance(t, str) and _local_name(t) in self.WORK_TYPES
            for t in types
        )

    def _to_publication(self, entry: dict[str, Any]) -> Publication:
        return Publication(
            title=_first_text(entry, self.TITLE_KEYS),
            authors=self._authors(entry),
            venue=_first_text(entry, self.VENUE_KEYS),
            date=PartialDate.parse(_first_text(entry, self.DATE_KEYS)),
            link=self._link(entry),
        )

    def _authors(self, entry: dict[str, Any]) -> list[str]:
        for key in self.AUTHOR_KEYS:
            value = entry.get(key)
            if value is None:
                continue
            people = value if isinstance(value, list) else [value]
            names = [_simplify(person) for person in people]
            names = [name for name in names if name]
            if names:
                return names
        return []

    def _link(self, entry: dict[str, Any]) -> str:
        """DOI-derived URL first, then the entry's own URL."""
        identifiers = entry.get("identifier")
        candidates = identifiers if isinstance(identifiers, list) else [identifiers]
        for identifier in candidates:
            if isinstance(identifier, dict):
                property_id = str(identifier.get("propertyID", "")).lower()
                value = str(identifier.get("value", ""))
                if property_id == "doi" and value:
                    return doi_url(value)
                doi = find_doi(value)
            elif isinstance(identifier, str) and is_doi_url(identifier):
                return doi_url(identifier)
            else:
                doi = find_doi(str(identifier or ""))
            if doi:
                return doi_url(doi)

        same_as = entry.get("sameAs")
        for candidate in (entry.get("@id"), entry.get("url"), *_as_list(same_as)):
            if isinstance(candidate, str) and is_doi_url(candidate):
                return doi_url(candidate)

        for candidate in (entry.get("url"), *_as_list(same_as), entry.get("@id")):
            if isinstance(candidate, str) and candidate.strip():
                if candidate.startswith("_:"):
                    continue
                return normalize_url(candidate)
        return ""


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _simplify(value: Any) -> str:
    """Extract a display string from a nested JSON-LD value."""
    if isinstance(value, dict):
        for key in ("name", "@value", "value", "text"):
            if key in value:
                return _simplify(value[key])
        given = _simplify(value.get("givenName"))
        family = _simplify(value.get("familyName"))
        return " ".join(part for part in (given, family) if part)
    if isinstance(value, list):
        return _simplify(value[0]) if value else ""
    if value is None:
        return ""
    return " ".join(str(value).split())


def _first_text(entry: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        text = _simplify(entry.get(key))
        if text:
            return text
    return ""


def _local_name(schema_type: str) -> str:
    """``schema:Book`` and ``https://schema.org/Book`` both become ``Book``."""
    return schema_type.rsplit("/", 1)[-1].rsplit(":", 1)[-1]
