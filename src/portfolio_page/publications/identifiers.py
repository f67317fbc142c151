"""External identifier handling: pick the link a publication card points at."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

DOI_RESOLVER = "https://doi.org/"

_DOI_PREFIX_RE = re.compile(
    r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE
)
_DOI_IN_TEXT_RE = re.compile(r"\b(10\.\d{4,9}/\S+)", re.IGNORECASE)
_DOI_RESOLVER_RE = re.compile(r"^https?://(?:dx\.)?doi\.org/\S+$", re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class ExternalId:
    """A typed reference such as a DOI or URL."""

    id_type: str
    value: str
    url: str = ""

    @property
    def is_doi(self) -> bool:
        return self.id_type.strip().lower() == "doi"

    @property
    def is_url(self) -> bool:
        return self.id_type.strip().lower() in {"url", "uri"}


def doi_url(doi: str) -> str:
    """Convert a bare or prefixed DOI into a resolver URL."""
    bare = _DOI_PREFIX_RE.sub("", doi.strip())
    return f"{DOI_RESOLVER}{bare}"


def normalize_url(url: str) -> str:
    """Prefix scheme-less URLs with ``https://``."""
    url = url.strip()
    if not url:
        return ""
    if url.lower().startswith("http"):
        return url
    return f"https://{url}"


def is_doi_url(url: str) -> bool:
    """True for a ``doi.org`` resolver URL, whatever the DOI's registrant code."""
    return bool(_DOI_RESOLVER_RE.match(url.strip()))


def find_doi(text: str) -> str:
    """Return the first DOI embedded in arbitrary text, or ``""``."""
    match = _DOI_IN_TEXT_RE.search(text or "")
    return match.group(1).rstrip(".,;)") if match else ""


def select_link(identifiers: Iterable[ExternalId]) -> str:
    """Choose the outbound link for a publication.

    A DOI always wins and resolves through ``https://doi.org/``. Without
    one, the first URL identifier is used.
    """
    fallback = ""
    for identifier in identifiers:
        if identifier.is_doi and identifier.value.strip():
            return doi_url(identifier.value)
        if identifier.is_url and not fallback:
            fallback = normalize_url(identifier.value or identifier.url)
    return fallback
