"""Publication sources: ORCID strategies and the fallback loader."""

from __future__ import annotations

from portfolio_page.publications.activities import ActivitiesStrategy
from portfolio_page.publications.base import PublicationStrategy
from portfolio_page.publications.heuristic import HeuristicScrapeStrategy
from portfolio_page.publications.loader import (
    STRATEGIES,
    Attempt,
    PublicationLoader,
)
from portfolio_page.publications.public_record import PublicRecordStrategy
from portfolio_page.publications.structured import StructuredDataStrategy

__all__ = [
    "STRATEGIES",
    "ActivitiesStrategy",
    "Attempt",
    "HeuristicScrapeStrategy",
    "PublicRecordStrategy",
    "PublicationLoader",
    "PublicationStrategy",
    "StructuredDataStrategy",
]
