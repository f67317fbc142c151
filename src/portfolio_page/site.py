"""Site build: run both loaders concurrently, render and write the page."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from portfolio_page.publications.loader import PublicationLoader
from portfolio_page.render import render_page
from portfolio_page.repositories import RepositoryLoader

if TYPE_CHECKING:
    from pathlib import Path

    from portfolio_page.config import Settings
    from portfolio_page.models import PublicationListing, RepositoryListing

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(slots=True)
class BuildResult:
    """Listings produced by one build, plus where the page was written."""

    repositories: RepositoryListing
    publications: PublicationListing
    html: str
    output_path: Path | None = None


async def load_repositories(settings: Settings) -> RepositoryListing:
    loader = RepositoryLoader(settings.github)
    try:
        return await loader.load()
    finally:
        await loader.aclose()


async def load_publications(settings: Settings) -> PublicationListing:
    loader = PublicationLoader(settings.orcid)
    try:
        return await loader.load()
    finally:
        await loader.aclose()


async def gather_listings(
    settings: Settings,
) -> tuple[RepositoryListing, PublicationListing]:
    """Run both loaders as independent tasks and wait for both.

    Each loader owns its HTTP client and never raises, so one section
    failing leaves the other untouched.
    """
    repositories_task = asyncio.create_task(load_repositories(settings))
    publications_task = asyncio.create_task(load_publications(settings))
    repositories, publications = await asyncio.gather(
        repositories_task, publications_task
    )
    return repositories, publications


async def build_site(
    settings: Settings,
    output_path: Path | None = None,
    generated_at: datetime | None = None,
) -> BuildResult:
    """Load both listings, render the page and write it to disk.

    Args:
        settings: Resolved application settings.
        output_path: Destination file; defaults to ``settings.output.path``.
        generated_at: Footer timestamp (defaults to UTC now).

    Returns:
        A ``BuildResult`` with both listings and the written path.
    """
    repositories, publications = await gather_listings(settings)
    page = render_page(
        repositories,
        publications,
        title=settings.output.title,
        generated_at=generated_at or datetime.now(tz=UTC),
    )

    path = output_path or settings.output.path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(page, encoding="utf-8")
    logger.info(
        "site_written",
        path=str(path),
        repositories=repositories.status.value,
        publications=publications.status.value,
    )
    return BuildResult(
        repositories=repositories,
        publications=publications,
        html=page,
        output_path=path,
    )
