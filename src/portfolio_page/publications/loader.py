"""Publication loader: fold an ordered strategy chain into one listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
import structlog

from portfolio_page.config import OrcidSettings
from portfolio_page.exceptions import (
    AccessDeniedError,
    FetchError,
    NoWorkSummariesError,
    NotConfiguredError,
    ParseError,
    PortfolioError,
    RecordNotFoundError,
)
from portfolio_page.logging import loader_logging_context
from portfolio_page.models import ListingStatus, Publication, PublicationListing
from portfolio_page.publications.activities import ActivitiesStrategy
from portfolio_page.publications.heuristic import HeuristicScrapeStrategy
from portfolio_page.publications.public_record import PublicRecordStrategy
from portfolio_page.publications.structured import StructuredDataStrategy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from portfolio_page.publications.base import PublicationStrategy

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

STRATEGIES: dict[str, type[PublicationStrategy]] = {
    StructuredDataStrategy.name: StructuredDataStrategy,
    ActivitiesStrategy.name: ActivitiesStrategy,
    PublicRecordStrategy.name: PublicRecordStrategy,
    HeuristicScrapeStrategy.name: HeuristicScrapeStrategy,
}

NOT_CONFIGURED_MESSAGE = (
    "ORCID iD not configured. Please set your ORCID iD in the configuration."
)
EMPTY_MESSAGE = "No publications found in ORCID profile."
NO_SUMMARIES_MESSAGE = "No publication summaries found in ORCID profile."
NOT_FOUND_MESSAGE = "ORCID record not found. Please check the configured ORCID iD."
ACCESS_DENIED_MESSAGE = "Access to the ORCID record was denied."
PARSE_ERROR_MESSAGE = "Could not read publication data from ORCID."


@dataclass(slots=True)
class Attempt:
    """Result-or-failure of running one strategy."""

    strategy: str
    publications: list[Publication] = field(default_factory=list)
    error: PortfolioError | None = None
    empty_message: str = EMPTY_MESSAGE

    @property
    def succeeded(self) -> bool:
        return self.error is None


def error_message(exc: PortfolioError) -> str:
    """Reduce a loader failure to the single line shown on the page."""
    if isinstance(exc, NotConfiguredError):
        return NOT_CONFIGURED_MESSAGE
    if isinstance(exc, NoWorkSummariesError):
        return NO_SUMMARIES_MESSAGE
    if isinstance(exc, RecordNotFoundError):
        return NOT_FOUND_MESSAGE
    if isinstance(exc, AccessDeniedError):
        return ACCESS_DENIED_MESSAGE
    if isinstance(exc, ParseError):
        return PARSE_ERROR_MESSAGE
    if isinstance(exc, FetchError):
        return (
            f"Error loading publications: {exc}. "
            "Please check your ORCID iD or try again later."
        )
    return f"Error loading publications: {exc}."


def build_strategies(settings: OrcidSettings) -> list[PublicationStrategy]:
    """Instantiate the configured strategy chain in priority order."""
    return [STRATEGIES[name](settings) for name in settings.strategies]


class PublicationLoader:
    """Load a researcher's works through a primary and fallback strategy.

    Strategies run strictly one after another; the fallback only starts
    once the primary's outcome is known. The first attempt yielding at
    least one record wins. An attempt that succeeds with zero records is
    terminal when ``empty_result_policy`` is ``"stop"`` and falls through
    to the next strategy when it is ``"continue"``.
    """

    def __init__(
        self,
        settings: OrcidSettings | None = None,
        client: httpx.AsyncClient | None = None,
        strategies: Sequence[PublicationStrategy] | None = None,
    ) -> None:
        self._settings = settings or OrcidSettings()
        self._client = client or httpx.AsyncClient(timeout=self._settings.timeout)
        self._strategies = (
            list(strategies)
            if strategies is not None
            else build_strategies(self._settings)
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def strategy_names(self) -> list[str]:
        return [strategy.name for strategy in self._strategies]

    async def attempt(self, strategy: PublicationStrategy) -> Attempt:
        """Run one strategy, capturing its failure instead of raising.

        Anything outside the ``PortfolioError`` family raised while
        mapping a response is reported as a ``ParseError``, so malformed
        upstream data never escapes the loader.
        """
        error: PortfolioError
        try:
            publications = await strategy.fetch(self._client, self._settings.orcid_id)
        except NoWorkSummariesError as exc:
            logger.info(
                "publication_strategy_no_summaries",
                strategy=strategy.name,
                detail=str(exc),
            )
            return Attempt(
                strategy=strategy.name, empty_message=NO_SUMMARIES_MESSAGE
            )
        except PortfolioError as exc:
            error = exc
        except Exception as exc:
            error = ParseError(f"{strategy.name}: {type(exc).__name__}: {exc}")
            error.__cause__ = exc
        else:
            return Attempt(strategy=strategy.name, publications=publications)

        logger.warning(
            "publication_strategy_failed",
            strategy=strategy.name,
            error=str(error),
            error_type=type(error).__name__,
        )
        return Attempt(strategy=strategy.name, error=error)

    async def run_chain(self) -> list[Attempt]:
        """Fold the strategy list, stopping at the first decisive attempt."""
        attempts: list[Attempt] = []
        for strategy in self._strategies:
            outcome = await self.attempt(strategy)
            attempts.append(outcome)
            if outcome.succeeded and (
                outcome.publications or self._settings.empty_result_policy == "stop"
            ):
                break
        return attempts

    async def load(self) -> PublicationListing:
        """Produce the listing rendered in the publications section."""
        with loader_logging_context(
            "publications", orcid_id=self._settings.orcid_id
        ) as log:
            if not self._settings.is_configured:
                log.warning("publications_not_configured")
                return PublicationListing(
                    status=ListingStatus.NOT_CONFIGURED,
                    message=error_message(NotConfiguredError()),
                )

            attempts = await self.run_chain()
            listing = summarize_attempts(attempts)
            log.info(
                "publications_loaded",
                status=listing.status.value,
                source=listing.source,
                count=len(listing.publications),
                attempts=[a.strategy for a in attempts],
            )
            return listing


def summarize_attempts(attempts: list[Attempt]) -> PublicationListing:
    """Turn the attempt history into a listing.

    Records win; otherwise a successful empty parse beats any failure, so
    an empty profile never shows a network error. With only failures the
    last (most recent) error is reported.
    """
    for outcome in attempts:
        if outcome.succeeded and outcome.publications:
            return PublicationListing(
                status=ListingStatus.LOADED,
                publications=outcome.publications,
                source=outcome.strategy,
            )

    for outcome in attempts:
        if outcome.succeeded:
            return PublicationListing(
                status=ListingStatus.EMPTY,
                message=outcome.empty_message,
                source=outcome.strategy,
            )

    failures = [outcome.error for outcome in attempts if outcome.error is not None]
    if not failures:
        return PublicationListing(status=ListingStatus.EMPTY, message=EMPTY_MESSAGE)
    return PublicationListing(
        status=ListingStatus.FAILED, message=error_message(failures[-1])
    )
