"""GitHub repository listing for the portfolio page."""

from __future__ import annotations

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from portfolio_page.config import GitHubSettings
from portfolio_page.exceptions import (
    FetchError,
    ParseError,
    PortfolioError,
    UpstreamStatusError,
)
from portfolio_page.logging import loader_logging_context
from portfolio_page.models import (
    ListingStatus,
    Repository,
    RepositoryListing,
    sort_repositories,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

REPOSITORY_ERROR_MESSAGE = "Error loading repositories. Please try again later."

_REPOSITORY_LIST = TypeAdapter(list[Repository])


class RepositoryLoader:
    """Fetch one account's public repositories in a single request."""

    def __init__(
        self,
        settings: GitHubSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or GitHubSettings()
        self._client = client or httpx.AsyncClient(timeout=self._settings.timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def endpoint(self) -> str:
        return f"{self._settings.api_base}/users/{self._settings.account}/repos"

    async def fetch_repositories(self) -> list[Repository]:
        """Fetch and validate the listing, newest update first.

        Raises:
            FetchError: Network failure.
            UpstreamStatusError: Non-2xx response.
            ParseError: Body is not a JSON array of repository objects.
        """
        url = self.endpoint
        try:
            response = await self._client.get(
                url,
                headers={"Accept": "application/vnd.github+json"},
                params={"per_page": self._settings.per_page},
            )
        except httpx.HTTPError as exc:
            raise FetchError(str(exc) or type(exc).__name__, url=url) from exc

        if not response.is_success:
            raise UpstreamStatusError(
                response.status_code, url=url, reason=response.reason_phrase
            )

        try:
            repositories = _REPOSITORY_LIST.validate_json(response.content)
        except ValidationError as exc:
            msg = f"malformed repository listing: {exc.error_count()} error(s)"
            raise ParseError(msg) from exc

        return sort_repositories(repositories)

    async def load(self) -> RepositoryListing:
        """Fetch the listing and convert any failure into the static message."""
        with loader_logging_context(
            "repositories", account=self._settings.account
        ) as log:
            try:
                repositories = await self.fetch_repositories()
            except PortfolioError as exc:
                log.warning(
                    "repositories_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return RepositoryListing(
                    status=ListingStatus.FAILED, message=REPOSITORY_ERROR_MESSAGE
                )

            log.info("repositories_loaded", count=len(repositories))
            status = ListingStatus.LOADED if repositories else ListingStatus.EMPTY
            return RepositoryListing(status=status, repositories=repositories)
