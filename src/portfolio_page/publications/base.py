"""Shared fetch logic for publication strategies.

Each strategy knows one endpoint and one body format. The base class
performs the GET, classifies the HTTP outcome into the exception
hierarchy, and hands the body to the strategy's pure ``parse`` method.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import httpx
import structlog

from portfolio_page.exceptions import (
    AccessDeniedError,
    FetchError,
    RecordNotFoundError,
    UpstreamStatusError,
)

if TYPE_CHECKING:
    from portfolio_page.config import OrcidSettings
    from portfolio_page.models import Publication

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class PublicationStrategy:
    """One way of turning an ORCID iD into publication records.

    Subclasses set ``name`` and ``accept`` and implement ``url`` and
    ``parse``. ``parse`` must raise ``ParseError`` for bodies it cannot
    read and return an empty list for readable bodies without works.
    """

    name: ClassVar[str] = ""
    accept: ClassVar[str] = "*/*"

    def __init__(self, settings: OrcidSettings) -> None:
        self.settings = settings

    def url(self, orcid_id: str) -> str:
        raise NotImplementedError

    def parse(self, body: str) -> list[Publication]:
        raise NotImplementedError

    async def fetch(
        self, client: httpx.AsyncClient, orcid_id: str
    ) -> list[Publication]:
        """Fetch the endpoint for ``orcid_id`` and parse the body.

        Raises:
            RecordNotFoundError: 404.
            AccessDeniedError: 401 or 403.
            UpstreamStatusError: Any other non-2xx status.
            FetchError: Network failure.
            ParseError: Unreadable body.
        """
        url = self.url(orcid_id)
        headers = {"Accept": self.accept, "User-Agent": self.settings.user_agent}
        try:
            response = await client.get(url, headers=headers, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise FetchError(str(exc) or type(exc).__name__, url=url) from exc

        raise_for_status(response, url)
        publications = self.parse(response.text)
        logger.debug(
            "publication_strategy_parsed",
            strategy=self.name,
            url=url,
            count=len(publications),
        )
        return publications


def raise_for_status(response: httpx.Response, url: str) -> None:
    """Map a non-2xx response onto the record-level error classes."""
    if response.is_success:
        return
    status = response.status_code
    reason = response.reason_phrase
    if status == 404:
        raise RecordNotFoundError(status, url=url, reason=reason)
    if status in (401, 403):
        raise AccessDeniedError(status, url=url, reason=reason)
    raise UpstreamStatusError(status, url=url, reason=reason)
