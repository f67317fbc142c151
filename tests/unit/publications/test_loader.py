"""Unit tests for portfolio_page.publications.loader - strategy chain."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import httpx
import pytest
import respx

from portfolio_page.config import OrcidSettings
from portfolio_page.exceptions import (
    AccessDeniedError,
    FetchError,
    NoWorkSummariesError,
    NotConfiguredError,
    ParseError,
    RecordNotFoundError,
)
from portfolio_page.models import ListingStatus, Publication
from portfolio_page.publications.base import PublicationStrategy
from portfolio_page.publications.loader import (
    ACCESS_DENIED_MESSAGE,
    EMPTY_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    NO_SUMMARIES_MESSAGE,
    NOT_FOUND_MESSAGE,
    PARSE_ERROR_MESSAGE,
    Attempt,
    PublicationLoader,
    build_strategies,
    error_message,
    summarize_attempts,
)

if TYPE_CHECKING:
    from collections.abc import Callable

ORCID_ID = "0000-0002-1825-0097"
ACTIVITIES_URL = f"https://pub.orcid.org/v3.0/{ORCID_ID}/activities"
RECORD_URL = f"https://orcid.org/{ORCID_ID}/public-record.xml"
PROFILE_URL = f"https://orcid.org/{ORCID_ID}"


class _StubStrategy(PublicationStrategy):
    """Strategy whose fetch is scripted; records every call."""

    name: ClassVar[str] = "stub"

    def __init__(
        self,
        settings: OrcidSettings,
        behaviour: Callable[[], list[Publication]],
        label: str,
        calls: list[str],
    ) -> None:
        super().__init__(settings)
        self._behaviour = behaviour
        self._label = label
        self._calls = calls

    async def fetch(
        self, client: httpx.AsyncClient, orcid_id: str
    ) -> list[Publication]:
        self._calls.append(self._label)
        return self._behaviour()


def _raise(exc: Exception) -> Callable[[], list[Publication]]:
    def behaviour() -> list[Publication]:
        raise exc

    return behaviour


def _returns(*titles: str) -> Callable[[], list[Publication]]:
    return lambda: [Publication(title=title) for title in titles]


def _loader(
    settings: OrcidSettings, *behaviours: Callable[[], list[Publication]]
) -> tuple[PublicationLoader, list[str]]:
    calls: list[str] = []
    strategies = [
        _StubStrategy(settings, behaviour, f"s{index}", calls)
        for index, behaviour in enumerate(behaviours)
    ]
    loader = PublicationLoader(
        settings, client=httpx.AsyncClient(), strategies=strategies
    )
    return loader, calls


# ---- Chain folding -----------------------------------------------------------


class TestRunChain:
    """Short-circuit on first success, one fallback at most."""

    @pytest.mark.asyncio()
    async def test_primary_success_skips_fallback(
        self, orcid_settings: OrcidSettings
    ) -> None:
        loader, calls = _loader(orcid_settings, _returns("A"), _returns("B"))
        listing = await loader.load()
        await loader.aclose()

        assert calls == ["s0"]
        assert listing.status == ListingStatus.LOADED
        assert [p.title for p in listing.publications] == ["A"]

    @pytest.mark.asyncio()
    async def test_fallback_after_failure(self, orcid_settings: OrcidSettings) -> None:
        loader, calls = _loader(
            orcid_settings, _raise(FetchError("down")), _returns("B")
        )
        listing = await loader.load()
        await loader.aclose()

        assert calls == ["s0", "s1"]
        assert listing.status == ListingStatus.LOADED
        assert [p.title for p in listing.publications] == ["B"]

    @pytest.mark.asyncio()
    async def test_empty_continues_by_default(
        self, orcid_settings: OrcidSettings
    ) -> None:
        loader, calls = _loader(orcid_settings, _returns(), _returns("B"))
        listing = await loader.load()
        await loader.aclose()

        assert calls == ["s0", "s1"]
        assert listing.status == ListingStatus.LOADED

    @pytest.mark.asyncio()
    async def test_empty_is_terminal_with_stop_policy(self) -> None:
        settings = OrcidSettings(orcid_id=ORCID_ID, empty_result_policy="stop")
        loader, calls = _loader(settings, _returns(), _returns("B"))
        listing = await loader.load()
        await loader.aclose()

        assert calls == ["s0"]
        assert listing.status == ListingStatus.EMPTY
        assert listing.message == EMPTY_MESSAGE

    @pytest.mark.asyncio()
    async def test_empty_then_failure_reports_empty(
        self, orcid_settings: OrcidSettings
    ) -> None:
        loader, _ = _loader(
            orcid_settings, _returns(), _raise(FetchError("down"))
        )
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.EMPTY
        assert listing.message == EMPTY_MESSAGE

    @pytest.mark.asyncio()
    async def test_all_failures_report_last_error(
        self, orcid_settings: OrcidSettings
    ) -> None:
        loader, _ = _loader(
            orcid_settings,
            _raise(ParseError("bad json")),
            _raise(RecordNotFoundError(404)),
        )
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.FAILED
        assert listing.message == NOT_FOUND_MESSAGE
        assert listing.publications == []

    @pytest.mark.asyncio()
    async def test_not_configured_skips_network(self) -> None:
        settings = OrcidSettings(orcid_id="YOUR-ORCID-ID")
        loader, calls = _loader(settings, _returns("A"))
        listing = await loader.load()
        await loader.aclose()

        assert calls == []
        assert listing.status == ListingStatus.NOT_CONFIGURED
        assert listing.message == NOT_CONFIGURED_MESSAGE

    @pytest.mark.asyncio()
    async def test_unexpected_exception_reported_as_parse_failure(
        self, orcid_settings: OrcidSettings
    ) -> None:
        loader, _ = _loader(orcid_settings, _raise(TypeError("list is not a str")))
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.FAILED
        assert listing.message == PARSE_ERROR_MESSAGE

    @pytest.mark.asyncio()
    async def test_unexpected_exception_still_falls_through(
        self, orcid_settings: OrcidSettings
    ) -> None:
        loader, calls = _loader(
            orcid_settings, _raise(ValueError("bad digit")), _returns("B")
        )
        listing = await loader.load()
        await loader.aclose()

        assert calls == ["s0", "s1"]
        assert listing.status == ListingStatus.LOADED
        assert listing.source == "stub"

    @pytest.mark.asyncio()
    async def test_wrapped_exception_keeps_its_cause(
        self, orcid_settings: OrcidSettings
    ) -> None:
        original = KeyError("given")
        strategy = _StubStrategy(orcid_settings, _raise(original), "s0", [])
        loader = PublicationLoader(
            orcid_settings, client=httpx.AsyncClient(), strategies=[strategy]
        )
        outcome = await loader.attempt(strategy)
        await loader.aclose()

        assert isinstance(outcome.error, ParseError)
        assert outcome.error.__cause__ is original


# ---- Messages ----------------------------------------------------------------


class TestErrorMessage:
    """Each failure class maps to one user-facing line."""

    def test_not_found(self) -> None:
        assert error_message(RecordNotFoundError(404)) == NOT_FOUND_MESSAGE

    @pytest.mark.parametrize("status", [401, 403])
    def test_access_denied(self, status: int) -> None:
        assert error_message(AccessDeniedError(status)) == ACCESS_DENIED_MESSAGE

    def test_parse_error(self) -> None:
        assert error_message(ParseError("x")) == PARSE_ERROR_MESSAGE

    def test_not_configured(self) -> None:
        assert error_message(NotConfiguredError()) == NOT_CONFIGURED_MESSAGE

    def test_groups_without_summaries(self) -> None:
        message = error_message(NoWorkSummariesError("2 work group(s)"))
        assert message == NO_SUMMARIES_MESSAGE
        assert message != EMPTY_MESSAGE

    def test_network_error_includes_detail(self) -> None:
        message = error_message(FetchError("connection refused"))
        assert message.startswith("Error loading publications: connection refused")
        assert message != EMPTY_MESSAGE


class TestSummarizeAttempts:
    def test_no_attempts_is_empty(self) -> None:
        assert summarize_attempts([]).status == ListingStatus.EMPTY

    def test_records_win_over_earlier_empty(self) -> None:
        attempts = [
            Attempt(strategy="a"),
            Attempt(strategy="b", publications=[Publication(title="T")]),
        ]
        listing = summarize_attempts(attempts)
        assert listing.status == ListingStatus.LOADED
        assert listing.source == "b"


def test_build_strategies_follows_configured_order() -> None:
    settings = OrcidSettings(strategies=["public_record", "json_ld"])
    assert [s.name for s in build_strategies(settings)] == ["public_record", "json_ld"]


# ---- HTTP integration with real strategies -----------------------------------


class TestHttpChain:
    """Real strategies against mocked ORCID endpoints."""

    @pytest.mark.asyncio()
    @respx.mock
    async def test_activities_success(
        self, orcid_settings: OrcidSettings, activities_payload: dict[str, Any]
    ) -> None:
        activities = respx.get(ACTIVITIES_URL).mock(
            return_value=httpx.Response(200, json=activities_payload)
        )
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.LOADED
        assert listing.source == "activities"
        assert len(listing.publications) == 2
        request = activities.calls.last.request
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio()
    @respx.mock
    async def test_falls_back_to_public_record(
        self, orcid_settings: OrcidSettings, public_record_xml: str
    ) -> None:
        respx.get(ACTIVITIES_URL).mock(return_value=httpx.Response(503))
        record = respx.get(RECORD_URL).mock(
            return_value=httpx.Response(200, text=public_record_xml)
        )
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.source == "public_record"
        assert [p.title for p in listing.publications] == ["Signals in Noise"]
        assert record.calls.last.request.headers["Accept"] == "application/xml"

    @pytest.mark.asyncio()
    @respx.mock
    async def test_not_found_everywhere(self, orcid_settings: OrcidSettings) -> None:
        respx.get(ACTIVITIES_URL).mock(return_value=httpx.Response(404))
        respx.get(RECORD_URL).mock(return_value=httpx.Response(404))
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.FAILED
        assert listing.message == NOT_FOUND_MESSAGE

    @pytest.mark.asyncio()
    @respx.mock
    async def test_access_denied_then_malformed_xml(
        self, orcid_settings: OrcidSettings
    ) -> None:
        respx.get(ACTIVITIES_URL).mock(return_value=httpx.Response(403))
        respx.get(RECORD_URL).mock(return_value=httpx.Response(200, text="<record"))
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.FAILED
        assert listing.message == PARSE_ERROR_MESSAGE

    @pytest.mark.asyncio()
    @respx.mock
    async def test_empty_profile_message_differs_from_network_error(
        self, orcid_settings: OrcidSettings
    ) -> None:
        respx.get(ACTIVITIES_URL).mock(
            return_value=httpx.Response(200, json={"activities:works": {"group": []}})
        )
        respx.get(RECORD_URL).mock(side_effect=httpx.ConnectError("unreachable"))
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.EMPTY
        assert listing.message == "No publications found in ORCID profile."

    @pytest.mark.asyncio()
    @respx.mock
    async def test_groups_without_summaries_have_their_own_message(
        self, orcid_settings: OrcidSettings
    ) -> None:
        respx.get(ACTIVITIES_URL).mock(
            return_value=httpx.Response(
                200, json={"activities:works": {"group": [{"work-summary": []}]}}
            )
        )
        respx.get(RECORD_URL).mock(side_effect=httpx.ConnectError("unreachable"))
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.EMPTY
        assert listing.message == "No publication summaries found in ORCID profile."

    @pytest.mark.asyncio()
    @respx.mock
    async def test_malformed_credit_name_does_not_abort_chain(
        self, orcid_settings: OrcidSettings
    ) -> None:
        payload = {
            "activities:works": {
                "group": [
                    {
                        "work-summary": [
                            {
                                "title": {"title": {"value": "Odd Contributors"}},
                                "contributors": {
                                    "contributor": [
                                        {"credit-name": {"value": {"nested": 1}}}
                                    ]
                                },
                            }
                        ]
                    }
                ]
            }
        }
        respx.get(ACTIVITIES_URL).mock(
            return_value=httpx.Response(200, json=payload)
        )
        loader = PublicationLoader(orcid_settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.status == ListingStatus.LOADED
        assert listing.publications[0].title == "Odd Contributors"
        assert listing.publications[0].authors == ["Unknown Author"]

    @pytest.mark.asyncio()
    @respx.mock
    async def test_json_ld_and_scrape_chain(
        self, json_ld_html: str
    ) -> None:
        settings = OrcidSettings(
            orcid_id=ORCID_ID, strategies=["json_ld", "html_scrape"]
        )
        profile = respx.get(PROFILE_URL).mock(
            return_value=httpx.Response(200, text=json_ld_html)
        )
        loader = PublicationLoader(settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.source == "json_ld"
        assert profile.call_count == 1
        assert len(listing.publications) == 2

    @pytest.mark.asyncio()
    @respx.mock
    async def test_scrape_fallback_when_no_json_ld(self, profile_html: str) -> None:
        settings = OrcidSettings(
            orcid_id=ORCID_ID, strategies=["json_ld", "html_scrape"]
        )
        profile = respx.get(PROFILE_URL).mock(
            return_value=httpx.Response(200, text=profile_html)
        )
        loader = PublicationLoader(settings)
        listing = await loader.load()
        await loader.aclose()

        assert listing.source == "html_scrape"
        assert profile.call_count == 2
        assert listing.publications[0].title == "Cellular Automata at Scale"
