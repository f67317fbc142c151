"""ORCID public API v3.0 ``/activities`` summary parsing."""

from __future__ import annotations

import json
from typing import Any, ClassVar

from portfolio_page.exceptions import NoWorkSummariesError, ParseError
from portfolio_page.models import UNKNOWN_AUTHOR, PartialDate, Publication
from portfolio_page.publications.base import PublicationStrategy
from portfolio_page.publications.identifiers import ExternalId, select_link


class ActivitiesStrategy(PublicationStrategy):
    """Read grouped work summaries from the JSON activities endpoint."""

    name: ClassVar[str] = "activities"
    accept: ClassVar[str] = "application/json"

    def url(self, orcid_id: str) -> str:
        return f"https://pub.{self.settings.registry_host}/v3.0/{orcid_id}/activities"

    def parse(self, body: str) -> list[Publication]:
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"activities response is not JSON: {exc}"
            raise ParseError(msg) from exc
        return parse_activities(payload)


def parse_activities(payload: Any) -> list[Publication]:
    """Map an activities document onto publication records.

    One record per work group, built from the group's first summary.
    Groups without a summary are skipped.

    Raises:
        ParseError: The document is not shaped like an activities summary.
        NoWorkSummariesError: Work groups exist but none has a summary.
    """
    if not isinstance(payload, dict):
        msg = "activities response is not a JSON object"
        raise ParseError(msg)

    works = payload.get("activities:works", payload.get("works"))
    if works is None:
        return []
    if not isinstance(works, dict):
        msg = "activities:works is not an object"
        raise ParseError(msg)
    groups = works.get("group") or []
    if not isinstance(groups, list):
        msg = "activities:works.group is not a list"
        raise ParseError(msg)

    publications: list[Publication] = []
    for group in groups:
        if not isinstance(group, dict):
            continue
        summaries = group.get("work-summary") or []
        if not isinstance(summaries, list) or not summaries:
            continue
        summary = summaries[0]
        if isinstance(summary, dict):
            publications.append(_summary_to_publication(summary))

    if groups and not publications:
        msg = f"{len(groups)} work group(s) without a summary"
        raise NoWorkSummariesError(msg)
    return publications


def _summary_to_publication(summary: dict[str, Any]) -> Publication:
    date = summary.get("publication-date") or {}
    return Publication(
        title=_text(_dig(summary, "title", "title")),
        venue=_text(summary.get("journal-title")),
        date=PartialDate.from_parts(
            _value(date.get("year")),
            _value(date.get("month")),
            _value(date.get("day")),
        )
        if isinstance(date, dict)
        else None,
        link=select_link(_external_ids(summary)),
        authors=_contributors(summary),
    )


def _external_ids(summary: dict[str, Any]) -> list[ExternalId]:
    identifiers: list[ExternalId] = []

    current = _dig(summary, "external-ids", "external-id") or []
    for entry in current if isinstance(current, list) else []:
        if not isinstance(entry, dict):
            continue
        identifiers.append(
            ExternalId(
                id_type=_text(entry.get("external-id-type")),
                value=_text(entry.get("external-id-value")),
                url=_text(entry.get("external-id-url")),
            )
        )

    # Pre-3.0 field names still show up in mirrored payloads
    legacy = (
        _dig(summary, "work-external-identifiers", "work-external-identifier") or []
    )
    for entry in legacy if isinstance(legacy, list) else []:
        if not isinstance(entry, dict):
            continue
        identifiers.append(
            ExternalId(
                id_type=_text(entry.get("work-external-identifier-type")),
                value=_text(entry.get("work-external-identifier-id")),
            )
        )
    return identifiers


def _contributors(summary: dict[str, Any]) -> list[str]:
    contributors = _dig(summary, "contributors", "contributor") or []
    if not isinstance(contributors, list):
        return []
    return [
        _text(contributor.get("credit-name")) or UNKNOWN_AUTHOR
        for contributor in contributors
        if isinstance(contributor, dict)
    ]


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _value(node: Any) -> Any:
    """Unwrap ORCID's ``{"value": ...}`` envelopes."""
    if isinstance(node, dict):
        return node.get("value")
    return node


def _text(node: Any) -> str:
    """Unwrapped scalar as display text; nested containers count as missing."""
    value = _value(node)
    if value is None or isinstance(value, dict | list):
        return ""
    return " ".join(str(value).split())
