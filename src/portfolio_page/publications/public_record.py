"""ORCID ``public-record.xml`` parsing."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import ClassVar

from portfolio_page.exceptions import ParseError
from portfolio_page.models import UNKNOWN_AUTHOR, PartialDate, Publication
from portfolio_page.publications.base import PublicationStrategy
from portfolio_page.publications.identifiers import ExternalId, select_link

NS = {
    "record": "http://www.orcid.org/ns/record",
    "activities": "http://www.orcid.org/ns/activities",
    "work": "http://www.orcid.org/ns/work",
    "common": "http://www.orcid.org/ns/common",
}


class PublicRecordStrategy(PublicationStrategy):
    """Read works from the XML public record."""

    name: ClassVar[str] = "public_record"
    accept: ClassVar[str] = "application/xml"

    def url(self, orcid_id: str) -> str:
        return f"https://{self.settings.registry_host}/{orcid_id}/public-record.xml"

    def parse(self, body: str) -> list[Publication]:
        return parse_public_record(body)


def parse_public_record(xml_text: str) -> list[Publication]:
    """Map an ORCID XML record onto publication records.

    Grouped summaries (``activities:group``) yield one record from their
    first summary. Documents without groups yield one record per
    ``work:work`` or ``work:work-summary`` element.

    Raises:
        ParseError: The body is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        msg = f"malformed public record XML: {exc}"
        raise ParseError(msg) from exc

    works: list[ET.Element] = []
    groups = root.findall(".//activities:group", NS)
    for group in groups:
        first = group.find("work:work-summary", NS)
        if first is None:
            first = group.find("work:work", NS)
        if first is not None:
            works.append(first)

    if not groups:
        if root.tag in (f"{{{NS['work']}}}work", f"{{{NS['work']}}}work-summary"):
            works.append(root)
        works.extend(root.findall(".//work:work", NS))
        works.extend(root.findall(".//work:work-summary", NS))

    return [_work_to_publication(work) for work in works]


def _work_to_publication(work: ET.Element) -> Publication:
    date = work.find("common:publication-date", NS)
    return Publication(
        title=_text(work, "work:title/common:title"),
        venue=_text(work, "work:journal-title"),
        date=PartialDate.from_parts(
            _text(date, "common:year"),
            _text(date, "common:month"),
            _text(date, "common:day"),
        )
        if date is not None
        else None,
        link=select_link(
            ExternalId(
                id_type=_text(ext, "common:external-id-type"),
                value=_text(ext, "common:external-id-value"),
                url=_text(ext, "common:external-id-url"),
            )
            for ext in work.findall("common:external-ids/common:external-id", NS)
        ),
        authors=[
            _text(contributor, "work:credit-name") or UNKNOWN_AUTHOR
            for contributor in work.findall("work:contributors/work:contributor", NS)
        ],
    )


def _text(element: ET.Element | None, path: str) -> str:
    if element is None:
        return ""
    return (element.findtext(path, default="", namespaces=NS) or "").strip()
