"""Shared pytest fixtures for the portfolio-page test suite."""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest
import structlog

from portfolio_page.config import GitHubSettings, OrcidSettings, Settings

ORCID_ID = "0000-0002-1825-0097"


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Reset structlog state between tests."""
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def github_settings() -> GitHubSettings:
    return GitHubSettings(account="octo", api_base="https://api.github.com")


@pytest.fixture()
def orcid_settings() -> OrcidSettings:
    return OrcidSettings(orcid_id=ORCID_ID)


@pytest.fixture()
def settings(tmp_path: Any) -> Settings:
    """Settings isolated from any YAML, env or dotenv on the host."""
    return Settings.load(
        config_path=tmp_path / "missing.yaml",
        github={"account": "octo"},
        orcid={"orcid_id": ORCID_ID},
        output={"path": str(tmp_path / "site" / "index.html")},
    )


# ---------------------------------------------------------------------------
# GitHub payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def repos_payload() -> list[dict[str, Any]]:
    """Three repositories deliberately out of update order."""
    return [
        {
            "name": "older",
            "description": "An older project",
            "stargazers_count": 3,
            "forks_count": 1,
            "updated_at": "2023-01-10T08:00:00Z",
            "language": "Python",
            "html_url": "https://github.com/octo/older",
        },
        {
            "name": "newest",
            "description": None,
            "stargazers_count": 12,
            "forks_count": 4,
            "updated_at": "2024-06-01T12:30:00Z",
            "language": None,
            "html_url": "https://github.com/octo/newest",
        },
        {
            "name": "middle",
            "description": "Middle project",
            "stargazers_count": 0,
            "forks_count": 0,
            "updated_at": "2023-11-20T00:00:00Z",
            "language": "Rust",
            "html_url": "https://github.com/octo/middle",
        },
    ]


# ---------------------------------------------------------------------------
# ORCID payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def activities_payload() -> dict[str, Any]:
    """A v3.0 activities summary with two work groups and one empty group."""
    return {
        "activities:works": {
            "group": [
                {
                    "work-summary": [
                        {
                            "title": {"title": {"value": "Graph Methods for Proteins"}},
                            "journal-title": {"value": "Journal of Graphs"},
                            "publication-date": {
                                "year": {"value": "2021"},
                                "month": {"value": "3"},
                                "day": {"value": "7"},
                            },
                            "external-ids": {
                                "external-id": [
                                    {
                                        "external-id-type": "uri",
                                        "external-id-value": "example.org/paper",
                                    },
                                    {
                                        "external-id-type": "doi",
                                        "external-id-value": "10.1000/graphs.42",
                                    },
                                ]
                            },
                            "contributors": {
                                "contributor": [
                                    {"credit-name": {"value": "Ada Lovelace"}},
                                    {"credit-name": None},
                                ]
                            },
                        },
                        {
                            "title": {"title": {"value": "Duplicate from another source"}},
                        },
                    ]
                },
                {
                    "work-summary": [
                        {
                            "title": {"title": {"value": "A Thesis"}},
                            "journal-title": None,
                            "publication-date": {"year": {"value": "2019"}},
                            "external-ids": {
                                "external-id": [
                                    {
                                        "external-id-type": "url",
                                        "external-id-value": "thesis.example.edu/1",
                                    }
                                ]
                            },
                        }
                    ]
                },
                {"work-summary": []},
            ]
        }
    }


@pytest.fixture()
def public_record_xml() -> str:
    return """<?xml version="1.0" encoding="UTF-8"?>
<record:record xmlns:record="http://www.orcid.org/ns/record"
    xmlns:activities="http://www.orcid.org/ns/activities"
    xmlns:work="http://www.orcid.org/ns/work"
    xmlns:common="http://www.orcid.org/ns/common">
  <activities:activities-summary>
    <activities:works>
      <activities:group>
        <work:work-summary put-code="1">
          <work:title><common:title>Signals in Noise</common:title></work:title>
          <common:external-ids>
            <common:external-id>
              <common:external-id-type>url</common:external-id-type>
              <common:external-id-value>https://example.org/signals</common:external-id-value>
            </common:external-id>
            <common:external-id>
              <common:external-id-type>doi</common:external-id-type>
              <common:external-id-value>10.5555/signals</common:external-id-value>
            </common:external-id>
          </common:external-ids>
          <common:publication-date>
            <common:year>2020</common:year>
            <common:month>11</common:month>
          </common:publication-date>
          <work:journal-title>Noise Letters</work:journal-title>
          <work:contributors>
            <work:contributor><work:credit-name>Grace Hopper</work:credit-name></work:contributor>
            <work:contributor><work:credit-name>Alan Turing</work:credit-name></work:contributor>
          </work:contributors>
        </work:work-summary>
        <work:work-summary put-code="2">
          <work:title><common:title>Second copy</common:title></work:title>
        </work:work-summary>
      </activities:group>
    </activities:works>
  </activities:activities-summary>
</record:record>
"""


@pytest.fixture()
def json_ld_html() -> str:
    graph = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "Person", "name": "Ada Lovelace"},
            {
                "@type": "ScholarlyArticle",
                "name": "Analytical Engines Revisited",
                "author": [{"@type": "Person", "name": "Ada Lovelace"}, "C. Babbage"],
                "datePublished": "2018-09",
                "isPartOf": {"@type": "Periodical", "name": "Computing History"},
                "identifier": {"@type": "PropertyValue", "propertyID": "doi", "value": "10.1234/ae"},
                "url": "https://example.org/ae",
            },
            {
                "@type": "Dataset",
                "headline": "Engine Measurements",
                "creator": {"name": "Ada Lovelace"},
                "dateCreated": "2017",
                "url": "data.example.org/engine",
            },
        ],
    }
    return (
        "<html><head>"
        '<script type="application/ld+json">{not json}</script>'
        f'<script type="application/ld+json">{json.dumps(graph)}</script>'
        "</head><body></body></html>"
    )


@pytest.fixture()
def profile_html() -> str:
    """Rendered profile markup with test attributes on each work card."""
    return """
<html><body>
  <section id="works">
    <div data-test="work">
      <h3 data-test="work-title">Cellular Automata at Scale</h3>
      <div data-test="work-contributors">Conway, J.; Gardner, M.</div>
      <div data-test="work-journal">Complex Systems</div>
      <div data-test="work-date">2015-04-02</div>
      <a href="https://example.org/ca">Source</a>
      <a href="https://doi.org/10.4242/ca.2015">DOI</a>
    </div>
    <div data-test="work">
      <h3 data-test="work-title">Untracked Note</h3>
      <span class="date">Published 2012</span>
    </div>
  </section>
</body></html>
"""
