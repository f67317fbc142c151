"""HTML rendering for the portfolio page.

Builds repository cards, publication items, inline status messages and
the surrounding document. All interpolated text is escaped; the output
is a self-contained page with an embedded stylesheet.
"""

from __future__ import annotations

import html
from datetime import UTC, datetime

from portfolio_page.models import (
    ListingStatus,
    Publication,
    PublicationListing,
    Repository,
    RepositoryListing,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMPTY_REPOSITORIES_MESSAGE = "No public repositories found."

_CSS = """
body {
    font-family: Helvetica, Arial, sans-serif;
    line-height: 1.5;
    color: #1a1a1a;
    margin: 0 auto;
    max-width: 960px;
    padding: 24px;
}
h1 { font-size: 24pt; margin-bottom: 8pt; }
h2 { font-size: 16pt; margin-top: 24pt; border-bottom: 1px solid #ddd; }
.repo-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(280px, 1fr)); gap: 16px; }
.repo-card { border: 1px solid #ddd; border-radius: 6px; padding: 12px 16px; }
.repo-card h3 { margin: 0 0 6px; font-size: 13pt; }
.repo-stats { display: flex; flex-wrap: wrap; gap: 10px; font-size: 9pt; color: #555; }
.btn { display: inline-block; margin-top: 8px; color: #1a73e8; }
.paper-item { margin-bottom: 12px; }
.paper-title { font-weight: bold; }
.paper-authors, .paper-details { font-size: 10pt; color: #555; }
.error { color: #b00020; }
.empty { color: #555; }
footer { margin-top: 32px; font-size: 9pt; color: #777; }
a { color: #1a73e8; }
"""


def _esc(text: str) -> str:
    return html.escape(text, quote=True)


def format_updated(timestamp: datetime) -> str:
    """Render a repository's last-update timestamp as a calendar date."""
    return timestamp.strftime("%Y-%m-%d")


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


def render_repository_card(repo: Repository) -> str:
    updated = format_updated(repo.updated_at)
    return (
        '<div class="repo-card">'
        f"<h3>{_esc(repo.name)}</h3>"
        f"<p>{_esc(repo.display_description)}</p>"
        '<div class="repo-stats">'
        f'<div class="stat"><span>{repo.stars} stars</span></div>'
        f'<div class="stat"><span>{repo.forks} forks</span></div>'
        f'<div class="stat"><span>Updated: {updated}</span></div>'
        f'<div class="stat"><span>{_esc(repo.display_language)}</span></div>'
        "</div>"
        f'<a href="{_esc(repo.html_url)}" target="_blank" rel="noopener" class="btn">'
        "View Repository</a>"
        "</div>"
    )


def render_repository_section(listing: RepositoryListing) -> str:
    """Cards in listing order, or exactly one message when not loaded."""
    if listing.status == ListingStatus.FAILED:
        return render_message(listing.message, error=True)
    if not listing.repositories:
        return render_message(listing.message or EMPTY_REPOSITORIES_MESSAGE)
    cards = "\n".join(render_repository_card(repo) for repo in listing.repositories)
    return f'<div class="repo-grid">\n{cards}\n</div>'


# ---------------------------------------------------------------------------
# Publications
# ---------------------------------------------------------------------------


def render_publication(publication: Publication) -> str:
    title = _esc(publication.title)
    if publication.link:
        title = (
            f'<a href="{_esc(publication.link)}" target="_blank" rel="noopener">'
            f"{title}</a>"
        )

    parts = ['<div class="paper-item">', f'<div class="paper-title">{title}</div>']
    if publication.authors:
        authors = _esc(", ".join(publication.authors))
        parts.append(f'<div class="paper-authors">{authors}</div>')

    details = " | ".join(
        part for part in (publication.venue, publication.date_text) if part
    )
    if details:
        parts.append(f'<div class="paper-details">{_esc(details)}</div>')
    parts.append("</div>")
    return "".join(parts)


def render_publication_section(listing: PublicationListing) -> str:
    if listing.status == ListingStatus.LOADED and listing.publications:
        return "\n".join(render_publication(p) for p in listing.publications)
    failed = listing.status == ListingStatus.FAILED
    return render_message(listing.message, error=failed)


# ---------------------------------------------------------------------------
# Messages and page
# ---------------------------------------------------------------------------


def render_message(message: str, *, error: bool = False) -> str:
    css_class = "error" if error else "empty"
    return f'<p class="{css_class}">{_esc(message)}</p>'


def render_page(
    repositories: RepositoryListing,
    publications: PublicationListing,
    *,
    title: str = "Portfolio",
    generated_at: datetime | None = None,
) -> str:
    """Render the complete HTML document.

    Args:
        repositories: Repository listing for the projects section.
        publications: Publication listing for the publications section.
        title: Page and heading title.
        generated_at: Build timestamp for the footer (defaults to UTC now).

    Returns:
        The page as a string.
    """
    ts = generated_at or datetime.now(tz=UTC)
    footer_date = ts.strftime("%Y-%m-%d")
    last_update = ts.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_esc(title)}</title>
<style>{_CSS}</style>
</head>
<body>
<header><h1>{_esc(title)}</h1></header>
<section id="repositories">
<h2>Repositories</h2>
<div id="repo-container">
{render_repository_section(repositories)}
</div>
</section>
<section id="publications">
<h2>Publications</h2>
<div id="papers-container">
{render_publication_section(publications)}
</div>
</section>
<footer>
<p>&copy; <span id="footerDate">{footer_date}</span></p>
<p>Last updated: <span id="lastUpdate">{last_update}</span></p>
</footer>
</body>
</html>
"""
