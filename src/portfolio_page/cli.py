"""Typer CLI entry point for portfolio-page."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from portfolio_page import __version__
from portfolio_page.config import Settings, format_validation_error
from portfolio_page.logging import configure_logging
from portfolio_page.models import ListingStatus, PublicationListing, RepositoryListing
from portfolio_page.render import format_updated
from portfolio_page.site import build_site, load_publications, load_repositories

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="portfolio-page",
    help="Build a static portfolio page from GitHub repositories and ORCID works.",
    no_args_is_help=True,
)

_STATUS_STYLE = {
    ListingStatus.LOADED: "[green]loaded[/green]",
    ListingStatus.EMPTY: "[yellow]empty[/yellow]",
    ListingStatus.FAILED: "[red]failed[/red]",
    ListingStatus.NOT_CONFIGURED: "[yellow]not configured[/yellow]",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    from pydantic import ValidationError

    try:
        return Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc


def _overrides(
    account: str | None = None,
    orcid: str | None = None,
    strategies: list[str] | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if account:
        overrides["github"] = {"account": account}
    orcid_overrides: dict[str, Any] = {}
    if orcid:
        orcid_overrides["orcid_id"] = orcid
    if strategies:
        orcid_overrides["strategies"] = strategies
    if orcid_overrides:
        overrides["orcid"] = orcid_overrides
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}
    return overrides


def _setup_logging(settings: Settings) -> None:
    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
    )


def _display_repositories(listing: RepositoryListing) -> None:
    if not listing.repositories:
        style = "red" if listing.status == ListingStatus.FAILED else "yellow"
        console.print(f"[{style}]{listing.message or 'No repositories.'}[/{style}]")
        return

    table = Table(title="Repositories", show_lines=False)
    table.add_column("Name", style="cyan")
    table.add_column("Language")
    table.add_column("Stars", justify="right")
    table.add_column("Forks", justify="right")
    table.add_column("Updated", style="dim")
    for repo in listing.repositories:
        table.add_row(
            repo.name,
            repo.display_language,
            str(repo.stars),
            str(repo.forks),
            format_updated(repo.updated_at),
        )
    console.print(table)


def _display_publications(listing: PublicationListing) -> None:
    if not listing.publications:
        style = "red" if listing.status == ListingStatus.FAILED else "yellow"
        console.print(f"[{style}]{listing.message}[/{style}]")
        return

    table = Table(title=f"Publications ({listing.source})", show_lines=True)
    table.add_column("Title", style="white")
    table.add_column("Authors", style="dim")
    table.add_column("Venue")
    table.add_column("Date", style="cyan")
    for publication in listing.publications:
        table.add_row(
            publication.title,
            ", ".join(publication.authors),
            publication.venue,
            publication.date_text,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]portfolio-page[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Portfolio-page global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config YAML file."),
]
AccountOption = Annotated[
    str | None,
    typer.Option("--account", "-a", help="GitHub account whose repositories to list."),
]
OrcidOption = Annotated[
    str | None,
    typer.Option("--orcid", help="ORCID iD (0000-0000-0000-000X)."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose logging."),
]


@app.command()
def build(
    config: ConfigOption = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output HTML file."),
    ] = None,
    account: AccountOption = None,
    orcid: OrcidOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Fetch both listings and write the portfolio page."""
    settings = _load_settings(
        config, **_overrides(account=account, orcid=orcid, verbose=verbose)
    )
    _setup_logging(settings)

    result = asyncio.run(build_site(settings, output_path=output))

    table = Table(title="Portfolio Build", show_lines=True)
    table.add_column("Section", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Items", justify="right")
    table.add_column("Message")
    table.add_row(
        "repositories",
        _STATUS_STYLE[result.repositories.status],
        str(len(result.repositories.repositories)),
        result.repositories.message,
    )
    table.add_row(
        "publications",
        _STATUS_STYLE[result.publications.status],
        str(len(result.publications.publications)),
        result.publications.message or result.publications.source,
    )
    console.print(table)
    console.print(f"[green]Page written:[/green] {result.output_path}")


@app.command()
def repos(
    config: ConfigOption = None,
    account: AccountOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the repository listing without writing the page."""
    settings = _load_settings(config, **_overrides(account=account, verbose=verbose))
    _setup_logging(settings)
    _display_repositories(asyncio.run(load_repositories(settings)))


@app.command()
def publications(
    config: ConfigOption = None,
    orcid: OrcidOption = None,
    strategy: Annotated[
        list[str] | None,
        typer.Option(
            "--strategy",
            "-s",
            help=(
                "Strategy to try, repeatable for a fallback "
                "(json_ld, activities, public_record, html_scrape)."
            ),
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the publication listing without writing the page."""
    settings = _load_settings(
        config, **_overrides(orcid=orcid, strategies=strategy, verbose=verbose)
    )
    _setup_logging(settings)
    _display_publications(asyncio.run(load_publications(settings)))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
