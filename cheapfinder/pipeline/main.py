"""CLI entry point for the search service.

``cheapfinder serve`` runs the HTTP API under uvicorn; ``cheapfinder search``
runs one search in-process and prints the ranked listings.
"""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from cheapfinder.api.app import create_app
from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.models.config import AppConfig, ConfigManager
from cheapfinder.models.data_models import KNOWN_SOURCES, Listing, SearchRequest
from cheapfinder.models.errors import ValidationError
from cheapfinder.pipeline.analytics import build_observer
from cheapfinder.pipeline.engine import SearchEngine
from cheapfinder.pipeline.output import JSONOutputFormatter
from cheapfinder.sources import build_adapters


console = Console()


def _load_config(config: Optional[Path], cli_overrides: dict) -> AppConfig:
    return ConfigManager(config).load_config(cli_overrides)


@click.group()
@click.version_option(version="3.0.0", prog_name="cheapfinder")
def cli() -> None:
    """
    CheapFinder - cheapest landed price across marketplaces.

    Examples:

        # Serve the HTTP API
        $ cheapfinder serve --port 8080

        # One-off search against live sources
        $ cheapfinder search "ceramic mug" --max-price 25 --live
    """


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration YAML file",
)
@click.option("--host", type=str, help="Bind address (overrides config)")
@click.option("--port", "-p", type=int, help="Bind port (overrides config)")
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
def serve(
    config: Optional[Path],
    host: Optional[str],
    port: Optional[int],
    log_level: Optional[str],
) -> None:
    """Run the HTTP API."""
    app_config = _load_config(config, {
        "host": host,
        "port": port,
        "log_level": log_level.upper() if log_level else None,
    })
    app = create_app(app_config)
    console.print(
        f"[bold cyan]CheapFinder[/bold cyan] on http://{app_config.host}:{app_config.port} "
        f"(env={app_config.env}, mock={app_config.mock_mode})"
    )
    uvicorn.run(app, host=app_config.host, port=app_config.port, log_level=app_config.log_level.lower())


@cli.command()
@click.argument("query")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration YAML file",
)
@click.option("--limit", "-n", type=click.IntRange(1, 100), default=10, show_default=True)
@click.option("--min-rating", type=click.FloatRange(min=0), default=0.0, help="Minimum seller rating")
@click.option("--min-reviews", type=click.IntRange(min=0), default=0, help="Minimum review count")
@click.option("--max-price", type=click.FloatRange(min=0), default=0.0, help="Item price cap (0 = none)")
@click.option("--zip", "zip_code", type=str, default=None, help="Destination ZIP")
@click.option(
    "--sources",
    "-s",
    type=str,
    default=",".join(KNOWN_SOURCES),
    show_default=True,
    help="Comma-separated source allow-list",
)
@click.option("--live/--mock", default=None, help="Query live sources (overrides config)")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Also write JSON results to this file",
)
def search(
    query: str,
    config: Optional[Path],
    limit: int,
    min_rating: float,
    min_reviews: int,
    max_price: float,
    zip_code: Optional[str],
    sources: str,
    live: Optional[bool],
    as_json: bool,
    output: Optional[Path],
) -> None:
    """Run a single search and print the ranked listings."""
    try:
        if not query.strip():
            raise ValidationError("Missing q")

        app_config = _load_config(config, {"mock_mode": None if live is None else not live})
        request = SearchRequest(
            q=query.strip(),
            zip=zip_code or app_config.default_zip,
            limit=limit,
            min_rating=min_rating,
            min_reviews=min_reviews,
            max_price=max_price,
            sources=sources,
        )

        listings = asyncio.run(_run_search(app_config, request))

        formatter = JSONOutputFormatter()
        if output:
            formatter.save(listings, str(output))
        if as_json:
            click.echo(formatter.to_json(listings))
        else:
            _display_results(query, listings, output)

    except KeyboardInterrupt:
        console.print("\n[yellow]Search interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        sys.exit(1)


async def _run_search(config: AppConfig, request: SearchRequest) -> List[Listing]:
    async with AsyncHTTPClient(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
    ) as http_client:
        engine = SearchEngine(
            config,
            build_adapters(config, http_client),
            observer=build_observer(config, http_client),
        )
        listings = await engine.search(request)
        await engine.drain()
        return listings


def _display_results(query: str, listings: List[Listing], output_path: Optional[Path]) -> None:
    """Render listings as a table."""
    table = Table(title=f"Results for '{query}'")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Title")
    table.add_column("Seller")
    table.add_column("Rating", justify="right", style="yellow")
    table.add_column("Reviews", justify="right")
    table.add_column("Landed", justify="right", style="green")
    table.add_column("ETA", justify="right", style="magenta")

    for position, item in enumerate(listings, start=1):
        table.add_row(
            str(position),
            item.source,
            item.title,
            item.seller,
            f"{item.rating:.1f}",
            str(item.reviews),
            f"${item.landed_price:.2f}",
            f"{item.eta_days}d" if item.eta_days is not None else "N/A",
        )

    console.print(table)
    if output_path:
        console.print(f"[bold]Output saved to:[/bold] {output_path}")


if __name__ == "__main__":
    cli()
