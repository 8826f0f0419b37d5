"""Typer CLI application for Ticker Window."""

import asyncio
import json
from datetime import timedelta
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import get_config
from src.core.errors import TickerWindowError
from src.core.factory import get_price_service
from src.core.models import Sample, format_timestamp, parse_timestamp
from src.logging_config import LoggingConfig, LogLevel, configure_logging

app = typer.Typer(
    name="tickerwin",
    help="Windowed price history, averages and cross-ticker correlation",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
):
    """Configure logging before any command runs."""
    log_config = LoggingConfig.from_settings(get_config().logging)
    if verbose:
        log_config.level = LogLevel.DEBUG
    configure_logging(log_config)


def _window(minutes: Optional[float]) -> timedelta:
    if minutes is None:
        minutes = get_config().default_window_minutes
    return timedelta(minutes=minutes)


def _fail(error: TickerWindowError) -> None:
    err_console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)


def _history_table(title: str, samples: List[Sample]) -> Table:
    table = Table(title=title)
    table.add_column("Observed At", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Expires At", style="dim")

    for sample in samples:
        table.add_row(
            format_timestamp(sample.observed_at),
            f"{sample.price:,.5f}",
            format_timestamp(sample.expires_at),
        )
    return table


@app.command()
def ingest(
    ticker: str = typer.Argument(..., help="Ticker symbol (e.g., NVDA)"),
    price: float = typer.Argument(..., help="Observed price"),
    at: Optional[str] = typer.Option(
        None,
        "--at",
        help="Observation time as ISO-8601 UTC (default: now)",
    ),
):
    """Record a price observation."""
    service = get_price_service()
    try:
        observed_at = parse_timestamp(at) if at else None
    except ValueError as e:
        err_console.print(f"[red]Error: invalid --at timestamp: {e}[/red]")
        raise typer.Exit(1)

    try:
        sample = service.ingest(ticker, price, observed_at=observed_at)
    except TickerWindowError as e:
        _fail(e)

    console.print(
        f"[green]Stored {sample.ticker} @ {sample.price:,.5f}[/green] "
        f"(observed {format_timestamp(sample.observed_at)}, "
        f"expires {format_timestamp(sample.expires_at)})"
    )


@app.command()
def history(
    ticker: str = typer.Argument(..., help="Ticker symbol"),
    minutes: Optional[float] = typer.Option(None, "--minutes", "-m", help="Lookback in minutes"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
):
    """Show the samples for a ticker within the lookback window."""
    service = get_price_service()
    try:
        samples = service.history(ticker, _window(minutes))
    except TickerWindowError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps([s.to_dict() for s in samples], indent=2))
        return

    if not samples:
        console.print(f"[yellow]No samples for {ticker} in window.[/yellow]")
        return

    console.print(_history_table(f"{ticker} price history", samples))


@app.command()
def average(
    ticker: str = typer.Argument(..., help="Ticker symbol"),
    minutes: Optional[float] = typer.Option(None, "--minutes", "-m", help="Lookback in minutes"),
    aggregation: str = typer.Option("average", "--aggregation", "-a", help="Aggregation type"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
):
    """Average price of a ticker over the lookback window."""
    service = get_price_service()
    try:
        result = service.average_price(ticker, _window(minutes), aggregation=aggregation)
    except TickerWindowError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    console.print(Panel(
        f"Average price: [bold]{result.average_price:,.5f}[/bold]\n"
        f"Samples:       {len(result.price_history)}",
        title=f"{ticker} average",
    ))
    console.print(_history_table(f"{ticker} price history", result.price_history))


@app.command()
def correlate(
    tickers: List[str] = typer.Argument(..., help="Exactly two ticker symbols"),
    minutes: Optional[float] = typer.Option(None, "--minutes", "-m", help="Lookback in minutes"),
    tolerance: Optional[float] = typer.Option(
        None,
        "--tolerance", "-t",
        help="Max timestamp gap in seconds for aligned samples",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
):
    """Pearson correlation between two tickers over time-aligned samples."""
    service = get_price_service()
    tol = timedelta(seconds=tolerance) if tolerance is not None else None
    try:
        result = service.correlate_tickers(tickers, _window(minutes), tolerance=tol)
    except TickerWindowError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    console.print(Panel(
        f"Correlation:   [bold]{result.correlation:.6f}[/bold]\n"
        f"Aligned pairs: {result.sample_size}",
        title=f"{result.ticker_a} vs {result.ticker_b}",
    ))
    for ticker, summary in result.stocks.items():
        console.print(_history_table(
            f"{ticker} (aligned average {summary.average_price:,.5f})",
            summary.price_history,
        ))


@app.command()
def seed(
    clear: bool = typer.Option(
        True,
        "--clear/--no-clear",
        help="Drop existing samples before seeding",
    ),
):
    """Load the reference NVDA/GOOGL/PYPL sample set."""
    from src.storage.seed import seed_sample_data

    service = get_price_service()
    try:
        stored = seed_sample_data(service, clear=clear)
    except TickerWindowError as e:
        _fail(e)

    console.print(f"[green]Inserted {len(stored)} stock price entries.[/green]")


@app.command()
def expire():
    """Remove expired samples from the store now."""
    from src.storage.sweeper import ExpirySweeper

    service = get_price_service()
    sweeper = ExpirySweeper(service.store, service.clock, get_config().sweep_interval_seconds)
    try:
        removed = asyncio.run(sweeper.sweep_once())
    except TickerWindowError as e:
        _fail(e)

    console.print(f"[green]Removed {removed} expired samples.[/green]")


@app.command()
def stats():
    """Show visible sample counts per ticker."""
    service = get_price_service()
    try:
        summary = service.summary()
    except TickerWindowError as e:
        _fail(e)

    if not summary["tickers"]:
        console.print("[yellow]Store is empty.[/yellow]")
        return

    table = Table(title="Samples")
    table.add_column("Ticker", style="cyan")
    table.add_column("Visible", justify="right")

    for ticker, count in summary["tickers"].items():
        table.add_row(ticker, str(count))

    console.print(table)
    console.print(f"\n[dim]Total: {summary['total_samples']} sample(s)[/dim]")


@app.command()
def version():
    """Show version information."""
    from src import __version__

    console.print(f"Ticker Window v{__version__}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
