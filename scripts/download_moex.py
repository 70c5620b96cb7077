"""CLI entrypoint for downloading historical MOEX candles into text files."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from moex_history.config import AppSettings, load_settings
from moex_history.data import InstrumentClass, IssRESTClient
from moex_history.pipeline import HistoryDownloader, RunReport
from moex_history.utils import parse_iso_date

app = typer.Typer(help="Historical MOEX candle downloads")
console = Console()


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _download(
    kind: InstrumentClass,
    settings: AppSettings,
    *,
    symbols: Optional[List[str]],
    year_start: Optional[int],
    year_end: Optional[int],
    as_of: Optional[str],
) -> RunReport:
    group = settings.group(kind)
    start = year_start if year_start is not None else group.year_start
    end = year_end if year_end is not None else group.year_end
    if start > end:
        typer.echo("Start year must not be after end year.", err=True)
        raise typer.Exit(code=1)

    download = settings.download
    download.output_dir.mkdir(parents=True, exist_ok=True)

    downloader = HistoryDownloader(
        lambda: IssRESTClient(base_url=settings.iss.base_url, request_timeout=settings.iss.request_timeout),
        output_dir=download.output_dir,
        interval=download.interval,
        page_size=download.page_size,
        request_delay=download.request_delay,
        max_workers=download.max_workers,
        cancel_on_failure=download.cancel_on_failure,
        today=parse_iso_date(as_of) if as_of else None,
    )
    return downloader.run(settings.instruments(kind, symbols), year_start=start, year_end=end)


def _print_summary(report: RunReport) -> None:
    table = Table(title="Download summary", caption=f"{report.records_written} records written")
    table.add_column("Symbol")
    table.add_column("Periods", justify="right")
    table.add_column("Written", justify="right")
    table.add_column("Empty", justify="right")
    table.add_column("Records", justify="right")
    table.add_column("Status")

    for outcome in report.outcomes:
        if outcome.error is not None:
            status = "[red]failed[/red]"
        elif outcome.cancelled:
            status = "[yellow]cancelled[/yellow]"
        else:
            status = "[green]ok[/green]"
        table.add_row(
            outcome.instrument.symbol,
            str(outcome.periods),
            str(outcome.periods_written),
            str(outcome.periods_empty),
            str(outcome.records_written),
            status,
        )
    console.print(table)


def _finish(reports: List[RunReport]) -> None:
    for report in reports:
        _print_summary(report)
    for report in reports:
        if report.first_failure is not None:
            typer.echo(f"Error: {report.first_failure}", err=True)
            raise typer.Exit(code=1)


SymbolsOption = typer.Option(None, "--symbol", "-s", help="Restrict to these symbols (repeatable).")
YearStartOption = typer.Option(None, help="Override the first year of the range.")
YearEndOption = typer.Option(None, help="Override the last year of the range.")
AsOfOption = typer.Option(None, help="Treat this ISO date as today when skipping future periods.")
OutputOption = typer.Option(None, help="Directory for the per-instrument .txt files.")
ConfigOption = typer.Option(None, help="Path to a settings TOML file (default: config/settings.toml).")
LogLevelOption = typer.Option("INFO", help="loguru level for progress messages.")


def _settings(config: Optional[Path], output_dir: Optional[Path]) -> AppSettings:
    settings = load_settings(config)
    if output_dir is not None:
        settings.download.output_dir = output_dir
    return settings


@app.command()
def shares(
    symbol: Optional[List[str]] = SymbolsOption,
    year_start: Optional[int] = YearStartOption,
    year_end: Optional[int] = YearEndOption,
    as_of: Optional[str] = AsOfOption,
    output_dir: Optional[Path] = OutputOption,
    config: Optional[Path] = ConfigOption,
    log_level: str = LogLevelOption,
) -> None:
    """Download monthly periods of spot shares, appending to existing files."""

    _configure_logging(log_level)
    settings = _settings(config, output_dir)
    report = _download(
        InstrumentClass.EQUITY,
        settings,
        symbols=symbol,
        year_start=year_start,
        year_end=year_end,
        as_of=as_of,
    )
    _finish([report])


@app.command()
def futures(
    symbol: Optional[List[str]] = SymbolsOption,
    year_start: Optional[int] = YearStartOption,
    year_end: Optional[int] = YearEndOption,
    as_of: Optional[str] = AsOfOption,
    output_dir: Optional[Path] = OutputOption,
    config: Optional[Path] = ConfigOption,
    log_level: str = LogLevelOption,
) -> None:
    """Download quarterly contracts of futures roots, rewriting each file from scratch."""

    _configure_logging(log_level)
    settings = _settings(config, output_dir)
    report = _download(
        InstrumentClass.DERIVATIVE,
        settings,
        symbols=symbol,
        year_start=year_start,
        year_end=year_end,
        as_of=as_of,
    )
    _finish([report])


@app.command(name="all")
def download_all(
    as_of: Optional[str] = AsOfOption,
    output_dir: Optional[Path] = OutputOption,
    config: Optional[Path] = ConfigOption,
    log_level: str = LogLevelOption,
) -> None:
    """Download both configured groups with their configured year ranges."""

    _configure_logging(log_level)
    settings = _settings(config, output_dir)
    reports = [
        _download(kind, settings, symbols=None, year_start=None, year_end=None, as_of=as_of)
        for kind in (InstrumentClass.EQUITY, InstrumentClass.DERIVATIVE)
    ]
    _finish(reports)


if __name__ == "__main__":  # pragma: no cover
    app()
