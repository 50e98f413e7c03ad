from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Tuple

import click

from .config import get_settings
from .evaluator import is_expired
from .fare_parser import build_table
from .models import parse_date
from .runner import check_watches
from .southwest_fetcher import SouthwestFetcher
from .watch_store import WatchStore, WatchStoreError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


def configure_logging(
    log_file: str, level: str, fare_log: Optional[str] = None
) -> None:
    """Log to *log_file* and the console; fare rows optionally to *fare_log*."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
        format=LOG_FORMAT,
    )
    if fare_log:
        handler = logging.FileHandler(fare_log)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        fares = logging.getLogger("fare_watch.fares")
        fares.addHandler(handler)
        fares.setLevel(logging.DEBUG)
        fares.propagate = False


def _date_option(ctx, param, value):
    if value is None:
        return None
    try:
        if isinstance(value, tuple):
            return tuple(parse_date(v) for v in value) if value else None
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _fetcher() -> SouthwestFetcher:
    settings = get_settings()
    return SouthwestFetcher(settings.search_url, timeout=settings.timeout_s)


@click.group()
def cli() -> None:
    """Watch airfares and report price drops."""


config_option = click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the watch file (YAML)",
)


@cli.command()
@config_option
@click.option("--log", "log_file", help="Log file (defaults to ~/fare-watch.log)")
@click.option(
    "--loglevel",
    type=click.Choice(LEVELS, case_sensitive=False),
    help="Log level (defaults to INFO)",
)
@click.option("--fare-log", help="Separate log of every fare seen")
@click.option(
    "--dates",
    nargs=2,
    callback=_date_option,
    metavar="OUTBOUND RETURN",
    help="Check every watch on these dates instead of the stored ones",
)
@click.option(
    "--today", callback=_date_option, help="Evaluation date (YYYY-MM-DD) for manual tests"
)
def check(
    config_path: str,
    log_file: Optional[str],
    loglevel: Optional[str],
    fare_log: Optional[str],
    dates: Optional[Tuple],
    today,
) -> None:
    """Check all watches once, notify drops and update the watch file."""
    settings = get_settings()
    configure_logging(log_file or settings.log_file, loglevel or settings.log_level, fare_log)

    store = WatchStore(config_path)
    try:
        check_watches(store, _fetcher().fetch_entry, today=today, dates=dates)
    except WatchStoreError as exc:
        logger.error("%s", exc)
        raise click.ClickException(str(exc)) from exc


@cli.command()
@config_option
def fetch(config_path: str) -> None:
    """Fetch fares for every watch and print them without evaluating."""
    try:
        entries = WatchStore(config_path).load()
    except WatchStoreError as exc:
        raise click.ClickException(str(exc)) from exc

    fetcher = _fetcher()
    today = date.today()
    for entry in entries:
        if is_expired(entry, today):
            click.echo(f"{entry.label}: expired")
            continue
        try:
            result = fetcher.fetch_entry(entry)
        except Exception as exc:
            logger.warning("  Failed to fetch %s: %s", entry.label, exc)
            continue
        click.echo(entry.label)
        for leg, rows in (("outbound", result.outbound), ("return", result.inbound)):
            for row in build_table(rows):
                click.echo(f"  {leg} #{row.flight_number} ${row.price}")


@cli.command(name="list")
@config_option
def list_watches(config_path: str) -> None:
    """Print the watches with their selection mode and thresholds."""
    try:
        entries = WatchStore(config_path).load()
    except WatchStoreError as exc:
        raise click.ClickException(str(exc)) from exc

    for entry in entries:
        out = entry.outbound_flight and f"#{entry.outbound_flight}" or "cheapest"
        line = f"{entry.label} x{entry.adults} | out {out} ${entry.outbound_price}"
        if entry.is_round_trip:
            ret = entry.return_flight and f"#{entry.return_flight}" or "cheapest"
            line += f" | ret {ret} ${entry.return_price}"
        click.echo(line)


if __name__ == "__main__":
    cli()
