"""qrep capture — snapshot digest statistics into a report file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

logger = logging.getLogger(__name__)


@click.command()
@click.option("--dsn", envvar="DSN", default="", help="SQLAlchemy database URL (also $DSN).")
@click.option(
    "--file", "-f", "file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to save the report to.",
)
@click.option(
    "-n", "n",
    type=float,
    default=None,
    help="Show queries accounting for at least this fraction of all requests (0 disables).",
)
@click.option("--clear", is_flag=True, help="Clear the statistics table after saving the report.")
@click.option(
    "--denylist",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File with extra queries to ignore, one per line.",
)
def capture(
    dsn: str,
    file: Optional[Path],
    n: Optional[float],
    clear: bool,
    denylist: Optional[Path],
) -> None:
    """Save a report of queries from performance_schema.

    Optionally prints queries exceeding the given fraction of all
    requests. Compare two reports over time with `qrep diff`.
    """
    from ..capture import capture as run_capture
    from ..config import get_settings
    from ._common import load_policy, print_table, records_table, reported_errors

    settings = get_settings()
    n = settings.capture_fraction if n is None else n

    with reported_errors():
        policy = load_policy(denylist or settings.denylist_file)
        report, top = run_capture(dsn or settings.dsn, policy, path=file, n=n, clear=clear)

    if top:
        print_table(records_table(top))
    logger.debug(f"Captured {len(report)} queries, {report.total} executions")
