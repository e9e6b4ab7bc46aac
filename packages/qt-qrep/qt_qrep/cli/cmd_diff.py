"""qrep diff — compare a new report against an old one."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click


@click.command()
@click.option(
    "--old", "old",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Old report file.",
)
@click.option(
    "--new", "new",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="New report file.",
)
@click.option(
    "--dev",
    type=float,
    default=None,
    help="Threshold to report, i.e. 0.02 is a change of 2% of total requests.",
)
def diff(old: Path, new: Path, dev: Optional[float]) -> None:
    """Report queries whose share of requests moved by at least --dev."""
    from ..config import get_settings
    from ..diff import compare_reports
    from ._common import deviation_summary, deviations_table, print_table, reported_errors

    dev = get_settings().deviation if dev is None else dev

    with reported_errors():
        rows = compare_reports(old, new, dev)

    if rows:
        print_table(deviations_table(rows))
    click.echo(deviation_summary(rows, dev))
