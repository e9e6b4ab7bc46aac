"""Shared CLI helpers: error translation, filter policy, Rich output."""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape
from rich.measure import Measurement
from rich.table import Table

from ..diff import DiffResult
from ..errors import QrepError
from ..filters import FilterPolicy
from ..report.model import QueryRecord

console = Console()

# Wide enough for any query; tables are measured against this, not the terminal.
_UNBOUNDED_WIDTH = 1_000_000


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn qrep failures into a one-line CLI error and exit status 1."""
    try:
        yield
    except QrepError as e:
        raise click.ClickException(str(e)) from e


def load_policy(denylist_file: Optional[Path]) -> FilterPolicy:
    """Built-in denylist plus the user's file, if any."""
    return FilterPolicy.from_file(denylist_file)


def quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print(f"\n[bold cyan]{escape(text)}[/bold cyan]")


def records_table(records: Sequence[QueryRecord]) -> Table:
    """Table of captured records above the display threshold."""
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Frac", justify="right", no_wrap=True)
    table.add_column("Count", justify="right", no_wrap=True)
    table.add_column("Schema")
    table.add_column("Query", no_wrap=True, overflow="ignore")
    for r in records:
        table.add_row(f"{r.fraction:.2f}", str(r.count), escape(r.schema), escape(quote(r.text)))
    return table


def deviations_table(rows: Sequence[DiffResult]) -> Table:
    """Table of diff rows: new fraction with signed change."""
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Frac(±diff)", justify="right", no_wrap=True)
    table.add_column("Count", justify="right", no_wrap=True)
    table.add_column("Schema")
    table.add_column("Query", no_wrap=True, overflow="ignore")
    for r in rows:
        table.add_row(
            f"{r.fraction:.2f}({r.delta:+.2f})",
            str(r.count),
            escape(r.schema),
            escape(quote(r.text)),
        )
    return table


def deviation_summary(rows: Sequence[DiffResult], dev: float) -> str:
    if not rows:
        return f"No deviations at dev={dev}"
    return f"{len(rows)} deviation(s) at dev={dev}"


def print_table(table: Table) -> None:
    """Print *table* at its natural width so each row stays on one line."""
    options = console.options.update_width(_UNBOUNDED_WIDTH)
    table.width = Measurement.get(console, options, table).maximum
    console.print(table, crop=False)
