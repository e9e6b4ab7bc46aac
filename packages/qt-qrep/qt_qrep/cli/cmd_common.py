"""qrep common — queries shared by reports from many databases."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import click


@click.command()
@click.argument("files", nargs=-1, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--top", is_flag=True, help="Report only the top shard for each query.")
@click.option(
    "--min-count",
    type=int,
    default=None,
    help="Skip queries whose busiest shard ran fewer times than this.",
)
def common(files: Tuple[Path, ...], top: bool, min_count: Optional[int]) -> None:
    """Print queries common to all report FILES, busiest shards first."""
    from ..config import get_settings
    from ..intersect import compare_many, render_intersection
    from ._common import reported_errors

    min_count = get_settings().min_count if min_count is None else min_count

    with reported_errors():
        entries = compare_many(files, min_count=min_count)

    for line in render_intersection(entries, [str(f) for f in files], top=top):
        click.echo(line)
