"""qrep hosts — capture and diff every database in a host map."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--map", "map_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML mapping file with name: hostname pairs.",
)
@click.option("--tpl", default=None, help="DSN template with $HOST as hostname placeholder.")
@click.option(
    "--dir", "report_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to store reports.",
)
@click.option("--old", default=None, help="Part of the old report file name (default: yesterday).")
@click.option("--new", default=None, help="Part of the new report file name (default: today).")
@click.option("-n", "n", type=float, default=None, help="Display threshold for captured queries.")
@click.option("--dev", type=float, default=None, help="Deviation threshold for the diff.")
@click.option("--skip-cmp", is_flag=True, help="Only capture, skip the diff.")
@click.option("--clear", is_flag=True, help="Clear statistics after each capture.")
@click.option(
    "--denylist",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File with extra queries to ignore, one per line.",
)
def hosts(
    map_file: Optional[Path],
    tpl: Optional[str],
    report_dir: Optional[Path],
    old: Optional[str],
    new: Optional[str],
    n: Optional[float],
    dev: Optional[float],
    skip_cmp: bool,
    clear: bool,
    denylist: Optional[Path],
) -> None:
    """Run capture + diff against every database server in the map."""
    from ..config import get_settings
    from ..hosts import HostOptions, default_stamps, load_host_map, run_hosts
    from ._common import (
        deviation_summary,
        deviations_table,
        load_policy,
        print_header,
        print_table,
        records_table,
        reported_errors,
    )

    settings = get_settings()
    today, yesterday = default_stamps()
    options = HostOptions(
        report_dir=report_dir or settings.report_dir,
        dsn_template=tpl or settings.dsn_template,
        new_stamp=new or today,
        old_stamp=old or yesterday,
        n=settings.hosts_fraction if n is None else n,
        dev=settings.hosts_deviation if dev is None else dev,
        skip_cmp=skip_cmp,
        clear=clear,
    )

    with reported_errors():
        policy = load_policy(denylist or settings.denylist_file)
        host_map = load_host_map(map_file or settings.hosts_file)
        logger.info(f"Processing {len(host_map)} hosts")
        for outcome in run_hosts(host_map, options, policy):
            if not outcome.has_output:
                continue
            print_header(f"Host: {outcome.host}")
            if outcome.top:
                print_table(records_table(outcome.top))
            if outcome.deviations:
                print_table(deviations_table(outcome.deviations))
                click.echo(deviation_summary(outcome.deviations, options.dev))
