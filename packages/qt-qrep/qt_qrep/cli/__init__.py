"""qrep CLI — capture query reports and compare them.

Usage: qrep <command> [options]
"""

from __future__ import annotations

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output.")
@click.version_option(package_name="qt-qrep")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """qrep — query mix snapshots, diffs and cross-shard comparison."""
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")
    elif quiet:
        logging.basicConfig(level=logging.WARNING)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")


def _register_commands() -> None:
    """Import and register all sub-commands."""
    from .cmd_capture import capture
    from .cmd_diff import diff
    from .cmd_common import common
    from .cmd_hosts import hosts

    main.add_command(capture)
    main.add_command(diff)
    main.add_command(common)
    main.add_command(hosts)


_register_commands()
