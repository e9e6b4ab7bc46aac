"""Host loop — capture and diff every shard in a host map.

The host map is a YAML mapping of shard name to hostname. For each shard,
a new report is captured into ``<dir>/<name>.<new>.qrep`` and compared
with the previous one at ``<dir>/<name>.<old>.qrep``. Hosts run in name
order; the first failure stops the run.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import yaml

from .capture import capture, check_fraction
from .diff import DiffResult, check_deviation, compare_reports
from .errors import ConfigError, QrepError, ReportIOError
from .filters import FilterPolicy
from .report.codec import REPORT_SUFFIX
from .report.model import QueryRecord

logger = logging.getLogger(__name__)

_VAR_RE = re.compile(r"\$(?:\{(\w+)\}|(\w+))")

STAMP_FORMAT = "%Y%m%d"


@dataclass
class HostOptions:
    """Settings shared by every host in one run."""
    report_dir: Path
    dsn_template: str
    new_stamp: str
    old_stamp: str
    n: float = 0.2
    dev: float = 0.02
    skip_cmp: bool = False
    clear: bool = False


@dataclass
class HostOutcome:
    """What one host produced."""
    name: str
    host: str
    top: List[QueryRecord] = field(default_factory=list)
    deviations: List[DiffResult] = field(default_factory=list)

    @property
    def has_output(self) -> bool:
        return bool(self.top or self.deviations)


def default_stamps(now: Optional[datetime] = None) -> Tuple[str, str]:
    """Return (new, old) stamps: today and yesterday in UTC."""
    now = now or datetime.now(timezone.utc)
    return now.strftime(STAMP_FORMAT), (now - timedelta(days=1)).strftime(STAMP_FORMAT)


def load_host_map(path: Union[str, Path]) -> Dict[str, str]:
    """Load a ``name: hostname`` mapping from YAML."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ReportIOError(f"{path}: cannot read host map: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: malformed host map: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: host map must be a name -> hostname mapping")
    return {str(k): str(v) for k, v in data.items()}


def expand_dsn(template: str, host: str) -> str:
    """Substitute $HOST / ${HOST}; any other variable becomes empty."""
    def _sub(m: re.Match) -> str:
        name = m.group(1) or m.group(2)
        return host if name == "HOST" else ""
    return _VAR_RE.sub(_sub, template)


def report_path(report_dir: Union[str, Path], name: str, stamp: str) -> Path:
    return Path(report_dir) / f"{Path(name).name}.{Path(stamp).name}{REPORT_SUFFIX}"


def process_host(
    name: str,
    host: str,
    options: HostOptions,
    policy: Optional[FilterPolicy] = None,
) -> HostOutcome:
    """Capture a new report for one host, then diff it against the old one."""
    new_path = report_path(options.report_dir, name, options.new_stamp)
    old_path = report_path(options.report_dir, name, options.old_stamp)
    dsn = expand_dsn(options.dsn_template, host)

    logger.info(f"Capturing {name} ({host}) into {new_path}")
    _, top = capture(dsn, policy, path=new_path, n=options.n, clear=options.clear)

    outcome = HostOutcome(name=name, host=host, top=top)
    if not options.skip_cmp:
        outcome.deviations = compare_reports(old_path, new_path, options.dev)
    return outcome


def run_hosts(
    hosts: Dict[str, str],
    options: HostOptions,
    policy: Optional[FilterPolicy] = None,
) -> Iterator[HostOutcome]:
    """Process every host in name order.

    Yields one outcome per host. The first failing host raises its error
    with the host attached, and the remaining hosts are not processed.
    """
    check_fraction(options.n)
    check_deviation(options.dev)
    for name in sorted(hosts):
        host = hosts[name]
        try:
            yield process_host(name, host, options, policy)
        except QrepError as e:
            raise type(e)(f"host {host}: {e}") from e
