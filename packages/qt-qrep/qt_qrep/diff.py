"""Pairwise Diff — flag queries whose share of traffic moved.

Compares a new report against an old one of the same server, joined on
(schema, fingerprint). A query is reported when its fraction changed by
at least ``dev``, or, if it is new, when its own fraction is at least
``dev``. Queries that disappeared from the new report are not reported.
Rows come out in the new report's order (descending count at capture).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Union

from .errors import ConfigError
from .report.codec import read_report
from .report.model import QueryRecord, Report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffResult:
    """One deviating query."""
    fraction: float     # share in the new report
    delta: float        # signed change; equals fraction for new queries
    count: int
    schema: str
    text: str
    fingerprint: str = ""
    is_new: bool = False


def check_deviation(dev: float) -> float:
    """Validate a deviation threshold, which must lie in (0, 1)."""
    if not 0 < dev < 1:
        raise ConfigError(f"dev should be in (0,1) range, got {dev}")
    return dev


def _index_by_digest(report: Report) -> Dict[Tuple[str, str], QueryRecord]:
    # Last write wins; capture yields one row per key.
    return {r.digest_key: r for r in report.records}


def diff_reports(old: Report, new: Report, dev: float) -> List[DiffResult]:
    """Compute deviations of *new* relative to *old*.

    Args:
        old: Baseline report.
        new: Report to check.
        dev: Deviation threshold in (0, 1).

    Returns:
        DiffResult rows in the new report's record order.
    """
    check_deviation(dev)
    baseline = _index_by_digest(old)

    results: List[DiffResult] = []
    for q in new.records:
        prev = baseline.get(q.digest_key)
        if prev is None:
            if q.fraction >= dev:
                results.append(_row(q, q.fraction, is_new=True))
            continue
        delta = q.fraction - prev.fraction
        if abs(delta) >= dev:
            results.append(_row(q, delta))

    logger.debug(
        f"Diff: {len(new.records)} new vs {len(old.records)} old records, "
        f"{len(results)} deviations at dev={dev}"
    )
    return results


def _row(q: QueryRecord, delta: float, is_new: bool = False) -> DiffResult:
    return DiffResult(
        fraction=q.fraction,
        delta=delta,
        count=q.count,
        schema=q.schema,
        text=q.text,
        fingerprint=q.fingerprint,
        is_new=is_new,
    )


def compare_reports(
    old_path: Union[str, Path],
    new_path: Union[str, Path],
    dev: float,
) -> List[DiffResult]:
    """Read two report files and diff them.

    The threshold is validated before any file is touched. Any read or
    decode failure aborts the comparison.
    """
    check_deviation(dev)
    old = read_report(old_path)
    new = read_report(new_path)
    return diff_reports(old, new, dev)
