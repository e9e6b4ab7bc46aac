"""Report data model — query records and per-source snapshots.

A report is built once from a raw digest sample, written to disk, and
later read back by exactly one analysis (diff or intersection).
Fractions are computed against the post-filter total at build time and
are never recomputed afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

if TYPE_CHECKING:
    from ..filters import FilterPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawRow:
    """One aggregated digest row as returned by the statistics table."""
    schema: str
    count: int
    fingerprint: str
    text: str


@dataclass(frozen=True)
class QueryRecord:
    """One observed query class in a sampling window."""
    count: int
    fraction: float
    fingerprint: str
    schema: str
    text: str

    @property
    def digest_key(self) -> Tuple[str, str]:
        """Join key for comparing two snapshots of the same server."""
        return (self.schema, self.fingerprint)

    @property
    def text_key(self) -> Tuple[str, str]:
        """Join key for comparing different servers."""
        return (self.schema, self.text)


@dataclass(frozen=True)
class Report:
    """Immutable set of query records for one source at one point in time."""
    records: Tuple[QueryRecord, ...] = field(default_factory=tuple)
    source: str = ""

    def __len__(self) -> int:
        return len(self.records)

    @property
    def total(self) -> int:
        return sum(r.count for r in self.records)


def build_report(
    rows: Iterable[RawRow],
    policy: Optional[FilterPolicy] = None,
    source: str = "",
) -> Report:
    """Build a report from raw digest rows.

    Rows rejected by *policy* are dropped before the total is summed, so
    noise statements never influence any fraction. Row order is kept.

    Args:
        rows: Raw (schema, count, fingerprint, text) rows, typically
            ordered by descending count.
        policy: Optional filter policy; no filtering when omitted.
        source: Label of the report's origin.

    Returns:
        Report whose fractions sum to 1.0 (or all 0.0 when empty).
    """
    kept: List[RawRow] = []
    skipped = 0
    for row in rows:
        if policy is not None and policy.excludes(row):
            skipped += 1
            continue
        kept.append(row)

    total = sum(r.count for r in kept)
    records = tuple(
        QueryRecord(
            count=r.count,
            fraction=(r.count / total) if total else 0.0,
            fingerprint=r.fingerprint,
            schema=r.schema,
            text=r.text,
        )
        for r in kept
    )
    logger.debug(f"Built report: {len(records)} records, {skipped} filtered, total={total}")
    return Report(records=records, source=source)
