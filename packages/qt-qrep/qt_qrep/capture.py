"""Capture — snapshot MySQL digest statistics into a report.

Reads performance_schema.events_statements_summary_by_digest, which holds
per-normalized-query execution counts since the last reset, filters out
noise, and optionally writes the report and resets the statistics.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import CaptureError, ConfigError
from .filters import FilterPolicy
from .report.codec import write_report
from .report.model import QueryRecord, RawRow, Report, build_report

logger = logging.getLogger(__name__)

DIGEST_TABLE = "performance_schema.events_statements_summary_by_digest"

DIGEST_QUERY = f"""
select schema_name, count_star, digest, digest_text
from {DIGEST_TABLE}
where schema_name is not NULL and schema_name not in ('mysql', 'sys', 'tmp')
order by count_star desc
"""

CLEAR_STATEMENT = f"truncate table {DIGEST_TABLE}"


def check_fraction(n: float) -> float:
    """Validate a display threshold, which must lie in [0, 1]."""
    if not 0 <= n <= 1:
        raise ConfigError(f"invalid n value {n}, should be in [0,1] range")
    return n


def fetch_digest_rows(conn: Connection) -> List[RawRow]:
    """Read raw digest rows, busiest first."""
    rows = []
    for schema, count, digest, digest_text in conn.execute(text(DIGEST_QUERY)):
        rows.append(RawRow(
            schema=schema,
            count=int(count),
            fingerprint=digest or "",
            text=digest_text or "",
        ))
    logger.debug(f"Fetched {len(rows)} digest rows")
    return rows


def capture_report(engine: Engine, policy: Optional[FilterPolicy] = None) -> Report:
    """Build a report from the live digest table."""
    try:
        with engine.connect() as conn:
            rows = fetch_digest_rows(conn)
    except SQLAlchemyError as e:
        raise CaptureError(f"cannot read digest statistics: {e}") from e
    return build_report(rows, policy)


def clear_statistics(engine: Engine) -> None:
    """Reset the digest table so the next capture starts from zero."""
    try:
        with engine.begin() as conn:
            conn.execute(text(CLEAR_STATEMENT))
    except SQLAlchemyError as e:
        raise CaptureError(f"cannot clear digest statistics: {e}") from e
    logger.info("Cleared digest statistics")


def top_records(report: Report, n: float) -> List[QueryRecord]:
    """Records whose fraction is at least *n*; none when *n* is 0."""
    check_fraction(n)
    if n == 0:
        return []
    return [r for r in report.records if r.fraction >= n]


def capture(
    dsn: str,
    policy: Optional[FilterPolicy] = None,
    path: Optional[Union[str, Path]] = None,
    n: float = 0.1,
    clear: bool = False,
) -> Tuple[Report, List[QueryRecord]]:
    """Capture a report from the server at *dsn*.

    Args:
        dsn: SQLAlchemy database URL.
        policy: Filter policy applied before fractions are computed.
        path: Where to write the report; nothing is written when omitted.
        n: Display threshold for the returned top records.
        clear: Truncate the statistics table after a successful write.

    Returns:
        Tuple of (report, records with fraction >= n).
    """
    check_fraction(n)
    if not dsn:
        raise ConfigError("no DSN given (use --dsn or set $DSN)")

    try:
        engine = create_engine(dsn)
    except (SQLAlchemyError, ImportError, ValueError) as e:
        raise ConfigError(f"invalid DSN: {e}") from e

    try:
        report = capture_report(engine, policy)
        top = top_records(report, n)
        if path is None:
            return report, top
        write_report(path, report.records)
        logger.info(f"Saved {len(report)} queries to {path}")
        if clear:
            clear_statistics(engine)
        return report, top
    finally:
        engine.dispose()
