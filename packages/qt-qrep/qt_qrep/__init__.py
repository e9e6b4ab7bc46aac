"""qrep — query mix snapshots for MySQL fleets.

Pipeline:
1. Capture:  performance_schema digests → filter noise → report (count + fraction)
2. Persist:  gzip-framed report file, written atomically
3. Compare:  two reports of one server   → deviations beyond a threshold
             N reports of many servers   → common queries, shards ranked by load

Usage:
    from qt_qrep import read_report, diff_reports, compare_many

    rows = diff_reports(read_report("db1.20240101.qrep"),
                        read_report("db1.20240102.qrep"), dev=0.05)

    entries = compare_many(["db1.20240102.qrep", "db2.20240102.qrep"])
"""

__version__ = "0.1.0"

from .errors import (
    CaptureError,
    CodecError,
    ConfigError,
    EmptyResultError,
    QrepError,
    ReportIOError,
)
from .report import QueryRecord, RawRow, Report, build_report, decode, encode, read_report, write_report
from .filters import DEFAULT_DENYLIST, FilterPolicy, load_denylist
from .diff import DiffResult, compare_reports, diff_reports
from .intersect import (
    MIN_COUNT,
    IntersectionEntry,
    SourceCount,
    common_suffix,
    compare_many,
    intersect_reports,
    render_intersection,
)

__all__ = [
    "QrepError",
    "ConfigError",
    "CodecError",
    "ReportIOError",
    "EmptyResultError",
    "CaptureError",
    "QueryRecord",
    "RawRow",
    "Report",
    "build_report",
    "encode",
    "decode",
    "read_report",
    "write_report",
    "DEFAULT_DENYLIST",
    "FilterPolicy",
    "load_denylist",
    "DiffResult",
    "diff_reports",
    "compare_reports",
    "MIN_COUNT",
    "IntersectionEntry",
    "SourceCount",
    "common_suffix",
    "intersect_reports",
    "render_intersection",
    "compare_many",
]
