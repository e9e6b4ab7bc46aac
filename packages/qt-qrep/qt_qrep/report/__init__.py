"""Query reports: data model and on-disk codec."""

from .model import QueryRecord, RawRow, Report, build_report
from .codec import REPORT_SUFFIX, decode, encode, read_report, write_report

__all__ = [
    "QueryRecord",
    "RawRow",
    "Report",
    "build_report",
    "REPORT_SUFFIX",
    "encode",
    "decode",
    "read_report",
    "write_report",
]
