"""Exception hierarchy for qrep.

Every failure a command can surface derives from QrepError so the CLI
can turn it into a single diagnostic line and a non-zero exit status.
"""

from __future__ import annotations


class QrepError(Exception):
    """Base class for all qrep failures."""


class ConfigError(QrepError):
    """Invalid threshold, empty input list, or malformed configuration."""


class CodecError(QrepError):
    """Report bytes are corrupt, truncated, or have the wrong shape."""


class ReportIOError(QrepError):
    """A report or denylist file could not be opened, read, or written."""


class EmptyResultError(QrepError):
    """No query is common to every input report."""


class CaptureError(QrepError):
    """Database access failed while capturing or clearing statistics."""
