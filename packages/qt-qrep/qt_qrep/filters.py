"""Filter policy — keep administrative noise out of captured reports.

A row is excluded when its normalized text is a SET or SHOW statement,
or when its fingerprint or text appears in the denylist. The denylist is
assembled once by the caller (built-in defaults plus an optional user
file) and handed to the policy; there is no process-wide state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

from .errors import ReportIOError
from .report.model import RawRow

logger = logging.getLogger(__name__)

# Prefix match on the canonical normalized form, case-sensitive.
EXCLUDED_PREFIXES = ("SET ", "SHOW ")

DEFAULT_DENYLIST: FrozenSet[str] = frozenset({
    "COMMIT",
    "START TRANSACTION",
    "ROLLBACK",
    "SHOW WARNINGS",
    "SET autocommit = ?",
    "SET `autocommit` = ?",
    "SET SESSION TRANSACTION ISOLATION LEVEL READ COMMITTED",
    "SET NAMES ?",
})


def load_denylist(path: Union[str, Path]) -> FrozenSet[str]:
    """Read denylist entries from *path*, one literal per line.

    Blank lines and lines starting with ``#`` are ignored. A missing file
    yields an empty set.

    Raises:
        ReportIOError: If the file exists but cannot be read.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"No denylist file at {path}")
        return frozenset()
    except OSError as e:
        raise ReportIOError(f"{path}: cannot read denylist: {e}") from e

    entries = set()
    for line in content.splitlines():
        s = line.strip()
        if s and not s.startswith("#"):
            entries.add(s)
    logger.debug(f"Loaded {len(entries)} denylist entries from {path}")
    return frozenset(entries)


class FilterPolicy:
    """Pure inclusion predicate over raw digest rows."""

    def __init__(self, denylist: Optional[Iterable[str]] = None):
        self.denylist: FrozenSet[str] = (
            DEFAULT_DENYLIST if denylist is None else frozenset(denylist)
        )

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "FilterPolicy":
        """Built-in defaults extended with the entries in *path*."""
        extra = load_denylist(path) if path is not None else frozenset()
        return cls(DEFAULT_DENYLIST | extra)

    def excludes(self, row: RawRow) -> bool:
        text = row.text.strip()
        if text.startswith(EXCLUDED_PREFIXES):
            return True
        if row.fingerprint and row.fingerprint in self.denylist:
            return True
        return text in self.denylist
