"""Common Queries — intersect reports from many shards and rank them.

Reports from different servers are joined on (schema, text), since
fingerprints may differ between instances while the normalized text is
identical. Only queries present in every report survive. For each one,
sources are ranked by count so the busiest shard comes first.

Ranking is fully deterministic:
- sources: count descending, then source name ascending
- queries: top count descending, then (schema, text) ascending
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import ConfigError, EmptyResultError
from .report.codec import read_report
from .report.model import Report

logger = logging.getLogger(__name__)

# Queries whose busiest shard saw fewer executions are not worth showing.
MIN_COUNT = 1000


@dataclass(frozen=True)
class SourceCount:
    """Executions of one query on one source."""
    source: str
    count: int


@dataclass
class IntersectionEntry:
    """A query present in every input report, with ranked sources."""
    schema: str
    text: str
    sources: List[SourceCount] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.schema, self.text)

    @property
    def top_count(self) -> int:
        return self.sources[0].count if self.sources else 0

    @property
    def lead_pct(self) -> Optional[float]:
        """Percentage by which the top source exceeds the runner-up.

        None when there is no runner-up or the runner-up count is zero.
        """
        if len(self.sources) < 2 or self.sources[1].count == 0:
            return None
        return (self.sources[0].count / self.sources[1].count - 1) * 100


def count_by_text(report: Report) -> Dict[Tuple[str, str], int]:
    """Sum counts per (schema, text); duplicates within a report add up."""
    counts: Dict[Tuple[str, str], int] = defaultdict(int)
    for r in report.records:
        counts[r.text_key] += r.count
    return dict(counts)


def intersect_reports(
    reports: Sequence[Report],
    min_count: int = MIN_COUNT,
) -> List[IntersectionEntry]:
    """Find queries common to all *reports* and rank their sources.

    Args:
        reports: Decoded reports; each report's ``source`` names it.
        min_count: Entries whose top source count is below this are dropped.

    Returns:
        Entries sorted by top count descending.

    Raises:
        ConfigError: If no reports are given.
        EmptyResultError: If no query is common to every report, or none
            of the common queries reaches ``min_count``.
    """
    if not reports:
        raise ConfigError("no files to process")

    per_source = [(rep.source, count_by_text(rep)) for rep in reports]

    common = set(per_source[0][1])
    for _, counts in per_source[1:]:
        common &= counts.keys()
    if not common:
        raise EmptyResultError("no common queries across all files")

    entries: List[IntersectionEntry] = []
    for schema, text in common:
        sources = sorted(
            (SourceCount(source=name, count=counts[(schema, text)]) for name, counts in per_source),
            key=lambda sc: (-sc.count, sc.source),
        )
        if sources[0].count < min_count:
            continue
        entries.append(IntersectionEntry(schema=schema, text=text, sources=sources))

    logger.debug(
        f"Intersection: {len(reports)} reports, {len(common)} common keys, "
        f"{len(entries)} at or above min_count={min_count}"
    )
    if not entries:
        raise EmptyResultError(
            f"no common queries with at least {min_count} executions on any source"
        )

    entries.sort(key=lambda e: (-e.top_count, e.schema, e.text))
    return entries


# ---------------------------------------------------------------------------
# Label trimming
# ---------------------------------------------------------------------------


def common_suffix(labels: Sequence[str]) -> str:
    """Longest suffix shared by every label.

    Labels are compared reversed: the longest common prefix of the
    lexicographically smallest and largest reversed labels is shared by
    every label in between. Fewer than two labels share nothing.
    """
    if len(labels) < 2:
        return ""
    reversed_labels = [s[::-1] for s in labels]
    lo, hi = min(reversed_labels), max(reversed_labels)
    n = 0
    for a, b in zip(lo, hi):
        if a != b:
            break
        n += 1
    return lo[:n][::-1]


def display_labels(sources: Sequence[str]) -> Dict[str, str]:
    """Map each source path to its base name minus the shared suffix.

    The suffix is computed over the paths as given. A base name that does
    not end with it, or that the suffix would empty, is shown whole.
    """
    paths = list(dict.fromkeys(str(Path(src)) for src in sources))
    suffix = common_suffix(paths)
    labels: Dict[str, str] = {}
    for src in paths:
        name = Path(src).name
        if suffix and name.endswith(suffix) and len(name) > len(suffix):
            name = name[: len(name) - len(suffix)]
        labels[src] = name
    return labels


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_intersection(
    entries: Sequence[IntersectionEntry],
    sources: Sequence[str],
    top: bool = False,
) -> List[str]:
    """Render entries as text lines.

    Each entry is a ``[schema] text`` header followed by one
    ``\\t<count>\\t<label>`` line per source; blocks are separated by a
    blank line. With *top*, only the busiest source is listed, annotated
    with its lead over the runner-up when there is one.
    """
    labels = display_labels(sources)
    lines: List[str] = []
    for i, entry in enumerate(entries):
        if i:
            lines.append("")
        lines.append(f"[{entry.schema}] {entry.text}")
        shown = entry.sources[:1] if top else entry.sources
        for sc in shown:
            line = f"\t{sc.count}\t{labels.get(str(Path(sc.source)), sc.source)}"
            if top and entry.lead_pct is not None:
                line += f" ({entry.lead_pct:.2f}% ahead)"
            lines.append(line)
    return lines


def compare_many(
    paths: Sequence[Union[str, Path]],
    min_count: int = MIN_COUNT,
) -> List[IntersectionEntry]:
    """Read every report in *paths*, then intersect them.

    All files are decoded before the join starts. A path given more than
    once is read once.
    """
    if not paths:
        raise ConfigError("no files to process")
    unique = list(dict.fromkeys(Path(p) for p in paths))
    reports = [read_report(p) for p in unique]
    return intersect_reports(reports, min_count=min_count)
