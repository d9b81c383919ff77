"""
gostuck.core.stats - Lifetime statistics for goroutine groups.

For a group of unfinished goroutines the age of its members tells apart
a steady leak (ages spread over the whole trace) from a single burst
(all members created at about the same time). Ages are measured from
each member's creation to the end of the trace.

Classes:
    GroupStats: Summary numbers for one group
    LifetimeAnalyzer: Computes GroupStats with numpy
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np

from gostuck.core.grouper import GoroutineGroup


@dataclass
class GroupStats:
    """Summary of a group's member lifetimes.

    Age fields are None when no member has a known creation time.

    Attributes:
        count: Number of goroutines in the group
        min_age: Age of the youngest member
        median_age: Median member age
        max_age: Age of the oldest member
        oldest_created_at: Earliest creation timestamp in the group
        distinct_parents: Number of distinct creating goroutines
    """
    count: int
    min_age: Optional[int] = None
    median_age: Optional[float] = None
    max_age: Optional[int] = None
    oldest_created_at: Optional[int] = None
    distinct_parents: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)


class LifetimeAnalyzer:
    """Computes lifetime statistics for goroutine groups.

    Example:
        >>> analyzer = LifetimeAnalyzer()
        >>> stats = analyzer.summarize(groups[0], trace_end(events))
        >>> print(stats.median_age)
    """

    def ages(self, group: GoroutineGroup, end: int) -> np.ndarray:
        """Ages of members with a known creation time.

        Args:
            group: Group to analyze
            end: Timestamp of the end of the trace

        Returns:
            1-D int64 array, possibly empty
        """
        values = [g.lifetime(end) for g in group]
        return np.array([v for v in values if v is not None], dtype=np.int64)

    def summarize(self, group: GoroutineGroup, end: int) -> GroupStats:
        """Compute GroupStats for a group.

        Args:
            group: Group to analyze
            end: Timestamp of the end of the trace

        Returns:
            GroupStats for the group
        """
        parents = {g.parent_id for g in group if g.parent_id is not None}
        stats = GroupStats(count=len(group), distinct_parents=len(parents))

        ages = self.ages(group, end)
        if ages.size == 0:
            return stats

        created = np.array(
            [g.created_at for g in group if g.created_at is not None], dtype=np.int64
        )
        stats.min_age = int(np.min(ages))
        stats.median_age = float(np.median(ages))
        stats.max_age = int(np.max(ages))
        stats.oldest_created_at = int(np.min(created))
        return stats
