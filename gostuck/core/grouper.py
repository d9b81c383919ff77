"""
gostuck.core.grouper - Similarity grouping of goroutines.

Thousands of goroutines stuck for the same reason usually share the same
name, last state and stack. This module collapses them into groups keyed
by a content digest of that triple, so a trace with 10,000 leaked pool
workers reports a single entry of size 10,000.

Grouping Strategy:
=================

Each goroutine gets a fingerprint: the MD5 digest of its name, last state
and rendered last stack. Goroutines with equal fingerprints form a group,
so no pairwise comparison is needed. Digest collisions are treated as
equality; this is a reporting aid, not a security boundary.

Groups are returned largest first. Groups of equal size keep the order in
which their first member was seen; no other tie-break is applied.

Classes:
    GoroutineGroup: Goroutines sharing one fingerprint
    GoroutineGrouper: Builds and ranks groups

Functions:
    fingerprint: Content digest for one goroutine
    group_goroutines: Group goroutines with a default GoroutineGrouper
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Union

from gostuck.core.events import render_stack
from gostuck.core.goroutines import Goroutine

logger = logging.getLogger(__name__)


def fingerprint(goroutine: Goroutine) -> str:
    """Compute the grouping key of a goroutine.

    Args:
        goroutine: Goroutine to fingerprint

    Returns:
        Hex MD5 digest of name, last state and rendered last stack
    """
    digest = hashlib.md5()
    # NUL separators keep ("ab", "c") and ("a", "bc") apart. Decoded JSON
    # may carry lone surrogates, which plain utf-8 refuses to encode.
    for part in (goroutine.name, goroutine.last_state, render_stack(goroutine.last_stack)):
        digest.update(part.encode("utf-8", errors="surrogatepass"))
        digest.update(b"\x00")
    return digest.hexdigest()


@dataclass
class GoroutineGroup:
    """Goroutines sharing an identical fingerprint.

    Behaves like a read-only sequence of its members. Member order is the
    order in which they were grouped.

    Attributes:
        fingerprint: Shared grouping key
        goroutines: Members of the group (never empty once built)
    """
    fingerprint: str
    goroutines: List[Goroutine] = field(default_factory=list)

    @property
    def representative(self) -> Goroutine:
        """The member used to describe the whole group."""
        return self.goroutines[0]

    @property
    def ids(self) -> List[int]:
        """Ids of all members."""
        return [g.id for g in self.goroutines]

    def __len__(self) -> int:
        return len(self.goroutines)

    def __iter__(self) -> Iterator[Goroutine]:
        return iter(self.goroutines)

    def __getitem__(self, index: int) -> Goroutine:
        return self.goroutines[index]


class GoroutineGrouper:
    """Groups goroutines by fingerprint and ranks the groups by size.

    Example:
        >>> grouper = GoroutineGrouper()
        >>> groups = grouper.group(unfinished_goroutines(goroutines))
        >>> for group in groups:
        ...     print(len(group), group.representative)
    """

    def group(
        self, goroutines: Union[Mapping[int, Goroutine], Iterable[Goroutine]]
    ) -> List[GoroutineGroup]:
        """Partition goroutines into groups of identical fingerprint.

        Args:
            goroutines: Mapping of id to Goroutine (only values are used)
                or an iterable of Goroutine

        Returns:
            Groups sorted by descending size. Empty list for empty input.
        """
        members = goroutines.values() if isinstance(goroutines, Mapping) else goroutines

        groups: Dict[str, GoroutineGroup] = {}
        for goroutine in members:
            key = fingerprint(goroutine)
            if key not in groups:
                groups[key] = GoroutineGroup(fingerprint=key)
            groups[key].goroutines.append(goroutine)

        # sorted() is stable, so equal-sized groups stay in first-seen order
        ranked = sorted(groups.values(), key=len, reverse=True)

        logger.debug("Grouped goroutines into %d groups", len(ranked))
        return ranked


def group_goroutines(
    goroutines: Union[Mapping[int, Goroutine], Iterable[Goroutine]]
) -> List[GoroutineGroup]:
    """Group goroutines with a default GoroutineGrouper."""
    return GoroutineGrouper().group(goroutines)
