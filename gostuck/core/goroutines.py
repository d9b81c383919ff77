"""
gostuck.core.goroutines - Goroutine lifecycle reconstruction.

This module turns the flat, chronologically ordered event log into one
record per goroutine, holding its creation and termination times, the
last state and stack it was seen in, and who created it.

Reconstruction is done in two passes over the same events:

1. State accumulation: GoCreate registers a goroutine, GoEnd records its
   termination, and every event updates the last state and stack of the
   goroutine that owns it.
2. Parent linkage: GoCreate events that link to the spawned goroutine's
   first event are used to attach the creator's id and stack to the
   child. This runs after every goroutine has been registered, since a
   link may point at a goroutine whose record does not exist yet when
   the creating event is first seen.

Inconsistent input (events for goroutines that were never created,
links to unknown goroutines) is skipped rather than treated as an error.

Classes:
    Goroutine: Reconstructed lifecycle record of one goroutine
    LifecycleReconstructor: Builds Goroutine records from events

Functions:
    events_to_goroutines: Reconstruct goroutines from events
    unfinished_goroutines: Filter goroutines that never terminated
    trace_end: Timestamp of the last event in the log
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from gostuck.core.events import Event, EventKind, Stack, indent_stack, state_name

logger = logging.getLogger(__name__)


@dataclass
class Goroutine:
    """Lifecycle record of a single goroutine.

    Attributes:
        id: Goroutine identifier, unique within one trace
        parent_id: Id of the creating goroutine (None if not observed)
        parent_stack: Creator's stack at the moment of creation
        name: Innermost function of the first non-empty stack seen for
            this goroutine ("" until one is seen)
        created_at: Timestamp of the creation event
        destroyed_at: Timestamp of the termination event (None while
            the goroutine is unfinished)
        last_state: Display name of the most recent event kind
        last_stack: Stack captured by the most recent event
    """
    id: int
    parent_id: Optional[int] = None
    parent_stack: Stack = ()
    name: str = ""
    created_at: Optional[int] = None
    destroyed_at: Optional[int] = None
    last_state: str = ""
    last_stack: Stack = ()

    @property
    def finished(self) -> bool:
        """Whether a termination event was observed."""
        return self.destroyed_at is not None

    def lifetime(self, end: int) -> Optional[int]:
        """Time between creation and termination, or `end` if still running.

        Args:
            end: Timestamp used for unfinished goroutines (usually trace end)

        Returns:
            Elapsed time, or None if the creation time is unknown
        """
        if self.created_at is None:
            return None
        stop = self.destroyed_at if self.destroyed_at is not None else end
        return stop - self.created_at

    def render(self) -> str:
        """Render as `name [state]:` followed by the tab-indented last stack."""
        return f"{self.name} [{self.last_state}]:\n{indent_stack(self.last_stack)}"

    def __str__(self) -> str:
        return self.render()


class LifecycleReconstructor:
    """Reconstructs goroutine lifecycle records from trace events.

    The reconstructor exclusively owns the mapping it builds. Consumers of
    the result (filter, grouper, reporter) only read it.

    Attributes:
        skipped_events: Number of events in the last run that referenced
            a goroutine without a record

    Example:
        >>> reconstructor = LifecycleReconstructor()
        >>> goroutines = reconstructor.reconstruct(events)
        >>> print(goroutines[1].last_state)
        EvGoBlockRecv
    """

    def __init__(self) -> None:
        """Initialize the reconstructor."""
        self._goroutines: Dict[int, Goroutine] = {}
        self.skipped_events: int = 0

    def reconstruct(self, events: Sequence[Event]) -> Dict[int, Goroutine]:
        """Build goroutine records from an ordered event sequence.

        Args:
            events: Events in chronological order

        Returns:
            Dictionary mapping goroutine id to its Goroutine record.
            Empty for an empty event sequence.
        """
        self._goroutines = {}
        self.skipped_events = 0

        for event in events:
            self._accumulate(event)

        # Second pass: every goroutine is registered now, so links can be
        # resolved regardless of where the child's creation appeared.
        for event in events:
            self._link_parent(event)

        logger.debug(
            "Reconstructed %d goroutines from %d events (%d events skipped)",
            len(self._goroutines), len(events), self.skipped_events,
        )
        return self._goroutines

    def _accumulate(self, event: Event) -> None:
        """Apply one event to the goroutine records (first pass)."""
        if event.kind == EventKind.GO_CREATE:
            self._register(event)
        elif event.kind == EventKind.GO_END:
            self._terminate(event)

        goroutine = self._goroutines.get(event.g)
        if goroutine is None:
            self.skipped_events += 1
            return

        goroutine.last_state = state_name(event.kind)
        goroutine.last_stack = event.stack
        if event.stack and not goroutine.name:
            goroutine.name = event.stack[0].fn

    def _register(self, event: Event) -> None:
        """Create a record for the goroutine spawned by a GoCreate event."""
        if not event.args:
            logger.debug("GoCreate at ts=%d carries no goroutine id, ignoring", event.ts)
            return
        goroutine_id = event.args[0]
        self._goroutines[goroutine_id] = Goroutine(id=goroutine_id, created_at=event.ts)

    def _terminate(self, event: Event) -> None:
        """Record termination time; GoEnd for an unknown goroutine is a no-op."""
        goroutine = self._goroutines.get(event.g)
        if goroutine is None:
            logger.debug("GoEnd for unknown goroutine %d at ts=%d", event.g, event.ts)
            return
        goroutine.destroyed_at = event.ts

    def _link_parent(self, event: Event) -> None:
        """Attach creator id and stack to the child of a GoCreate (second pass)."""
        if event.kind != EventKind.GO_CREATE or event.link is None:
            return

        child = self._goroutines.get(event.link.g)
        if child is None:
            logger.debug(
                "GoCreate at ts=%d links to untracked goroutine %d", event.ts, event.link.g
            )
            return
        if child.parent_id is not None:
            # Linkage is written once; a second creator is inconsistent input.
            logger.debug("Goroutine %d already linked to parent %d", child.id, child.parent_id)
            return

        child.parent_id = event.g
        child.parent_stack = event.stack


def events_to_goroutines(events: Sequence[Event]) -> Dict[int, Goroutine]:
    """Reconstruct goroutine records from events.

    Args:
        events: Events in chronological order

    Returns:
        Dictionary mapping goroutine id to Goroutine
    """
    return LifecycleReconstructor().reconstruct(events)


def unfinished_goroutines(goroutines: Dict[int, Goroutine]) -> Dict[int, Goroutine]:
    """Return the goroutines that never terminated.

    Args:
        goroutines: Reconstructed goroutine mapping

    Returns:
        New dictionary with only the goroutines whose destroyed_at is unset
    """
    return {gid: g for gid, g in goroutines.items() if not g.finished}


def trace_end(events: Sequence[Event]) -> int:
    """Timestamp of the latest event, 0 for an empty log."""
    if not events:
        return 0
    return max(event.ts for event in events)
