"""
gostuck - Find goroutines that never finished in a runtime execution trace.

This package reconstructs per-goroutine lifecycle state from decoded trace
events, keeps the goroutines that never reached a terminal state, and
groups them by name, last state and stack so that thousands of leaked
goroutines collapse into a handful of patterns.

Example:
    >>> from gostuck import EventLogParser, LifecycleReconstructor, GoroutineGrouper
    >>> events = EventLogParser().parse_json(json_str)
    >>> goroutines = LifecycleReconstructor().reconstruct(events)
    >>> groups = GoroutineGrouper().group(unfinished_goroutines(goroutines))
    >>> print(len(groups[0]), groups[0].representative)
"""

__version__ = "0.1.0"
__author__ = "gostuck contributors"
__email__ = "maintainers@gostuck.dev"

from gostuck.core.events import Event, EventKind, Frame, STATE_NAMES, state_name
from gostuck.core.parser import EventLogParser
from gostuck.core.goroutines import (
    Goroutine,
    LifecycleReconstructor,
    events_to_goroutines,
    unfinished_goroutines,
)
from gostuck.core.grouper import GoroutineGroup, GoroutineGrouper, group_goroutines
from gostuck.core.stats import GroupStats, LifetimeAnalyzer
from gostuck.core.report import ReportGenerator

__all__ = [
    "Event",
    "EventKind",
    "Frame",
    "STATE_NAMES",
    "state_name",
    "EventLogParser",
    "Goroutine",
    "LifecycleReconstructor",
    "events_to_goroutines",
    "unfinished_goroutines",
    "GoroutineGroup",
    "GoroutineGrouper",
    "group_goroutines",
    "GroupStats",
    "LifetimeAnalyzer",
    "ReportGenerator",
]
