"""
gostuck.core - Core modules for goroutine reconstruction and grouping.

This subpackage contains the main functionality:
- events: Event, Frame and the event kind table
- parser: EventLogParser for decoded JSON event logs
- goroutines: Goroutine records, LifecycleReconstructor and the unfinished filter
- grouper: GoroutineGrouper for fingerprint-based grouping
- stats: LifetimeAnalyzer for per-group age statistics
- report: ReportGenerator for text and JSON output
"""

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
