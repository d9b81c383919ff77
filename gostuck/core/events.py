"""
gostuck.core.events - Trace event model and event kind table.

This module holds the read-only data consumed by the reconstruction pass:
decoded runtime trace events, their resolved call stacks, and the static
table mapping numeric event kinds to human-readable state names.

Classes:
    EventKind: Closed enumeration of runtime trace event kinds
    Frame: A single resolved stack frame
    Event: A single decoded trace event

Functions:
    state_name: Display name for an event kind
    parse_kind: Convert an int or name into an EventKind
    render_stack: Render a stack one frame per line
    indent_stack: Render a stack with every line tab-indented
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Optional, Tuple, Union


class EventKind(IntEnum):
    """Event kinds defined by the runtime trace format."""

    NONE = 0
    BATCH = 1
    FREQUENCY = 2
    STACK = 3
    GOMAXPROCS = 4
    PROC_START = 5
    PROC_STOP = 6
    GC_START = 7
    GC_DONE = 8
    GC_SCAN_START = 9
    GC_SCAN_DONE = 10
    GC_SWEEP_START = 11
    GC_SWEEP_DONE = 12
    GO_CREATE = 13
    GO_START = 14
    GO_END = 15
    GO_STOP = 16
    GO_SCHED = 17
    GO_PREEMPT = 18
    GO_SLEEP = 19
    GO_BLOCK = 20
    GO_UNBLOCK = 21
    GO_BLOCK_SEND = 22
    GO_BLOCK_RECV = 23
    GO_BLOCK_SELECT = 24
    GO_BLOCK_SYNC = 25
    GO_BLOCK_COND = 26
    GO_BLOCK_NET = 27
    GO_SYSCALL = 28
    GO_SYS_EXIT = 29
    GO_SYS_BLOCK = 30
    GO_WAITING = 31
    GO_IN_SYSCALL = 32
    HEAP_ALLOC = 33
    NEXT_GC = 34
    TIMER_GOROUTINE = 35
    FUTILE_WAKEUP = 36
    COUNT = 37


# Display names as they appear in the trace format documentation.
STATE_NAMES: Dict[int, str] = {
    0: "EvNone",
    1: "EvBatch",
    2: "EvFrequency",
    3: "EvStack",
    4: "EvGomaxprocs",
    5: "EvProcStart",
    6: "EvProcStop",
    7: "EvGCStart",
    8: "EvGCDone",
    9: "EvGCScanStart",
    10: "EvGCScanDone",
    11: "EvGCSweepStart",
    12: "EvGCSweepDone",
    13: "EvGoCreate",
    14: "EvGoStart",
    15: "EvGoEnd",
    16: "EvGoStop",
    17: "EvGoSched",
    18: "EvGoPreempt",
    19: "EvGoSleep",
    20: "EvGoBlock",
    21: "EvGoUnblock",
    22: "EvGoBlockSend",
    23: "EvGoBlockRecv",
    24: "EvGoBlockSelect",
    25: "EvGoBlockSync",
    26: "EvGoBlockCond",
    27: "EvGoBlockNet",
    28: "EvGoSysCall",
    29: "EvGoSysExit",
    30: "EvGoSysBlock",
    31: "EvGoWaiting",
    32: "EvGoInSyscall",
    33: "EvHeapAlloc",
    34: "EvNextGC",
    35: "EvTimerGoroutine",
    36: "EvFutileWakeup",
    37: "EvCount",
}

_KINDS_BY_NAME: Dict[str, EventKind] = {
    name: EventKind(value) for value, name in STATE_NAMES.items()
}


def state_name(kind: int) -> str:
    """Return the display name for an event kind.

    Args:
        kind: Numeric event kind (EventKind members are accepted)

    Returns:
        Name such as "EvGoBlockRecv", or "EvUnknown(<n>)" for kinds
        outside the table
    """
    name = STATE_NAMES.get(int(kind))
    if name is None:
        return f"EvUnknown({int(kind)})"
    return name


def parse_kind(value: Union[int, str]) -> EventKind:
    """Convert a numeric kind or a kind name into an EventKind.

    Accepts integers, display names ("EvGoCreate") and bare names
    ("GoCreate").

    Raises:
        ValueError: If the value does not name a known event kind
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid event kind: {value!r}")
    if isinstance(value, int):
        try:
            return EventKind(value)
        except ValueError:
            raise ValueError(f"Unknown event kind: {value}") from None
    if isinstance(value, str):
        key = value if value.startswith("Ev") else f"Ev{value}"
        if key in _KINDS_BY_NAME:
            return _KINDS_BY_NAME[key]
        raise ValueError(f"Unknown event kind: {value!r}")
    raise ValueError(f"Invalid event kind: {value!r}")


@dataclass(frozen=True)
class Frame:
    """A resolved stack frame.

    Attributes:
        fn: Fully qualified function name
        file: Source file path
        line: Line number within the file
    """
    fn: str
    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.fn} [{self.file}:{self.line}]"


# Index 0 is the innermost (currently executing) frame.
Stack = Tuple[Frame, ...]


def render_stack(stack: Stack) -> str:
    """Render a stack as text, one `fn [file:line]` frame per line."""
    return "\n".join(str(frame) for frame in stack)


def indent_stack(stack: Stack, prefix: str = "\t") -> str:
    """Render a stack with every line prefixed by `prefix`."""
    return prefix + render_stack(stack).replace("\n", "\n" + prefix)


@dataclass
class Event:
    """A single decoded trace event.

    Events are produced by the event source and treated as read-only by
    everything downstream.

    Attributes:
        kind: Event kind
        g: Identifier of the goroutine that owns the event
        ts: Timestamp of the event
        args: Kind-specific arguments (for GoCreate, args[0] is the new
            goroutine's id)
        stack: Resolved call stack at the time of the event
        link: Causally related event, e.g. a GoCreate links to the
            first GoStart of the goroutine it spawned
    """
    kind: int
    g: int
    ts: int
    args: Tuple[int, ...] = ()
    stack: Stack = ()
    link: Optional[Event] = field(default=None, repr=False, compare=False)

    @property
    def state(self) -> str:
        """Display name of this event's kind."""
        return state_name(self.kind)
