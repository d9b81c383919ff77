"""
gostuck.core.parser - Event log parsing module.

Decoding of the binary runtime trace and symbolization happen outside
gostuck. This module reads the decoded event log those tools produce, as
JSON, and turns it into ordered Event objects with resolved stacks and
links.

Supported layouts:
    - A bare list of event objects
    - An object with an "events" list and an optional "stacks" table
      mapping stack ids to frame lists, referenced from events by id

Classes:
    EventLogParser: Parser for JSON event logs
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from gostuck.core.events import Event, Frame, Stack, parse_kind

logger = logging.getLogger(__name__)


class EventLogParser:
    """Parser for decoded trace event logs.

    Example:
        >>> parser = EventLogParser()
        >>> events = parser.parse_json(json_string)
        >>> print(events[0].state)
        EvGoCreate
    """

    def __init__(self) -> None:
        """Initialize the parser."""
        self._stack_table: Dict[str, Stack] = {}

    def parse_json(self, json_str: str) -> List[Event]:
        """Parse an event log from a JSON string.

        Args:
            json_str: JSON document containing the event log

        Returns:
            Events in chronological order

        Raises:
            json.JSONDecodeError: If JSON is invalid
            ValueError: If the event log is malformed
        """
        data = json.loads(json_str)
        return self.parse_data(data)

    def parse_data(self, data: Any) -> List[Event]:
        """Parse an event log from already-decoded JSON data.

        Args:
            data: List of events, or dict with "events" and optional "stacks"

        Returns:
            Events in chronological order, links resolved

        Raises:
            ValueError: If the event log is malformed
        """
        self._stack_table = {}

        if isinstance(data, list):
            raw_events = data
        elif isinstance(data, dict) and "events" in data:
            raw_events = data["events"]
            self._stack_table = self._parse_stack_table(data.get("stacks", {}))
        else:
            raise ValueError("Unsupported event log format: expected a list or an 'events' key")

        if not isinstance(raw_events, list):
            raise ValueError("'events' must be a list")

        events = [self._parse_single_event(raw, index) for index, raw in enumerate(raw_events)]

        # Links are indices into the file's event list, so resolve them
        # before any reordering.
        self._resolve_links(events, raw_events)

        return self._ensure_ordered(events)

    def _parse_stack_table(self, raw_stacks: Any) -> Dict[str, Stack]:
        """Parse the shared stack table.

        Args:
            raw_stacks: Mapping of stack id to list of frame objects

        Returns:
            Dictionary of stack id (as string) to Stack
        """
        if not isinstance(raw_stacks, dict):
            raise ValueError("'stacks' must be an object mapping ids to frame lists")
        return {
            str(stack_id): self._parse_frames(frames)
            for stack_id, frames in raw_stacks.items()
        }

    def _parse_frames(self, raw_frames: Any) -> Stack:
        if not isinstance(raw_frames, list):
            raise ValueError(f"Stack must be a list of frames, got {type(raw_frames).__name__}")
        return tuple(self._parse_frame(raw) for raw in raw_frames)

    def _parse_frame(self, raw_frame: Dict[str, Any]) -> Frame:
        """Parse a single frame object.

        Args:
            raw_frame: Dictionary with function, file and line

        Returns:
            Frame object
        """
        if not isinstance(raw_frame, dict):
            raise ValueError(f"Frame must be an object, got {type(raw_frame).__name__}")

        fn = (
            raw_frame.get("fn") or
            raw_frame.get("func") or
            raw_frame.get("function") or
            ""
        )
        file = raw_frame.get("file") or ""
        line = raw_frame.get("line") or 0

        return Frame(fn=str(fn), file=str(file), line=int(line))

    def _parse_single_event(self, raw_event: Any, index: int) -> Event:
        """Parse a single event object into an Event without its link.

        Args:
            raw_event: Dictionary containing event data
            index: Position of the event in the log (for error messages)

        Returns:
            Event object
        """
        if not isinstance(raw_event, dict):
            raise ValueError(f"Event {index} must be an object")

        raw_kind = raw_event.get("kind", raw_event.get("type"))
        if raw_kind is None:
            raise ValueError(f"Event {index} has no kind")
        kind = parse_kind(raw_kind)

        owner = raw_event.get("g", raw_event.get("goroutine"))
        if owner is None:
            raise ValueError(f"Event {index} has no owning goroutine")

        ts = raw_event.get("ts", raw_event.get("timestamp", 0))
        args = self._parse_args(raw_event.get("args", []), index)

        return Event(
            kind=kind,
            g=int(owner),
            ts=int(ts),
            args=args,
            stack=self._resolve_stack(raw_event.get("stack", raw_event.get("stk")), index),
        )

    def _parse_args(self, raw_args: Any, index: int) -> Tuple[int, ...]:
        if not isinstance(raw_args, list):
            raise ValueError(f"Event {index} args must be a list, got {type(raw_args).__name__}")
        try:
            return tuple(int(arg) for arg in raw_args)
        except (TypeError, ValueError):
            raise ValueError(f"Event {index} has non-integer args: {raw_args!r}") from None

    def _resolve_stack(self, raw_stack: Any, index: int) -> Stack:
        """Resolve an inline frame list or a stack table reference."""
        if raw_stack is None:
            return ()
        if isinstance(raw_stack, list):
            return self._parse_frames(raw_stack)
        if isinstance(raw_stack, (int, str)) and not isinstance(raw_stack, bool):
            key = str(raw_stack)
            # Stack id 0 means "no stack" in the trace format.
            if key == "0" and key not in self._stack_table:
                return ()
            if key not in self._stack_table:
                raise ValueError(f"Event {index} references unknown stack {raw_stack!r}")
            return self._stack_table[key]
        raise ValueError(f"Event {index} has an invalid stack: {raw_stack!r}")

    def _resolve_links(self, events: List[Event], raw_events: List[Dict[str, Any]]) -> None:
        """Attach linked events using the index stored in each raw event."""
        for index, (event, raw_event) in enumerate(zip(events, raw_events)):
            link_index: Optional[int] = raw_event.get("link")
            if link_index is None:
                continue
            if isinstance(link_index, bool) or not isinstance(link_index, int):
                raise ValueError(f"Event {index} has a non-integer link: {link_index!r}")
            if not 0 <= link_index < len(events):
                raise ValueError(f"Event {index} links to missing event {link_index}")
            event.link = events[link_index]

    def _ensure_ordered(self, events: List[Event]) -> List[Event]:
        """Return events sorted by timestamp, keeping the log order on ties."""
        if all(a.ts <= b.ts for a, b in _pairwise(events)):
            return events
        logger.warning("Event log is not in timestamp order, sorting %d events", len(events))
        return sorted(events, key=lambda event: event.ts)


def _pairwise(events: List[Event]) -> List[Tuple[Event, Event]]:
    return list(zip(events, events[1:]))
