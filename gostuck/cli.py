"""
gostuck.cli - Command-line interface for gostuck.

This module provides a CLI that reads a decoded trace event log, finds
goroutines that never terminated, and prints them grouped by name, state
and stack, largest group first.

Usage:
    gostuck <events_file> [--output/-o <file>] [--top/-n <count>] [--format <format>]

Examples:
    gostuck events.json
    gostuck events.json -n 5 --parents
    gostuck events.json --format json -o leaks.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from gostuck import __version__
from gostuck.core.events import Event
from gostuck.core.goroutines import (
    Goroutine,
    LifecycleReconstructor,
    trace_end,
    unfinished_goroutines,
)
from gostuck.core.grouper import GoroutineGroup, GoroutineGrouper
from gostuck.core.parser import EventLogParser
from gostuck.core.report import ReportGenerator


def parse_args(args: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="gostuck",
        description="Report goroutines that never finished, grouped by state and stack",
        epilog="Example: gostuck events.json -n 5 --parents",
    )

    parser.add_argument(
        "input_file",
        type=str,
        help="Path to the decoded trace event log (JSON format)",
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file path (defaults to stdout)",
    )

    parser.add_argument(
        "-n", "--top",
        type=int,
        default=None,
        help="Maximum number of groups to report (default: all)",
    )

    parser.add_argument(
        "--min-count",
        type=int,
        default=1,
        help="Only report groups with at least this many goroutines (default: 1)",
    )

    parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format: text report or json (default: text)",
    )

    parser.add_argument(
        "--parents",
        action="store_true",
        help="Show which goroutine created each group's representative",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def load_events(input_path: str) -> List[Event]:
    """Load and parse events from a JSON event log.

    Args:
        input_path: Path to the input JSON file

    Returns:
        Events in chronological order

    Raises:
        FileNotFoundError: If the input file doesn't exist
        json.JSONDecodeError: If the file contains invalid JSON
        ValueError: If the event log is malformed
    """
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    with open(path, "r", encoding="utf-8") as f:
        json_str = f.read()

    parser = EventLogParser()
    return parser.parse_json(json_str)


def find_stuck_groups(goroutines: Dict[int, Goroutine]) -> List[GoroutineGroup]:
    """Group the unfinished goroutines of a reconstructed mapping.

    Args:
        goroutines: Reconstructed goroutine mapping

    Returns:
        Groups of unfinished goroutines, largest first
    """
    grouper = GoroutineGrouper()
    return grouper.group(unfinished_goroutines(goroutines))


def write_output(content: str, output_path: str | None) -> None:
    """Write content to output file or stdout.

    Args:
        content: The content to write
        output_path: Path to output file, or None for stdout. Empty
            content prints nothing.
    """
    # Lone surrogates from the event log are written as \udXXX escapes
    content = content.encode("utf-8", errors="backslashreplace").decode("utf-8")

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    elif content:
        print(content, end="" if content.endswith("\n") else "\n")


def main(args: List[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        parsed_args = parse_args(args)

        if parsed_args.verbose:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )
            print(f"Loading events from: {parsed_args.input_file}", file=sys.stderr)

        events = load_events(parsed_args.input_file)

        reconstructor = LifecycleReconstructor()
        goroutines = reconstructor.reconstruct(events)

        if parsed_args.verbose:
            print(
                f"Reconstructed {len(goroutines)} goroutines from {len(events)} events",
                file=sys.stderr,
            )

        groups = find_stuck_groups(goroutines)

        if parsed_args.verbose:
            print(
                f"Found {sum(len(g) for g in groups)} unfinished goroutines "
                f"in {len(groups)} groups",
                file=sys.stderr,
            )

        generator = ReportGenerator()
        if parsed_args.format == "json":
            output = generator.generate_json(
                groups,
                trace_end(events),
                top=parsed_args.top,
                min_count=parsed_args.min_count,
                goroutines=goroutines,
            )
        else:
            output = generator.generate(
                groups,
                top=parsed_args.top,
                min_count=parsed_args.min_count,
                show_parents=parsed_args.parents,
                goroutines=goroutines,
            )

        write_output(output, parsed_args.output)

        if parsed_args.verbose and parsed_args.output:
            print(f"Output written to: {parsed_args.output}", file=sys.stderr)

        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in input file: {e}", file=sys.stderr)
        return 2

    except ValueError as e:
        print(f"Error: Invalid event log: {e}", file=sys.stderr)
        return 3

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 4


if __name__ == "__main__":
    sys.exit(main())
