"""
gostuck.core.report - Text and JSON rendering of goroutine groups.

The text report prints one block per group: the group size followed by
its representative goroutine, `name [state]:` and the tab-indented stack.

Classes:
    ReportGenerator: Renders grouped goroutines as text or JSON
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from gostuck.core.events import indent_stack, render_stack
from gostuck.core.goroutines import Goroutine
from gostuck.core.grouper import GoroutineGroup
from gostuck.core.stats import LifetimeAnalyzer
from gostuck.utils.tree import get_ancestors, get_descendants


class ReportGenerator:
    """Renders ranked goroutine groups.

    Example:
        >>> generator = ReportGenerator()
        >>> print(generator.generate(groups))
        100 main.worker [EvGoBlockRecv]:
            main.worker [/app/worker.go:42]
    """

    def select(
        self,
        groups: Sequence[GoroutineGroup],
        top: Optional[int] = None,
        min_count: int = 1,
    ) -> List[GoroutineGroup]:
        """Apply the size threshold and the group limit.

        Args:
            groups: Groups sorted by descending size
            top: Maximum number of groups to keep (None keeps all)
            min_count: Smallest group size to keep

        Returns:
            Selected groups, order preserved
        """
        selected = [group for group in groups if len(group) >= min_count]
        if top is not None:
            selected = selected[:max(top, 0)]
        return selected

    def generate(
        self,
        groups: Sequence[GoroutineGroup],
        top: Optional[int] = None,
        min_count: int = 1,
        show_parents: bool = False,
        goroutines: Optional[Mapping[int, Goroutine]] = None,
    ) -> str:
        """Render groups as a text report.

        Args:
            groups: Groups sorted by descending size
            top: Maximum number of groups to render
            min_count: Smallest group size to render
            show_parents: Append the creator chain of each representative
            goroutines: Full goroutine mapping, needed to resolve creators
                beyond the direct parent id

        Returns:
            Report text; empty string when there is nothing to report
        """
        blocks: List[str] = []
        for group in self.select(groups, top=top, min_count=min_count):
            block = f"{len(group)} {group.representative.render()}"
            if show_parents:
                block += self._render_creator(group.representative, goroutines or {})
            blocks.append(block + "\n\n")
        return "".join(blocks)

    def _render_creator(
        self, goroutine: Goroutine, goroutines: Mapping[int, Goroutine]
    ) -> str:
        lines: List[str] = []

        # One "created by" entry per hop: each node's creator plus the
        # creator's stack at the moment it spawned that node.
        ancestors = get_ancestors(goroutine, goroutines)
        for hop, child in enumerate([goroutine] + ancestors):
            if child.parent_id is None:
                break
            creator = ancestors[hop] if hop < len(ancestors) else None
            name = creator.name if creator is not None and creator.name else "?"
            lines.append(f"created by {name} (goroutine {child.parent_id})")
            if child.parent_stack:
                lines.append(indent_stack(child.parent_stack))
            if creator is None:
                break

        spawned = get_descendants(goroutine, goroutines)
        if spawned:
            lines.append(f"spawned {len(spawned)} goroutines")

        if not lines:
            return ""
        return "\n" + "\n".join(lines)

    def generate_json(
        self,
        groups: Sequence[GoroutineGroup],
        end: int,
        top: Optional[int] = None,
        min_count: int = 1,
        goroutines: Optional[Mapping[int, Goroutine]] = None,
    ) -> str:
        """Render groups as a JSON document.

        Args:
            groups: Groups sorted by descending size
            end: Timestamp of the end of the trace, used for member ages
            top: Maximum number of groups to include
            min_count: Smallest group size to include
            goroutines: Full goroutine mapping, used for creator chains

        Returns:
            JSON string
        """
        analyzer = LifetimeAnalyzer()
        selected = self.select(groups, top=top, min_count=min_count)

        output: Dict[str, Any] = {
            "traceEnd": end,
            "unfinishedGoroutines": sum(len(group) for group in groups),
            "totalGroups": len(groups),
            "groups": [
                self._group_to_dict(group, analyzer, end, goroutines or {})
                for group in selected
            ],
        }
        return json.dumps(output, indent=2)

    def _group_to_dict(
        self,
        group: GoroutineGroup,
        analyzer: LifetimeAnalyzer,
        end: int,
        goroutines: Mapping[int, Goroutine],
    ) -> Dict[str, Any]:
        representative = group.representative
        stack_text = render_stack(representative.last_stack)
        return {
            "count": len(group),
            "fingerprint": group.fingerprint,
            "name": representative.name,
            "state": representative.last_state,
            "stack": stack_text.split("\n") if stack_text else [],
            "goroutineIds": group.ids,
            "parentId": representative.parent_id,
            "ancestors": [g.id for g in get_ancestors(representative, goroutines)],
            "descendants": len(get_descendants(representative, goroutines)),
            "stats": analyzer.summarize(group, end).to_dict(),
        }
