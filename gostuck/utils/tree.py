"""
gostuck.utils.tree - Ancestry helpers for reconstructed goroutines.

Parent linkage recorded during reconstruction forms a forest: each
goroutine points at the goroutine that created it. These helpers walk
that forest over the id -> Goroutine mapping.

Functions:
    get_ancestors: Creator chain of a goroutine, nearest first
    get_children: Goroutines created directly by a goroutine
    get_descendants: All goroutines transitively created by a goroutine
"""

from __future__ import annotations

from typing import List, Mapping, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from gostuck.core.goroutines import Goroutine


def get_ancestors(
    goroutine: "Goroutine", goroutines: Mapping[int, "Goroutine"]
) -> List["Goroutine"]:
    """Get the creator chain of a goroutine.

    Walks parent links until a goroutine without a known creator, or
    whose creator is not in the mapping, is reached.

    Args:
        goroutine: Goroutine to start from
        goroutines: Reconstructed goroutine mapping

    Returns:
        Ancestors ordered from direct creator to the oldest known one.
        Empty list if the creator is unknown.

    Example:
        >>> chain = get_ancestors(goroutines[42], goroutines)
        >>> print(" <- ".join(g.name for g in chain))
    """
    ancestors: List["Goroutine"] = []
    seen: Set[int] = {goroutine.id}

    parent_id = goroutine.parent_id
    while parent_id is not None and parent_id not in seen:
        parent = goroutines.get(parent_id)
        if parent is None:
            break
        ancestors.append(parent)
        seen.add(parent_id)
        parent_id = parent.parent_id

    return ancestors


def get_children(
    goroutine: "Goroutine", goroutines: Mapping[int, "Goroutine"]
) -> List["Goroutine"]:
    """Get goroutines created directly by `goroutine`, ordered by id."""
    children = [g for g in goroutines.values() if g.parent_id == goroutine.id]
    return sorted(children, key=lambda g: g.id)


def get_descendants(
    goroutine: "Goroutine", goroutines: Mapping[int, "Goroutine"]
) -> List["Goroutine"]:
    """Get all goroutines transitively created by `goroutine`.

    Args:
        goroutine: Goroutine to start from
        goroutines: Reconstructed goroutine mapping

    Returns:
        Descendants in breadth-first order, excluding `goroutine` itself
    """
    result: List["Goroutine"] = []
    seen: Set[int] = {goroutine.id}
    queue = [goroutine]
    while queue:
        current = queue.pop(0)
        for child in get_children(current, goroutines):
            if child.id in seen:
                continue
            seen.add(child.id)
            result.append(child)
            queue.append(child)

    return result
