"""
gostuck.utils - Utility functions for goroutine ancestry.

This subpackage contains utility functions:
- tree: Functions for walking creator/child links between goroutines
"""

from gostuck.utils.tree import (
    get_ancestors,
    get_children,
    get_descendants,
)

__all__ = [
    "get_ancestors",
    "get_children",
    "get_descendants",
]
