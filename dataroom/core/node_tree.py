"""Node Tree — pure subtree resolution over a room's (id, parent) pairs.

Invariants:
    - The returned subtree always contains the root when the root is present
    - Only nodes reachable through parent links from the root are included
    - Terminates on malformed input (a parent loop cannot cause infinite iteration)
    - subtree_levels()[k] holds the nodes at depth k below the root

Design Decisions:
    - Breadth-first over an adjacency map built once: O(n) per deletion, and the
      caller feeds it one room's rows, never the whole table
    - Levels let the shell delete leaves before their parents, so no row is removed
      by a foreign-key cascade the delete statement did not report
"""

from collections.abc import Hashable, Iterable
from typing import TypeVar

K = TypeVar("K", bound=Hashable)


def build_children_index(
    links: Iterable[tuple[K, K | None]],
) -> dict[K, list[K]]:
    """Map parent id -> child ids."""
    children: dict[K, list[K]] = {}
    for node_id, parent_id in links:
        if parent_id is not None:
            children.setdefault(parent_id, []).append(node_id)
    return children


def subtree_levels(
    links: Iterable[tuple[K, K | None]], root_id: K,
) -> list[list[K]]:
    """Nodes of root_id's subtree grouped by depth, root first.

    Returns an empty list when root_id is not among the given links.
    """
    links = list(links)
    if not any(node_id == root_id for node_id, _ in links):
        return []
    children = build_children_index(links)
    seen = {root_id}
    levels = [[root_id]]
    while True:
        next_level = []
        for current in levels[-1]:
            for child in children.get(current, ()):
                if child not in seen:
                    seen.add(child)
                    next_level.append(child)
        if not next_level:
            return levels
        levels.append(next_level)


def collect_subtree(
    links: Iterable[tuple[K, K | None]], root_id: K,
) -> list[K]:
    """Return root_id followed by all its descendants (breadth-first)."""
    return [
        node_id
        for level in subtree_levels(links, root_id)
        for node_id in level
    ]
