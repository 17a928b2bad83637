"""Structural checks for a new parent -> child edge.

Runs against a snapshot of person ids and existing ``(parent_id, child_id)``
pairs; never touches the database itself.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from .errors import (
    ChildNotFoundError,
    CircularRelationshipError,
    DuplicateRelationshipError,
    ParentNotFoundError,
    SelfRelationshipError,
)

Edge = tuple[int, int]


def find_path(edges: Iterable[Edge], start: int, goal: int) -> list[int] | None:
    """Return a parent -> child path from ``start`` to ``goal``, or None.

    Iterative depth-first search, so deep lineages don't hit the recursion limit.
    """
    children: dict[int, list[int]] = defaultdict(list)
    for parent_id, child_id in edges:
        children[parent_id].append(child_id)

    came_from: dict[int, int | None] = {start: None}
    stack = [start]
    while stack:
        node = stack.pop()
        if node == goal:
            path = [node]
            while came_from[path[-1]] is not None:
                path.append(came_from[path[-1]])
            return path[::-1]
        for nxt in children.get(node, []):
            if nxt not in came_from:
                came_from[nxt] = node
                stack.append(nxt)
    return None


def validate_relationship(parent_id: int, child_id: int, person_ids: Iterable[int],
                          edges: Iterable[Edge], strict: bool = False) -> None:
    """Raise if ``parent_id -> child_id`` may not be created.

    Order matters: self, missing parent, missing child, duplicate, reversal.
    With ``strict`` any path child -> ... -> parent is rejected as circular too.
    """
    if parent_id == child_id:
        raise SelfRelationshipError(parent_id)

    ids = person_ids if isinstance(person_ids, (set, frozenset)) else set(person_ids)
    if parent_id not in ids:
        raise ParentNotFoundError(parent_id)
    if child_id not in ids:
        raise ChildNotFoundError(child_id)

    pairs = set(edges)
    if (parent_id, child_id) in pairs:
        raise DuplicateRelationshipError(parent_id, child_id)
    if (child_id, parent_id) in pairs:
        raise CircularRelationshipError(parent_id, child_id)

    if strict:
        path = find_path(pairs, child_id, parent_id)
        if path is not None:
            raise CircularRelationshipError(parent_id, child_id, path + [child_id])
