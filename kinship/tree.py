"""Assemble a flat list of people and parent -> child edges into a forest."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Sequence

from .schemas import ForestStats, PersonOut, PersonWithRelationships, TreeNode

logger = logging.getLogger(__name__)


def _edge_order(edges: Iterable) -> list:
    # Edge ids follow insertion order; unsaved edges keep their given order.
    return sorted(edges, key=lambda e: (getattr(e, "id", None) is None, getattr(e, "id", 0) or 0))


def _link_maps(people: Sequence, edges: Iterable):
    known = {p.id for p in people}
    parents_of: dict[int, list[int]] = defaultdict(list)
    children_of: dict[int, list[int]] = defaultdict(list)
    for e in _edge_order(edges):
        if e.parent_id not in known or e.child_id not in known:
            logger.warning("Skipping dangling edge %s -> %s", e.parent_id, e.child_id)
            continue
        parents_of[e.child_id].append(e.parent_id)
        children_of[e.parent_id].append(e.child_id)
    return parents_of, children_of


def annotate_people(people: Sequence, edges: Iterable) -> list[PersonWithRelationships]:
    """Attach resolved ``parents`` and ``children`` to every person, in input order."""
    plain = {p.id: PersonOut.model_validate(p, from_attributes=True) for p in people}
    parents_of, children_of = _link_maps(people, edges)
    out = []
    for p in people:
        base = plain[p.id].model_dump(exclude={"dates_inconsistent"})
        out.append(PersonWithRelationships(
            **base,
            parents=[plain[pid] for pid in parents_of.get(p.id, [])],
            children=[plain[cid] for cid in children_of.get(p.id, [])],
        ))
    return out


def build_forest(people: Sequence, edges: Iterable) -> list[TreeNode]:
    """Return one tree per parentless person, ordered by person id.

    A person with several parents is mirrored under each of them. A child
    that already sits on the current root-to-node path becomes a ``cycle``
    leaf instead of being expanded again. A component with no parentless
    ancestor is entered at the lowest id on its cycle, found by walking
    parent links, and that root is marked ``detached``.

    Trees are built with an explicit stack, so depth is bounded by memory
    rather than the interpreter's recursion limit.
    """
    edges = list(edges)
    people = sorted(people, key=lambda p: p.id)
    annotated = {p.id: p for p in annotate_people(people, edges)}
    visited: set[int] = set()

    def build(root_id: int, detached: bool = False) -> TreeNode:
        on_path = {root_id}
        visited.add(root_id)
        # frame: [pid, level, built children, pending children]
        stack = [[root_id, 0, [], iter(annotated[root_id].children)]]
        while True:
            pid, level, kids, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                on_path.discard(pid)
                node = TreeNode(person=annotated[pid].model_copy(deep=True), level=level, children=kids)
                if not stack:
                    return node.model_copy(update={"detached": detached})
                stack[-1][2].append(node)
            elif child.id in on_path:
                logger.warning("Cycle through person %s truncated below person %s", child.id, pid)
                kids.append(TreeNode(
                    person=annotated[child.id].model_copy(deep=True),
                    level=level + 1,
                    cycle=True,
                ))
            else:
                on_path.add(child.id)
                visited.add(child.id)
                stack.append([child.id, level + 1, [], iter(annotated[child.id].children)])

    def cycle_entry(pid: int) -> int:
        # Every unvisited person has a parent, so the walk must close a loop.
        seen: dict[int, int] = {}
        while pid not in seen:
            seen[pid] = len(seen)
            pid = annotated[pid].parents[0].id
        return min(list(seen)[seen[pid]:])

    forest = [build(p.id) for p in people if not annotated[p.id].parents]

    for p in people:
        if p.id not in visited:
            root = cycle_entry(p.id)
            logger.warning("Person %s is unreachable from any root; adding detached root %s", p.id, root)
            forest.append(build(root, detached=True))
    return forest


def iter_nodes(forest: Iterable[TreeNode]):
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def forest_stats(forest: Sequence[TreeNode]) -> ForestStats:
    nodes = 0
    deepest = -1
    for node in iter_nodes(forest):
        nodes += 1
        deepest = max(deepest, node.level)
    return ForestStats(roots=len(forest), nodes=nodes, generations=deepest + 1)
