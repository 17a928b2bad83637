from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..schemas import TreeNode


@dataclass(frozen=True)
class Placement:
    node: TreeNode
    x: float
    y: float
    parent: Optional[int]  # index of the parent placement, None for roots
    branch: int            # index of the root this instance hangs under


def layered_layout(
    forest: Sequence[TreeNode],
    layer_gap: float = 120.0,
    sibling_gap: float = 60.0,
    tree_gap: float = 60.0,
) -> List[Placement]:
    """
    Top-down layout over rendered node instances:
    - y decreases with level
    - leaves take consecutive x slots left to right
    - parents are centred over their children
    - roots are separated by an extra ``tree_gap``
    Mirrored people (several parents) get one placement per instance.
    """
    placements: List[Placement] = []
    cursor = 0.0

    for branch, root in enumerate(forest):
        if branch:
            cursor += tree_gap
        # frame: [node, placement index, parent index, child xs, pending children]
        stack = [[root, len(placements), None, [], iter(root.children)]]
        placements.append(None)  # reserve so parents precede children
        while stack:
            node, idx, parent, xs, pending = stack[-1]
            child = next(pending, None)
            if child is not None:
                stack.append([child, len(placements), idx, [], iter(child.children)])
                placements.append(None)
                continue
            stack.pop()
            if xs:
                x = (xs[0] + xs[-1]) / 2.0
            else:
                x = cursor
                cursor += sibling_gap
            placements[idx] = Placement(node=node, x=x, y=-node.level * layer_gap,
                                        parent=parent, branch=branch)
            if stack:
                stack[-1][3].append(x)
    return placements
