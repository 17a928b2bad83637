from __future__ import annotations
from typing import List

from .layout import Placement

BRANCH_PALETTE = [
    "#FFA07A", "#98FB98", "#87CEFA", "#DDA0DD", "#F4A460",
    "#66CDAA", "#FFB6C1", "#E6E6FA", "#20B2AA"
]
CYCLE_COLOR = "#D3D3D3"


def build_branch_colors(placements: List[Placement]) -> List[str]:
    """One colour per root branch; truncated cycle leaves are grey."""
    colors: List[str] = []
    for pl in placements:
        if pl.node.cycle:
            colors.append(CYCLE_COLOR)
        else:
            colors.append(BRANCH_PALETTE[pl.branch % len(BRANCH_PALETTE)])
    return colors
