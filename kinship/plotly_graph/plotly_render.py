from __future__ import annotations

from typing import Sequence
from plotly import graph_objects as go

from ..schemas import PersonWithRelationships, TreeNode
from .colors import build_branch_colors
from .layout import layered_layout


def _hover(person: PersonWithRelationships) -> str:
    lines = [person.full_name, f"ID: {person.id}"]
    if person.birth_date:
        lines.append(f"Born: {person.birth_date.isoformat()}")
    if person.death_date:
        lines.append(f"Died: {person.death_date.isoformat()}")
    if person.parents:
        lines.append("Parents: " + ", ".join(p.full_name for p in person.parents))
    return "<br>".join(lines)


def build_forest_figure(forest: Sequence[TreeNode], layer_gap: float = 120.0) -> go.Figure:
    if not forest:
        fig = go.Figure()
        fig.update_layout(title="No family data found")
        return fig

    placements = layered_layout(forest, layer_gap=layer_gap)

    edge_x, edge_y = [], []
    for pl in placements:
        if pl.parent is None:
            continue
        parent = placements[pl.parent]
        edge_x += [parent.x, pl.x, None]
        edge_y += [parent.y, pl.y, None]

    edge_trace = go.Scatter(
        x=edge_x,
        y=edge_y,
        mode="lines",
        line=dict(width=2, color="#555"),
        hoverinfo="none",
        showlegend=False,
    )

    node_trace = go.Scatter(
        x=[pl.x for pl in placements],
        y=[pl.y for pl in placements],
        mode="markers+text",
        text=[pl.node.person.full_name for pl in placements],
        textposition="top center",
        hoverinfo="text",
        hovertext=[_hover(pl.node.person) for pl in placements],
        customdata=[pl.node.person.id for pl in placements],
        marker=dict(size=18, color=build_branch_colors(placements), line=dict(width=1, color="#333")),
        textfont=dict(size=9),
        showlegend=False,
    )

    fig = go.Figure(data=[edge_trace, node_trace])
    fig.update_layout(
        showlegend=False,
        hovermode="closest",
        dragmode="pan",
        margin=dict(l=20, r=20, t=20, b=20),
        plot_bgcolor="white",
        paper_bgcolor="white",
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
    )
    return fig


def write_html(fig: go.Figure, out_path: str) -> None:
    config = {"scrollZoom": True, "displayModeBar": True, "responsive": True}
    fig.write_html(out_path, include_plotlyjs="cdn", full_html=True, config=config)
