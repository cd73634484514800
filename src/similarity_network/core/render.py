"""Render frame construction.

Turns the current graph, simulation and interaction state into the
``RenderFrame`` consumed by whatever paints the scene. Pure geometry and
flags; no drawing happens here.
"""

from __future__ import annotations

from ..config.defaults import CATEGORY_PALETTE, DEFAULT_LABEL_MAX_LENGTH
from .graph import Edge, Graph
from .interaction import InteractionController
from .models import NeighborEntry, RenderEdge, RenderFrame, RenderNode
from .simulation import ForceSimulation

HIGHLIGHT_WIDTH_FACTOR = 2.0


def truncate_label(label: str, max_length: int = DEFAULT_LABEL_MAX_LENGTH) -> str:
    """Shorten long titles: first ``max_length`` characters plus ``...``."""
    if len(label) <= max_length:
        return label
    return label[:max_length] + "..."


def category_colors(categories: list[str]) -> dict[str, str]:
    """Stable ordinal color per category, in first-seen order."""
    return {
        category: CATEGORY_PALETTE[i % len(CATEGORY_PALETTE)]
        for i, category in enumerate(categories)
    }


def edge_width(edge: Edge, highlighted: bool = False) -> float:
    width = edge.weight
    return width * HIGHLIGHT_WIDTH_FACTOR if highlighted else width


def build_frame(
    graph: Graph,
    simulation: ForceSimulation,
    interaction: InteractionController,
) -> RenderFrame:
    """Snapshot everything the renderer needs for one frame.

    Args:
        graph: Current graph
        simulation: Simulation owning positions
        interaction: Hover/selection/viewport state

    Returns:
        RenderFrame with node/edge geometry and state flags
    """
    label_length = simulation.config.label_max_length
    colors = category_colors(graph.categories())
    highlighted = {edge.key for edge in interaction.highlighted_edges()}

    nodes = [
        RenderNode(
            id=node.id,
            x=node.x,
            y=node.y,
            radius=node.radius,
            category=node.category,
            label=truncate_label(node.label, label_length),
            color=colors[node.category],
            is_selected=node.id == interaction.selected_id,
            is_hovered=node.id == interaction.hovered_id,
            pinned=node.pinned,
        )
        for node in graph.nodes
    ]

    edges = []
    for edge in graph.edges:
        source = graph.nodes_by_id[edge.source_id]
        target = graph.nodes_by_id[edge.target_id]
        is_highlighted = edge.key in highlighted
        edges.append(
            RenderEdge(
                source_id=edge.source_id,
                target_id=edge.target_id,
                x1=source.x,
                y1=source.y,
                x2=target.x,
                y2=target.y,
                similarity=edge.similarity,
                width=edge_width(edge, is_highlighted),
                highlighted=is_highlighted,
            )
        )

    details = [
        NeighborEntry(
            id=node.id,
            label=node.label,
            category=node.category,
            similarity=similarity,
        )
        for node, similarity in interaction.details
    ]

    return RenderFrame(
        nodes=nodes,
        edges=edges,
        viewport_transform=interaction.viewport.transform.to_state(),
        alpha=simulation.alpha,
        state=simulation.state.value,
        selected_id=interaction.selected_id,
        hovered_id=interaction.hovered_id,
        details=details,
    )
