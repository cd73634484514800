"""Interaction controller: input commands → graph/simulation/selection state.

Pointer handlers do not mutate shared objects directly. They produce small
command objects (``DragStart``, ``Select``, ``Pan`` ...) that are reduced by
``InteractionController.dispatch()`` in arrival order, which keeps ordering
deterministic and makes the controller testable without a pointer device.

Per-node states::

    Free ──hover──▶ Hovered ──click──▶ Selected
    Free/Hovered/Selected ⇄ Dragging   (orthogonal to hover/selection)

Commands naming unknown nodes are logged and ignored; handlers run on the hot
input path and never raise.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from .graph import Edge, Graph, Node
from .models import NodeId
from .simulation import ForceSimulation, SimulationState
from .viewport import Point, ViewportController

# --- Commands ---


@dataclass(frozen=True)
class DragStart:
    node_id: NodeId


@dataclass(frozen=True)
class Drag:
    node_id: NodeId
    position: Point


@dataclass(frozen=True)
class DragEnd:
    node_id: NodeId


@dataclass(frozen=True)
class Hover:
    node_id: NodeId | None


@dataclass(frozen=True)
class Select:
    node_id: NodeId | None


@dataclass(frozen=True)
class Pan:
    dx: float
    dy: float


@dataclass(frozen=True)
class Zoom:
    factor: float
    pivot: Point | None = None


@dataclass(frozen=True)
class ResetView:
    pass


@dataclass(frozen=True)
class TogglePause:
    pass


Command = DragStart | Drag | DragEnd | Hover | Select | Pan | Zoom | ResetView | TogglePause


class InteractionController:
    """Holds hover/selection/drag state for one graph."""

    def __init__(
        self,
        graph: Graph,
        simulation: ForceSimulation,
        viewport: ViewportController,
    ) -> None:
        self.graph = graph
        self.simulation = simulation
        self.viewport = viewport
        self.hovered_id: NodeId | None = None
        self.selected_id: NodeId | None = None
        self.dragging_id: NodeId | None = None
        self.details: list[tuple[Node, float]] = []

    # ── reducer ──────────────────────────────────────────────────────────

    def dispatch(self, command: Command) -> None:
        """Apply one command."""
        if isinstance(command, DragStart):
            self.on_drag_start(command.node_id)
        elif isinstance(command, Drag):
            self.on_drag(command.node_id, command.position)
        elif isinstance(command, DragEnd):
            self.on_drag_end(command.node_id)
        elif isinstance(command, Hover):
            self.on_hover(command.node_id)
        elif isinstance(command, Select):
            self.on_select(command.node_id)
        elif isinstance(command, Pan):
            self.on_pan_gesture(command.dx, command.dy)
        elif isinstance(command, Zoom):
            self.on_zoom_gesture(command.factor, command.pivot)
        elif isinstance(command, ResetView):
            self.viewport.reset_to_identity()
        elif isinstance(command, TogglePause):
            self.toggle_simulation()
        else:
            logger.warning(f"Ignoring unknown interaction command: {command!r}")

    def dispatch_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.dispatch(command)

    # ── drag ─────────────────────────────────────────────────────────────

    def _lookup(self, node_id: NodeId, action: str) -> Node | None:
        node = self.graph.node(node_id)
        if node is None:
            logger.warning(f"{action}: unknown node id {node_id!r}, ignoring")
        return node

    def on_drag_start(self, node_id: NodeId) -> None:
        """Pin the node where it is and let the rest of the layout react."""
        node = self._lookup(node_id, "drag start")
        if node is None:
            return
        if self.dragging_id is not None and self.dragging_id != node_id:
            self.on_drag_end(self.dragging_id)

        node.pin()
        self.dragging_id = node_id
        self.simulation.reheat()

    def on_drag(self, node_id: NodeId, position: Point) -> None:
        """Move the pinned position; the next tick holds the node there."""
        node = self._lookup(node_id, "drag")
        if node is None:
            return
        if self.dragging_id != node_id or not node.pinned:
            logger.warning(f"drag: node {node_id!r} is not being dragged, ignoring")
            return
        x, y = position
        if not (math.isfinite(x) and math.isfinite(y)):
            logger.warning(f"drag: non-finite position {position!r} for {node_id!r}")
            return

        node.pinned_position = (float(x), float(y))
        node.x, node.y = node.pinned_position

    def on_drag_end(self, node_id: NodeId) -> None:
        """Release the node at its last dragged position with zero velocity."""
        node = self._lookup(node_id, "drag end")
        if node is None:
            return
        if self.dragging_id != node_id:
            logger.debug(f"drag end for {node_id!r} without matching drag start")
        node.unpin()
        if self.dragging_id == node_id:
            self.dragging_id = None

    # ── hover / select ───────────────────────────────────────────────────

    def on_hover(self, node_id: NodeId | None) -> None:
        if node_id is not None and self._lookup(node_id, "hover") is None:
            return
        self.hovered_id = node_id

    def highlighted_edges(self) -> list[Edge]:
        """Edges incident to the hovered node."""
        if self.hovered_id is None:
            return []
        return self.graph.incident_edges(self.hovered_id)

    def on_select(self, node_id: NodeId | None) -> None:
        """Select a node and compute its ranked neighbor list (None clears)."""
        if node_id is None:
            self.selected_id = None
            self.details = []
            return
        if self._lookup(node_id, "select") is None:
            return
        self.selected_id = node_id
        self.details = self.graph.neighbors_of(node_id)

    # ── viewport / simulation ────────────────────────────────────────────

    def on_pan_gesture(self, dx: float, dy: float) -> None:
        self.viewport.pan(dx, dy)

    def on_zoom_gesture(self, factor: float, pivot: Point | None = None) -> None:
        self.viewport.zoom(factor, pivot)

    def toggle_simulation(self) -> SimulationState:
        """Play/pause button: pause a running layout, otherwise get it moving."""
        sim = self.simulation
        if sim.state == SimulationState.RUNNING:
            sim.pause()
        elif sim.state == SimulationState.PAUSED:
            sim.resume()
        elif sim.state == SimulationState.IDLE:
            sim.start()
        elif sim.state == SimulationState.CONVERGED:
            sim.restart(sim.config.drag_alpha)
        return sim.state

    def hit_test(self, screen_point: Point) -> NodeId | None:
        """Topmost node under a screen point (later nodes paint on top)."""
        x, y = self.viewport.to_sim_space(screen_point)
        for node in reversed(self.graph.nodes):
            if math.hypot(node.x - x, node.y - y) <= node.radius:
                return node.id
        return None

    def reset(self) -> None:
        """Clear transient state (graph rebuild)."""
        if self.dragging_id is not None:
            node = self.graph.node(self.dragging_id)
            if node is not None:
                node.unpin()
        self.hovered_id = None
        self.selected_id = None
        self.dragging_id = None
        self.details = []
