"""Visualization session: lifecycle owner for one similarity-network view.

A session is created when the view mounts and torn down when it unmounts.
Each time a new node/edge set arrives the graph, simulation and interaction
state are discarded and rebuilt from scratch; the viewport transform
survives reloads for the rest of the session.

The host drives the session from its frame callback::

    session = VisualizationSession(config)
    session.load(payload)
    session.queue(Select(42))
    frame = session.frame()   # apply queued commands, tick once, snapshot

There is no background thread: pausing simply makes ``frame()`` skip the
tick, so resuming continues exactly where it left off.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from loguru import logger

from ..config.settings import NetworkConfig
from .graph import Graph, build_graph
from .interaction import Command, InteractionController
from .models import GraphPayload, RawEdge, RawNode, RenderFrame
from .render import build_frame
from .simulation import ForceSimulation, SimulationState
from .viewport import ViewportController


class VisualizationSession:
    """Graph + simulation + viewport + interaction for one mounted view."""

    def __init__(self, config: NetworkConfig | None = None) -> None:
        self.config = config or NetworkConfig()
        self.viewport = ViewportController(self.config.min_scale, self.config.max_scale)
        self.graph: Graph | None = None
        self.simulation: ForceSimulation | None = None
        self.interaction: InteractionController | None = None
        self._pending: deque[Command] = deque()
        self._closed = False

    @property
    def is_loaded(self) -> bool:
        return self.graph is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def load(
        self,
        payload: GraphPayload | None = None,
        *,
        nodes: list[RawNode | dict[str, Any]] | None = None,
        edges: list[RawEdge | dict[str, Any]] | None = None,
    ) -> Graph:
        """Replace the current graph with a freshly built one.

        Raises:
            IngestError: The new data is invalid; the previous graph is kept
            RuntimeError: The session was torn down
        """
        if self._closed:
            raise RuntimeError("Cannot load data into a torn-down session")

        if payload is not None:
            nodes, edges = list(payload.nodes), list(payload.edges)
        graph = build_graph(nodes or [], edges or [], weight_floor=self.config.weight_floor)

        self._discard()
        self.graph = graph
        self.simulation = ForceSimulation(graph, self.config)
        self.interaction = InteractionController(graph, self.simulation, self.viewport)
        self.simulation.start()

        logger.info(
            f"Loaded similarity network: {len(graph.nodes)} nodes, "
            f"{len(graph.edges)} edges, {len(graph.categories())} categories"
        )
        return graph

    def _discard(self) -> None:
        if self.simulation is not None:
            self.simulation.stop()
        if self.interaction is not None:
            self.interaction.reset()
        if self.graph is not None:
            self.graph.release()
        self.graph = None
        self.simulation = None
        self.interaction = None
        self._pending.clear()

    def queue(self, command: Command) -> None:
        """Queue an input command for the next frame."""
        if self._closed:
            return
        self._pending.append(command)

    def dispatch(self, command: Command) -> None:
        """Apply a command immediately, outside the frame loop."""
        if self._closed or self.interaction is None:
            return
        self.interaction.dispatch(command)

    def frame(self) -> RenderFrame | None:
        """Host frame callback.

        Applies queued commands in arrival order, advances the simulation one
        tick if it is running, and returns the frame to paint. Returns None
        when nothing is loaded or the session was torn down.
        """
        if self._closed or self.interaction is None or self.simulation is None:
            return None

        while self._pending:
            self.interaction.dispatch(self._pending.popleft())

        if self.simulation.is_running:
            self.simulation.tick()

        return self.snapshot()

    def snapshot(self) -> RenderFrame | None:
        """Current frame without applying commands or ticking."""
        if (
            self._closed
            or self.graph is None
            or self.simulation is None
            or self.interaction is None
        ):
            return None
        return build_frame(self.graph, self.simulation, self.interaction)

    def toggle_simulation(self) -> SimulationState | None:
        if self.interaction is None:
            return None
        return self.interaction.toggle_simulation()

    def reset_view(self) -> None:
        self.viewport.reset_to_identity()

    def teardown(self) -> None:
        """Stop ticking and release graph storage; later frames return None."""
        if self._closed:
            return
        self._discard()
        self._closed = True
        logger.info("Similarity network session torn down")
