"""Force simulation engine for the similarity network.

One ``ForceSimulation`` is created per graph and owns node positions for the
lifetime of that graph. Each ``tick()`` is a single synchronous transform over
a snapshot of positions:

    1. link springs          (ideal distance = base / (similarity + eps))
    2. many-body repulsion   (all-pairs, or Barnes-Hut above a node count)
    3. integration           (v = (v + Σforce) * damping; p += v; pinned held)
    4. centering             (centroid translated toward the canvas center)
    5. collision resolution  (positional, ascending id-pair order)
    6. sanitization          (non-finite nodes re-seeded near the centroid)
    7. cooling               (alpha *= 1 - cooling_rate; < alpha_min → converged)

State machine::

    IDLE ──start/tick──▶ RUNNING ──alpha < alpha_min──▶ CONVERGED
                          ▲   │                             │
                   resume │   │ pause            restart    │
                          │   ▼                             │
                         PAUSED ◀───────── restart ─────────┘
    any ──stop──▶ STOPPED (terminal; teardown)

``restart()`` from IDLE, PAUSED or CONVERGED goes to RUNNING with fresh alpha.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from enum import StrEnum

import numpy as np
from loguru import logger

from ..config.settings import NetworkConfig
from .forces import (
    GOLDEN_ANGLE,
    apply_barnes_hut_force,
    apply_link_force,
    apply_many_body_force,
    centering_shift,
    ideal_distance,
    resolve_collisions,
)
from .graph import Graph, Node, id_sort_key
from .models import NodeId

_INITIAL_RADIUS = 10.0  # phyllotaxis spacing for unplaced nodes
_RESEED_RADIUS = 10.0

SimulationListener = Callable[["ForceSimulation"], None]


class SimulationState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    CONVERGED = "converged"
    STOPPED = "stopped"


class ForceSimulation:
    """Iterative layout solver over one Graph.

    The simulation never raises from ``tick()``: numeric degeneracy is
    repaired in place and logged.
    """

    def __init__(self, graph: Graph, config: NetworkConfig | None = None) -> None:
        self.graph = graph
        self.config = config or NetworkConfig()
        self.alpha = self.config.alpha_initial
        self.state = SimulationState.IDLE
        self.tick_count = 0
        self._rng = np.random.default_rng(self.config.seed)
        self._listeners: dict[str, list[SimulationListener]] = {"tick": [], "end": []}
        self._index_graph()
        self._place_unpositioned()

    # ── setup ────────────────────────────────────────────────────────────

    def _index_graph(self) -> None:
        cfg = self.config
        nodes = self.graph.nodes
        index = {node.id: i for i, node in enumerate(nodes)}
        self._index = index

        ordered = sorted(range(len(nodes)), key=lambda i: id_sort_key(nodes[i].id))
        self._rank = np.empty(len(nodes), dtype=np.intp)
        self._rank[ordered] = np.arange(len(nodes))

        self._radii = np.array([n.radius for n in nodes], dtype=np.float64)

        edges = self.graph.edges
        self._source = np.array([index[e.source_id] for e in edges], dtype=np.intp)
        self._target = np.array([index[e.target_id] for e in edges], dtype=np.intp)
        similarity = np.array([e.similarity for e in edges], dtype=np.float64)
        self._link_distance = np.asarray(
            ideal_distance(similarity, cfg.base_distance, cfg.distance_epsilon),
            dtype=np.float64,
        )
        self._link_strength = similarity

        degree = np.array([self.graph.degree(n.id) for n in nodes], dtype=np.float64)
        if edges:
            src_deg = degree[self._source]
            tgt_deg = degree[self._target]
            self._link_bias = src_deg / (src_deg + tgt_deg)
        else:
            self._link_bias = np.zeros(0, dtype=np.float64)

    def _place_unpositioned(self) -> None:
        """Phyllotaxis spiral around the canvas center for unplaced nodes."""
        cx, cy = self.config.center
        for i, node in enumerate(self.graph.nodes):
            if math.isfinite(node.x) and math.isfinite(node.y):
                continue
            radius = _INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * GOLDEN_ANGLE
            node.x = cx + radius * math.cos(angle)
            node.y = cy + radius * math.sin(angle)
            node.vx = node.vy = 0.0

    # ── listeners ────────────────────────────────────────────────────────

    def on(self, event: str, listener: SimulationListener) -> ForceSimulation:
        """Register a ``tick`` or ``end`` listener."""
        if event not in self._listeners:
            raise ValueError(f"Unknown simulation event: {event}")
        self._listeners[event].append(listener)
        return self

    def _emit(self, event: str) -> None:
        for listener in self._listeners[event]:
            listener(self)

    # ── state transitions ────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self.state == SimulationState.RUNNING

    @property
    def converged(self) -> bool:
        return self.state == SimulationState.CONVERGED

    def start(self) -> None:
        if self.state == SimulationState.IDLE:
            self.state = SimulationState.RUNNING

    def pause(self) -> None:
        if self.state == SimulationState.RUNNING:
            self.state = SimulationState.PAUSED

    def resume(self) -> None:
        if self.state == SimulationState.PAUSED:
            self.state = SimulationState.RUNNING

    def restart(self, alpha: float | None = None) -> None:
        """Reset alpha (default: ``alpha_initial``) and run again."""
        if self.state == SimulationState.STOPPED:
            logger.warning("Ignoring restart() on a stopped simulation")
            return
        self.alpha = self.config.alpha_initial if alpha is None else alpha
        self.state = SimulationState.RUNNING

    def reheat(self, alpha: float | None = None) -> None:
        """Nudge the layout after an interaction without a full re-layout.

        CONVERGED restarts at ``alpha``; RUNNING has alpha raised to at least
        ``alpha``; IDLE and PAUSED are left alone.
        """
        alpha = self.config.drag_alpha if alpha is None else alpha
        if self.state == SimulationState.CONVERGED:
            self.restart(alpha)
        elif self.state == SimulationState.RUNNING and self.alpha < alpha:
            self.alpha = alpha

    def stop(self) -> None:
        """Terminal stop: no further ticks, listeners dropped."""
        self.state = SimulationState.STOPPED
        for listeners in self._listeners.values():
            listeners.clear()

    # ── stepping ─────────────────────────────────────────────────────────

    def tick(self) -> SimulationState:
        """Advance one step.

        Steps only in IDLE (which starts the run) or RUNNING; any other state
        is returned unchanged.
        """
        if self.state == SimulationState.IDLE:
            self.state = SimulationState.RUNNING
        if self.state != SimulationState.RUNNING:
            return self.state

        if not self.graph.nodes:
            self._converge()
            return self.state

        self._step()
        self.tick_count += 1
        self.alpha *= 1 - self.config.cooling_rate
        self._emit("tick")

        if self.alpha < self.config.alpha_min:
            self._converge()
        return self.state

    def run(self, max_ticks: int | None = None) -> int:
        """Tick until the simulation stops running.

        Args:
            max_ticks: Optional cap (falls back to ``config.max_ticks``)

        Returns:
            Number of ticks executed
        """
        limit = max_ticks if max_ticks is not None else self.config.max_ticks
        self.start()
        executed = 0
        while self.is_running and (limit is None or executed < limit):
            self.tick()
            executed += 1
        return executed

    def _converge(self) -> None:
        self.state = SimulationState.CONVERGED
        logger.debug(
            f"Simulation converged after {self.tick_count} ticks "
            f"({len(self.graph.nodes)} nodes, alpha={self.alpha:.5f})"
        )
        self._emit("end")

    def _step(self) -> None:
        cfg = self.config
        nodes = self.graph.nodes
        n = len(nodes)

        self._sanitize_nodes(nodes)
        positions = np.array([(node.x, node.y) for node in nodes], dtype=np.float64)
        velocity = np.array([(node.vx, node.vy) for node in nodes], dtype=np.float64)
        pinned = np.array([node.pinned for node in nodes], dtype=bool)
        free = ~pinned

        delta = np.zeros((n, 2), dtype=np.float64)
        apply_link_force(
            positions,
            delta,
            self._source,
            self._target,
            self._link_distance,
            self._link_strength,
            self._link_bias,
            self.alpha,
        )
        if n > cfg.barnes_hut_threshold:
            apply_barnes_hut_force(
                positions, delta, free, cfg.charge_strength, self.alpha, cfg.barnes_hut_theta
            )
        else:
            apply_many_body_force(positions, delta, free, cfg.charge_strength, self.alpha)

        velocity = (velocity + delta) * cfg.damping_factor
        velocity[pinned] = 0.0
        updated = positions + velocity

        updated[free] += centering_shift(positions, cfg.center, cfg.center_strength)

        for i in np.flatnonzero(pinned):
            updated[i] = nodes[i].pinned_position or positions[i]

        resolve_collisions(updated, self._radii, cfg.collision_padding, free, self._rank)

        for i, node in enumerate(nodes):
            node.x, node.y = float(updated[i, 0]), float(updated[i, 1])
            node.vx, node.vy = float(velocity[i, 0]), float(velocity[i, 1])

        self._sanitize_nodes(nodes)

    def _sanitize_nodes(self, nodes: list[Node]) -> None:
        """Re-seed nodes with non-finite state near the centroid of the rest."""
        bad = [
            node
            for node in nodes
            if not all(map(math.isfinite, (node.x, node.y, node.vx, node.vy)))
        ]
        if not bad:
            return

        finite = [(n.x, n.y) for n in nodes if math.isfinite(n.x) and math.isfinite(n.y)]
        cx, cy = np.mean(finite, axis=0) if finite else self.config.center

        for node in bad:
            if node.pinned and node.pinned_position is not None:
                px, py = node.pinned_position
                if math.isfinite(px) and math.isfinite(py):
                    node.x, node.y = px, py
                    node.vx = node.vy = 0.0
                    continue
                node.unpin()
            angle = self._rng.uniform(0, 2 * math.pi)
            radius = self._rng.uniform(0, _RESEED_RADIUS)
            node.x = float(cx + radius * math.cos(angle))
            node.y = float(cy + radius * math.sin(angle))
            node.vx = node.vy = 0.0

        logger.warning(
            f"Sanitized {len(bad)} node(s) with non-finite position/velocity: "
            f"{[node.id for node in bad][:10]}"
        )

    # ── queries ──────────────────────────────────────────────────────────

    def positions(self) -> dict[NodeId, tuple[float, float]]:
        return {node.id: (node.x, node.y) for node in self.graph.nodes}

    def node(self, node_id: NodeId) -> Node | None:
        return self.graph.node(node_id)
