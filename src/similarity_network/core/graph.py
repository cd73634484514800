"""Graph model for the similarity network.

Normalizes raw node/edge records into a typed, queryable structure:

    - unique node ids, radius = sqrt(weight) with a positive floor
    - undirected edges, self-loops rejected, duplicate pairs collapsed
      (highest similarity wins)
    - adjacency index built once per graph and never rebuilt on interaction

Node positions live on the ``Node`` objects but are owned by the force
simulation; nothing in this module moves them.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pydantic import ValidationError

from ..config.defaults import DEFAULT_WEIGHT_FLOOR
from .exceptions import (
    DanglingEdgeError,
    DuplicateNodeError,
    InvalidRecordError,
    SelfLoopError,
)
from .models import NodeId, RawEdge, RawNode


def id_sort_key(node_id: NodeId) -> tuple[bool, Any]:
    """Total order over mixed int/str ids: ints first, then strings."""
    return (isinstance(node_id, str), node_id)


@dataclass(eq=False)
class Node:
    """A content item in the network.

    ``x``/``y`` are written by the simulation (and by drag while pinned);
    ``vx``/``vy`` are simulation internals.
    """

    id: NodeId
    label: str
    category: str
    weight: float
    metadata: dict[str, Any] = field(default_factory=dict)
    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    pinned: bool = False
    pinned_position: tuple[float, float] | None = None

    @property
    def radius(self) -> float:
        return math.sqrt(self.weight)

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    def pin(self, position: tuple[float, float] | None = None) -> None:
        """Hold the node at ``position`` (default: where it is now)."""
        self.pinned = True
        self.pinned_position = position if position is not None else (self.x, self.y)
        self.x, self.y = self.pinned_position
        self.vx = self.vy = 0.0

    def unpin(self) -> None:
        self.pinned = False
        self.pinned_position = None
        self.vx = self.vy = 0.0


@dataclass(frozen=True)
class Edge:
    """Undirected similarity link; source/target order is positional only."""

    source_id: NodeId
    target_id: NodeId
    similarity: float

    @property
    def key(self) -> tuple[NodeId, NodeId]:
        """Unordered pair identity used for de-duplication."""
        a, b = sorted((self.source_id, self.target_id), key=id_sort_key)
        return (a, b)

    @property
    def weight(self) -> float:
        """Render thickness, derived from similarity."""
        return math.sqrt(self.similarity * 10)

    def touches(self, node_id: NodeId) -> bool:
        return node_id == self.source_id or node_id == self.target_id

    def other(self, node_id: NodeId) -> NodeId:
        return self.target_id if node_id == self.source_id else self.source_id


class Graph:
    """Validated nodes and edges plus a read-only adjacency index."""

    def __init__(self, nodes: list[Node], edges: list[Edge]) -> None:
        self.nodes = nodes
        self.edges = edges
        self.nodes_by_id: dict[NodeId, Node] = {n.id: n for n in nodes}
        self._adjacency: dict[NodeId, list[Edge]] = {n.id: [] for n in nodes}
        for i, edge in enumerate(edges):
            for endpoint in (edge.source_id, edge.target_id):
                if endpoint not in self._adjacency:
                    raise DanglingEdgeError(
                        f"Edge {edge.source_id!r} -> {edge.target_id!r} references "
                        f"unknown node {endpoint!r}",
                        context={"edge_index": i, "node_id": endpoint},
                    )
            self._adjacency[edge.source_id].append(edge)
            self._adjacency[edge.target_id].append(edge)

    @classmethod
    def build(
        cls,
        raw_nodes: Iterable[RawNode | dict[str, Any]],
        raw_edges: Iterable[RawEdge | dict[str, Any]],
        weight_floor: float = DEFAULT_WEIGHT_FLOOR,
    ) -> Graph:
        return build_graph(raw_nodes, raw_edges, weight_floor=weight_floor)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes_by_id

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self.nodes_by_id

    def node(self, node_id: NodeId) -> Node | None:
        return self.nodes_by_id.get(node_id)

    def incident_edges(self, node_id: NodeId) -> list[Edge]:
        """Edges touching ``node_id`` (empty for unknown ids)."""
        return list(self._adjacency.get(node_id, ()))

    def degree(self, node_id: NodeId) -> int:
        return len(self._adjacency.get(node_id, ()))

    def neighbors_of(self, node_id: NodeId) -> list[tuple[Node, float]]:
        """Connected nodes ranked by similarity.

        Sorted by similarity descending; ties broken by node id ascending so
        the list is deterministic.

        Args:
            node_id: Node whose neighbors are wanted

        Returns:
            List of (neighbor, similarity) pairs; empty for unknown ids
        """
        ranked = [
            (self.nodes_by_id[edge.other(node_id)], edge.similarity)
            for edge in self._adjacency.get(node_id, ())
        ]
        ranked.sort(key=lambda pair: (-pair[1], id_sort_key(pair[0].id)))
        return ranked

    def categories(self) -> list[str]:
        """Distinct categories in first-seen order."""
        return list(dict.fromkeys(n.category for n in self.nodes))

    def group_by_category(self) -> dict[str, list[Node]]:
        groups: dict[str, list[Node]] = {}
        for node in self.nodes:
            groups.setdefault(node.category, []).append(node)
        return groups

    def release(self) -> None:
        """Drop node, edge and adjacency storage (view teardown)."""
        self.nodes = []
        self.edges = []
        self.nodes_by_id = {}
        self._adjacency = {}


def _validate(model: type[RawNode] | type[RawEdge], record: Any, index: int) -> Any:
    if isinstance(record, model):
        return record
    try:
        return model.model_validate(record)
    except ValidationError as e:
        kind = "node" if model is RawNode else "edge"
        raise InvalidRecordError(
            f"Invalid {kind} record at index {index}: {e.errors()[0]['msg']}",
            context={"index": index, "record": record, "errors": e.errors()},
        ) from e


def build_graph(
    raw_nodes: Iterable[RawNode | dict[str, Any]],
    raw_edges: Iterable[RawEdge | dict[str, Any]],
    weight_floor: float = DEFAULT_WEIGHT_FLOOR,
) -> Graph:
    """Validate and normalize raw records into a Graph.

    An empty node list yields a valid empty graph; callers decide how to
    present "no data".

    Args:
        raw_nodes: Node records (dicts or RawNode)
        raw_edges: Edge records (dicts or RawEdge)
        weight_floor: Minimum node weight, keeps every radius positive

    Returns:
        Graph with adjacency index

    Raises:
        InvalidRecordError: A record failed schema validation
        DuplicateNodeError: Two nodes share an id
        DanglingEdgeError: An edge references an unknown node id
        SelfLoopError: An edge connects a node to itself
    """
    nodes: list[Node] = []
    seen: set[NodeId] = set()

    for i, record in enumerate(raw_nodes):
        raw = _validate(RawNode, record, i)
        if raw.id in seen:
            raise DuplicateNodeError(
                f"Duplicate node id: {raw.id!r}", context={"node_id": raw.id}
            )
        seen.add(raw.id)
        nodes.append(
            Node(
                id=raw.id,
                label=raw.label,
                category=raw.category,
                weight=max(raw.weight, weight_floor),
                metadata=raw.metadata,
            )
        )

    by_pair: dict[tuple[NodeId, NodeId], Edge] = {}
    duplicates = 0

    for i, record in enumerate(raw_edges):
        raw = _validate(RawEdge, record, i)
        for endpoint in (raw.source_id, raw.target_id):
            if endpoint not in seen:
                raise DanglingEdgeError(
                    f"Edge {raw.source_id!r} -> {raw.target_id!r} references "
                    f"unknown node {endpoint!r}",
                    context={"edge_index": i, "node_id": endpoint},
                )
        if raw.source_id == raw.target_id:
            raise SelfLoopError(
                f"Self-loop on node {raw.source_id!r}",
                context={"edge_index": i, "node_id": raw.source_id},
            )

        edge = Edge(raw.source_id, raw.target_id, raw.similarity)
        existing = by_pair.get(edge.key)
        if existing is None:
            by_pair[edge.key] = edge
            continue
        duplicates += 1
        if edge.similarity > existing.similarity:
            by_pair[edge.key] = edge

    if duplicates:
        logger.warning(f"Collapsed {duplicates} duplicate edge(s), kept highest similarity")

    graph = Graph(nodes, list(by_pair.values()))
    logger.debug(f"Built graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph
