"""Unit tests for the graph model (build, de-duplication, neighbor ranking)."""

import math

import pytest

from similarity_network.core.exceptions import (
    DanglingEdgeError,
    DuplicateNodeError,
    IngestError,
    InvalidRecordError,
    SelfLoopError,
)
from similarity_network.core.graph import Edge, Graph, build_graph, id_sort_key
from similarity_network.core.models import RawNode

from conftest import make_nodes


class TestBuildGraph:
    """Validation and normalization at ingestion."""

    def test_every_edge_resolves_to_a_node(self, triangle_graph):
        """All edge endpoints are present in the model."""
        for edge in triangle_graph.edges:
            assert edge.source_id in triangle_graph
            assert edge.target_id in triangle_graph

    def test_dangling_edge_raises(self):
        """Edge to an unknown node id fails with DanglingEdgeError."""
        with pytest.raises(DanglingEdgeError) as exc_info:
            build_graph(make_nodes(2), [{"source_id": 1, "target_id": 99, "similarity": 0.9}])

        assert isinstance(exc_info.value, IngestError)
        assert exc_info.value.context["node_id"] == 99

    def test_dangling_source_raises(self):
        """Unknown source id is caught as well as unknown target."""
        with pytest.raises(DanglingEdgeError):
            build_graph(make_nodes(2), [{"source_id": 7, "target_id": 1, "similarity": 0.9}])

    def test_self_loop_rejected(self):
        """An edge from a node to itself is rejected."""
        with pytest.raises(SelfLoopError):
            build_graph(make_nodes(2), [{"source_id": 2, "target_id": 2, "similarity": 1.0}])

    def test_duplicate_node_id_rejected(self):
        """Node ids must be unique."""
        nodes = make_nodes(2) + [{"id": 1, "label": "again"}]
        with pytest.raises(DuplicateNodeError):
            build_graph(nodes, [])

    def test_empty_input_is_valid(self):
        """No nodes and no edges yields an empty graph, not an error."""
        graph = build_graph([], [])

        assert len(graph) == 0
        assert graph.edges == []

    def test_similarity_out_of_range_is_invalid(self):
        """Similarity must be within [0, 1]."""
        with pytest.raises(InvalidRecordError):
            build_graph(make_nodes(2), [{"source_id": 1, "target_id": 2, "similarity": 1.5}])

    def test_similarity_rounding_overshoot_is_clamped(self):
        """Float noise just above 1.0 is accepted as 1.0."""
        graph = build_graph(
            make_nodes(2), [{"source_id": 1, "target_id": 2, "similarity": 1.0000000000000002}]
        )
        assert graph.edges[0].similarity == 1.0

    @pytest.mark.parametrize("weight", [math.inf, math.nan])
    def test_non_finite_weight_is_invalid(self, weight):
        """Infinite or NaN weight would give a non-finite radius."""
        nodes = [{"id": 1, "weight": weight}, {"id": 2, "weight": 10}]
        edges = [{"source_id": 1, "target_id": 2, "similarity": 0.5}]

        with pytest.raises(InvalidRecordError):
            build_graph(nodes, edges)

    def test_nan_similarity_is_invalid(self):
        with pytest.raises(InvalidRecordError):
            build_graph(make_nodes(2), [{"source_id": 1, "target_id": 2, "similarity": math.nan}])

    def test_negative_weight_is_invalid(self):
        """Node weight cannot be negative."""
        with pytest.raises(InvalidRecordError):
            build_graph([{"id": 1, "weight": -3}], [])

    def test_missing_node_id_is_invalid(self):
        """Node records need an id."""
        with pytest.raises(InvalidRecordError) as exc_info:
            build_graph([{"label": "no id"}], [])
        assert exc_info.value.context["index"] == 0

    def test_weight_floor_keeps_radius_positive(self):
        """Zero weight is raised to the floor so radius > 0."""
        graph = build_graph([{"id": "a", "weight": 0}], [], weight_floor=1.0)

        assert graph.node("a").weight == 1.0
        assert graph.node("a").radius == 1.0

    def test_radius_is_sqrt_weight(self):
        """Radius is derived from weight."""
        graph = build_graph([{"id": "a", "weight": 49}], [])
        assert graph.node("a").radius == 7.0

    def test_endpoint_field_names_accepted(self):
        """title/language/size and source/target map onto the canonical fields."""
        graph = build_graph(
            [
                {"id": 1, "title": "One", "language": "en", "size": 16, "article_id": 10},
                {"id": 2, "title": "Two", "language": "zh", "size": 25},
            ],
            [{"source": 1, "target": 2, "similarity": 0.8, "weight": 8.0}],
        )

        one = graph.node(1)
        assert one.label == "One"
        assert one.category == "en"
        assert one.radius == 4.0
        assert one.metadata == {"article_id": 10}
        assert graph.edges[0].source_id == 1

    def test_accepts_raw_node_instances(self):
        """Pre-validated RawNode records pass straight through."""
        graph = build_graph([RawNode(id=1), RawNode(id=2)], [])
        assert [n.id for n in graph.nodes] == [1, 2]


class TestEdgeDeduplication:
    """Duplicate unordered pairs collapse to the most similar record."""

    def test_reverse_duplicate_keeps_highest_similarity(self):
        """(1, 2) and (2, 1) are the same undirected edge."""
        graph = build_graph(
            make_nodes(2),
            [
                {"source_id": 1, "target_id": 2, "similarity": 0.7},
                {"source_id": 2, "target_id": 1, "similarity": 0.9},
            ],
        )

        assert len(graph.edges) == 1
        assert graph.edges[0].similarity == 0.9

    def test_lower_duplicate_does_not_replace(self):
        """A later, less similar duplicate is dropped."""
        graph = build_graph(
            make_nodes(2),
            [
                {"source_id": 1, "target_id": 2, "similarity": 0.95},
                {"source_id": 1, "target_id": 2, "similarity": 0.6},
            ],
        )

        assert len(graph.edges) == 1
        assert graph.edges[0].similarity == 0.95
        assert graph.degree(1) == 1


class TestNeighborsOf:
    """Ranked neighbor query."""

    def test_sorted_by_similarity_then_id(self, triangle_graph):
        """Equal similarities are ordered by ascending node id."""
        ranked = triangle_graph.neighbors_of(1)

        assert [(n.id, s) for n, s in ranked] == [(2, 0.8), (3, 0.8)]

    def test_descending_similarity(self, triangle_graph):
        """Higher similarity comes first."""
        ranked = triangle_graph.neighbors_of(3)

        assert [n.id for n, _ in ranked] == [1, 2]
        assert ranked[0][1] > ranked[1][1]

    def test_unknown_node_returns_empty(self, triangle_graph):
        """Unknown ids produce no neighbors instead of raising."""
        assert triangle_graph.neighbors_of(404) == []

    def test_isolated_node_has_no_neighbors(self):
        """A node without edges has an empty list."""
        graph = build_graph(make_nodes(2), [])
        assert graph.neighbors_of(1) == []

    def test_mixed_id_types_sort_deterministically(self):
        """Integer ids sort before string ids on ties."""
        graph = build_graph(
            [{"id": "hub"}, {"id": "b"}, {"id": 5}, {"id": "a"}],
            [
                {"source_id": "hub", "target_id": "b", "similarity": 0.5},
                {"source_id": "hub", "target_id": 5, "similarity": 0.5},
                {"source_id": "a", "target_id": "hub", "similarity": 0.5},
            ],
        )

        assert [n.id for n, _ in graph.neighbors_of("hub")] == [5, "a", "b"]


class TestGraphQueries:
    """Adjacency-derived attributes."""

    def test_incident_edges_and_degree(self, triangle_graph):
        """Adjacency lists every edge touching the node."""
        incident = triangle_graph.incident_edges(2)

        assert len(incident) == 2
        assert all(edge.touches(2) for edge in incident)
        assert triangle_graph.degree(2) == 2
        assert triangle_graph.degree(404) == 0

    def test_group_by_category(self):
        """Nodes are grouped by category in first-seen order."""
        graph = build_graph(
            [
                {"id": 1, "category": "zh"},
                {"id": 2, "category": "en"},
                {"id": 3, "category": "zh"},
            ],
            [],
        )

        assert graph.categories() == ["zh", "en"]
        assert [n.id for n in graph.group_by_category()["zh"]] == [1, 3]

    def test_edge_weight_derived_from_similarity(self):
        """Render thickness is sqrt(similarity * 10)."""
        edge = Edge(1, 2, 0.9)
        assert edge.weight == pytest.approx(math.sqrt(9.0))
        assert edge.other(1) == 2
        assert edge.other(2) == 1

    def test_direct_construction_rejects_dangling_edge(self):
        """Graph() checks endpoints even without build_graph."""
        nodes = build_graph(make_nodes(2), []).nodes

        with pytest.raises(DanglingEdgeError) as exc_info:
            Graph(nodes, [Edge(1, 3, 0.5)])

        assert exc_info.value.context["node_id"] == 3

    def test_build_classmethod_matches_function(self):
        """Graph.build is an alias for build_graph."""
        graph = Graph.build(make_nodes(2), [{"source_id": 1, "target_id": 2, "similarity": 0.5}])
        assert len(graph.edges) == 1

    def test_release_drops_storage(self, triangle_graph):
        """Teardown empties nodes, edges and adjacency."""
        triangle_graph.release()

        assert len(triangle_graph) == 0
        assert triangle_graph.incident_edges(1) == []

    def test_id_sort_key_orders_ints_before_strings(self):
        """Mixed ids have a total order."""
        assert sorted([3, "b", 1, "a"], key=id_sort_key) == [1, 3, "a", "b"]
