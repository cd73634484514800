"""Shared fixtures for similarity-network tests."""

from pathlib import Path

import orjson
import pytest

from similarity_network.config.settings import NetworkConfig
from similarity_network.core.graph import Graph, build_graph


def make_nodes(count: int, category: str = "en", weight: float = 10.0) -> list[dict]:
    """Create ``count`` node records with ids 1..count."""
    return [
        {"id": i, "label": f"Article {i}", "category": category, "weight": weight}
        for i in range(1, count + 1)
    ]


@pytest.fixture
def config() -> NetworkConfig:
    """Default config with a fixed seed."""
    return NetworkConfig(seed=42)


@pytest.fixture
def triangle_graph() -> Graph:
    """Three nodes; node 1 links to 2 and 3 with equal similarity."""
    nodes = make_nodes(3)
    edges = [
        {"source_id": 1, "target_id": 3, "similarity": 0.8},
        {"source_id": 1, "target_id": 2, "similarity": 0.8},
        {"source_id": 2, "target_id": 3, "similarity": 0.75},
    ]
    return build_graph(nodes, edges)


@pytest.fixture
def endpoint_response() -> dict:
    """Response body in the shape the similarity-graph endpoint returns."""
    return {
        "graph": {
            "nodes": [
                {"id": 11, "article_id": 101, "title": "Getting started with Go", "language": "en", "size": 25},
                {"id": 12, "article_id": 102, "title": "Go 入门指南", "language": "zh", "size": 40},
                {"id": 13, "article_id": 103, "title": "Deploying with Docker Compose", "language": "en", "size": 10},
                {"id": 14, "article_id": 104, "title": "Unrelated note", "language": "en", "size": 10},
            ],
            "edges": [
                {"source": 11, "target": 12, "similarity": 0.93, "weight": 9.3},
                {"source": 11, "target": 13, "similarity": 0.74, "weight": 7.4},
                {"source": 12, "target": 13, "similarity": 0.71, "weight": 7.1},
            ],
        },
        "threshold": 0.7,
        "max_nodes": 50,
    }


@pytest.fixture
def graph_file(tmp_path: Path, endpoint_response: dict) -> Path:
    """Endpoint response saved to disk."""
    path = tmp_path / "graph.json"
    path.write_bytes(orjson.dumps(endpoint_response))
    return path
