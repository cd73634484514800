"""Shared option handling for similarity-network commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from ...config.defaults import DEFAULT_ENDPOINT
from ...config.settings import NetworkConfig, load_config
from ...core.graph import Graph, build_graph
from ...core.models import GraphPayload, NodeId
from ...core.source import load_payload

SOURCE_ARGUMENT = typer.Argument(
    ..., help="Graph JSON file, or base URL of the similarity-graph endpoint"
)
THRESHOLD_OPTION = typer.Option(
    None,
    "--threshold",
    "-t",
    help="Minimum edge similarity (default: 0.7)",
    min=0.0,
    max=1.0,
    rich_help_panel="🔍 Filters",
)
MAX_NODES_OPTION = typer.Option(
    None,
    "--max-nodes",
    "-n",
    help="Node cap (default: 50)",
    min=1,
    max=500,
    rich_help_panel="🔍 Filters",
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML file with layout options",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
    rich_help_panel="🔧 Global Options",
)
ENDPOINT_OPTION = typer.Option(
    DEFAULT_ENDPOINT,
    "--endpoint",
    help="Endpoint path appended to a URL source",
    rich_help_panel="🌐 Source Options",
)
VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Verbose output",
    rich_help_panel="🔧 Global Options",
)


def resolve_config(
    config_path: Path | None,
    threshold: float | None,
    max_nodes: int | None,
    **overrides: object,
) -> NetworkConfig:
    return load_config(config_path, threshold=threshold, max_nodes=max_nodes, **overrides)


def fetch_payload(source: str, config: NetworkConfig, endpoint: str) -> GraphPayload:
    return asyncio.run(
        load_payload(source, config.threshold, config.max_nodes, endpoint=endpoint)
    )


def load_graph(source: str, config: NetworkConfig, endpoint: str) -> Graph:
    payload = fetch_payload(source, config, endpoint)
    return build_graph(payload.nodes, payload.edges, weight_floor=config.weight_floor)


def resolve_node_id(graph: Graph, raw: str) -> NodeId | None:
    """Map a CLI string to a graph id (ids may be ints in the payload)."""
    if raw in graph:
        return raw
    try:
        as_int = int(raw)
    except ValueError:
        return None
    return as_int if as_int in graph else None
