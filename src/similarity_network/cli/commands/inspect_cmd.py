"""Graph inspection commands: ranked neighbors and graph statistics."""

from __future__ import annotations

from pathlib import Path
from statistics import mean

import typer
from loguru import logger
from rich.table import Table

from ...core.exceptions import SimilarityNetworkError
from ...core.render import category_colors, truncate_label
from ..output import console, dump_json, print_error, print_info, setup_logging
from .common import (
    CONFIG_OPTION,
    ENDPOINT_OPTION,
    MAX_NODES_OPTION,
    SOURCE_ARGUMENT,
    THRESHOLD_OPTION,
    VERBOSE_OPTION,
    load_graph,
    resolve_config,
    resolve_node_id,
)


def neighbors(
    source: str = SOURCE_ARGUMENT,
    node: str = typer.Argument(..., help="Node id whose connected items to list"),
    threshold: float | None = THRESHOLD_OPTION,
    max_nodes: int | None = MAX_NODES_OPTION,
    config_path: Path | None = CONFIG_OPTION,
    endpoint: str = ENDPOINT_OPTION,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output neighbors in JSON format",
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """🔗 List the items connected to NODE, most similar first."""
    setup_logging(verbose)

    try:
        config = resolve_config(config_path, threshold, max_nodes)
        graph = load_graph(source, config, endpoint)

        node_id = resolve_node_id(graph, node)
        if node_id is None:
            print_error(f"Unknown node id: {node}")
            raise typer.Exit(1)

        ranked = graph.neighbors_of(node_id)

        if json_output:
            typer.echo(
                dump_json(
                    [
                        {
                            "id": other.id,
                            "label": other.label,
                            "category": other.category,
                            "similarity": similarity,
                        }
                        for other, similarity in ranked
                    ]
                ).decode()
            )
            return

        selected = graph.nodes_by_id[node_id]
        if not ranked:
            print_info(f"'{selected.label}' has no connections at this threshold")
            return

        table = Table(title=f"Connected to: {selected.label}")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Title", style="cyan")
        table.add_column("Category", style="magenta")
        table.add_column("Similarity", style="green", justify="right")
        for rank, (other, similarity) in enumerate(ranked, start=1):
            table.add_row(
                str(rank),
                truncate_label(other.label, 40),
                other.category,
                f"{similarity * 100:.0f}%",
            )
        console.print(table)

    except SimilarityNetworkError as e:
        logger.error(f"Neighbor lookup failed: {e}")
        print_error(str(e))
        raise typer.Exit(1)


def stats(
    source: str = SOURCE_ARGUMENT,
    threshold: float | None = THRESHOLD_OPTION,
    max_nodes: int | None = MAX_NODES_OPTION,
    config_path: Path | None = CONFIG_OPTION,
    endpoint: str = ENDPOINT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """📊 Show node/edge counts, degree summary and per-category groups."""
    setup_logging(verbose)

    try:
        config = resolve_config(config_path, threshold, max_nodes)
        graph = load_graph(source, config, endpoint)
    except SimilarityNetworkError as e:
        logger.error(f"Failed to load graph: {e}")
        print_error(str(e))
        raise typer.Exit(1)

    degrees = [graph.degree(n.id) for n in graph.nodes]
    isolated = sum(1 for d in degrees if d == 0)

    table = Table(title="Similarity Network Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Nodes", str(len(graph.nodes)))
    table.add_row("Edges", str(len(graph.edges)))
    table.add_row("Isolated nodes", str(isolated))
    table.add_row("Mean degree", f"{mean(degrees):.2f}" if degrees else "-")
    table.add_row("Max degree", str(max(degrees)) if degrees else "-")
    if graph.edges:
        table.add_row(
            "Mean similarity", f"{mean(e.similarity for e in graph.edges):.3f}"
        )
    console.print(table)

    groups = graph.group_by_category()
    if not groups:
        return

    colors = category_colors(list(groups))
    category_table = Table(title="Categories")
    category_table.add_column("Category", style="magenta")
    category_table.add_column("Nodes", justify="right")
    category_table.add_column("Color")
    for category, members in groups.items():
        color = colors[category]
        category_table.add_row(
            category or "(none)", str(len(members)), f"[{color}]■[/] {color}"
        )
    console.print(category_table)
