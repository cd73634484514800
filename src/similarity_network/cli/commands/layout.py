"""Layout command: run the force simulation and export a render frame."""

from __future__ import annotations

from pathlib import Path

import typer
from loguru import logger
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ...core.exceptions import SimilarityNetworkError
from ...core.interaction import Select
from ...core.session import VisualizationSession
from ...core.simulation import ForceSimulation
from ..output import console, dump_json, print_error, print_success, setup_logging
from .common import (
    CONFIG_OPTION,
    ENDPOINT_OPTION,
    MAX_NODES_OPTION,
    SOURCE_ARGUMENT,
    THRESHOLD_OPTION,
    VERBOSE_OPTION,
    fetch_payload,
    resolve_config,
    resolve_node_id,
)


def layout(
    source: str = SOURCE_ARGUMENT,
    threshold: float | None = THRESHOLD_OPTION,
    max_nodes: int | None = MAX_NODES_OPTION,
    config_path: Path | None = CONFIG_OPTION,
    endpoint: str = ENDPOINT_OPTION,
    ticks: int | None = typer.Option(
        None,
        "--ticks",
        help="Stop after this many ticks instead of running to convergence",
        min=1,
        rich_help_panel="⚡ Simulation Options",
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Random seed for reproducible layouts",
        rich_help_panel="⚡ Simulation Options",
    ),
    select: str | None = typer.Option(
        None,
        "--select",
        help="Node id to mark selected (adds its ranked neighbors to the frame)",
        rich_help_panel="📊 Output Options",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the render frame JSON here (default: stdout)",
        rich_help_panel="📊 Output Options",
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """🕸️  Lay out a similarity graph and export the render frame.

    [bold cyan]Examples:[/bold cyan]

    [green]From an exported file:[/green]
        $ similarity-network layout graph.json -o frame.json

    [green]From the live endpoint, lower threshold:[/green]
        $ similarity-network layout https://cms.example.com -t 0.5 -n 100
    """
    setup_logging(verbose)

    try:
        config = resolve_config(config_path, threshold, max_nodes, seed=seed)
        payload = fetch_payload(source, config, endpoint)

        session = VisualizationSession(config)
        graph = session.load(payload)
        simulation = session.simulation
        if simulation is None:
            raise RuntimeError("Session loaded without a simulation")

        executed = _run_with_progress(simulation, ticks, quiet=output is None)

        if select is not None:
            node_id = resolve_node_id(graph, select)
            if node_id is None:
                print_error(f"Unknown node id: {select}")
                raise typer.Exit(1)
            session.dispatch(Select(node_id))

        frame = session.snapshot()
        if frame is None:
            raise RuntimeError("Session has no frame to export")
        data = frame.model_dump(mode="json")

        if output is None:
            typer.echo(dump_json(data).decode())
            return

        output.write_bytes(dump_json(data))
        _print_summary(session, executed)
        print_success(f"Wrote render frame to {output}")

    except SimilarityNetworkError as e:
        logger.error(f"Layout failed: {e}")
        print_error(str(e))
        raise typer.Exit(1)


def _run_with_progress(
    simulation: ForceSimulation, ticks: int | None, quiet: bool
) -> int:
    if quiet:
        return simulation.run(max_ticks=ticks)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("alpha={task.fields[alpha]:.4f}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(
            "Simulating layout...", total=ticks, alpha=simulation.alpha
        )
        simulation.on(
            "tick",
            lambda sim: progress.update(task, advance=1, alpha=sim.alpha),
        )
        return simulation.run(max_ticks=ticks)


def _print_summary(session: VisualizationSession, executed: int) -> None:
    graph, simulation = session.graph, session.simulation
    if graph is None or simulation is None:
        return

    table = Table(title="Layout Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Nodes", str(len(graph.nodes)))
    table.add_row("Edges", str(len(graph.edges)))
    table.add_row("Categories", str(len(graph.categories())))
    table.add_row("Ticks", str(executed))
    table.add_row("Alpha", f"{simulation.alpha:.5f}")
    table.add_row("State", simulation.state.value)
    console.print(table)
