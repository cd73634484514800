"""Rich console helpers shared by CLI commands."""

import sys
from typing import Any

import orjson
from loguru import logger
from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Route loguru to stderr; DEBUG only with --verbose."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def print_error(message: str) -> None:
    err_console.print(f"[red]✗[/red] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def dump_json(data: Any) -> bytes:
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_SERIALIZE_NUMPY)
