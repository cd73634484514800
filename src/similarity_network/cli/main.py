"""Main CLI application for similarity-network."""

import typer

from .. import __version__
from .commands.inspect_cmd import neighbors, stats
from .commands.layout import layout
from .output import console

app = typer.Typer(
    name="similarity-network",
    help="🕸️  Force-directed layout for content similarity graphs",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command("layout")(layout)
app.command("neighbors")(neighbors)
app.command("stats")(stats)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"similarity-network version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """🕸️  Similarity Network - lay out and inspect content similarity graphs."""


if __name__ == "__main__":
    app()
