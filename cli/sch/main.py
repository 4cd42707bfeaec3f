from __future__ import annotations

import typer

from .benchmark_cli import benchmark_command
from .build_cli import build_command
from .query_cli import query_command
from .verify_cli import verify_command


_HELP = """Semi-convex-hull tree (schtree) command line interface.

Subcommands build trees from CSV datasets, run k-NN queries, verify results
against the exhaustive search and benchmark query latency."""

app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help=_HELP,
)


@app.callback()
def sch_callback() -> None:
    """Root callback reserved for shared options (none yet)."""
    pass


app.command("build", help="Build and validate a tree over a dataset.")(build_command)
app.command("query", help="Print the nearest neighbours of a query point.")(query_command)
app.command("verify", help="Compare tree results with the exhaustive search.")(verify_command)
app.command("benchmark", help="Measure build and query latency on synthetic data.")(benchmark_command)


def main() -> None:
    app()


__all__ = ["app", "main"]
