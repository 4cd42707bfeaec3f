from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from schtree.algo import build_tree
from schtree.queries import knn_search

from .datasets import DatasetError, load_dataset, parse_point


def query_command(
    dataset: Path = typer.Argument(..., help="CSV dataset: header row, D numeric columns, label."),
    k: int = typer.Option(10, "--k", "-k", min=1, help="Number of neighbours to report."),
    row: Optional[int] = typer.Option(None, "--row", help="Use dataset row ROW as the query."),
    point: Optional[str] = typer.Option(None, "--point", help="Comma separated query coordinates."),
    dimension: Optional[int] = typer.Option(None, "--dimension", "-d", help="Numeric columns per row (inferred when omitted)."),
    engine: Optional[str] = typer.Option(None, "--engine", help="Search engine: python or numba."),
) -> None:
    """Print the K nearest dataset rows to a query point."""

    if (row is None) == (point is None):
        raise typer.BadParameter("pass exactly one of --row or --point")
    try:
        data = load_dataset(dataset, dimension=dimension)
        if point is not None:
            query = parse_point(point, dimension=data.dimension)
        else:
            if not 0 <= row < len(data):
                raise DatasetError(f"row {row} is outside [0, {len(data)}).")
            query = data.points[row]
    except DatasetError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    tree = build_tree(data.points)
    try:
        result = knn_search(tree, query, k, sort=True, engine=engine)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    for rank, neighbor in enumerate(result.sorted_view(), start=1):
        typer.echo(f"{rank}\t{neighbor.index}\t{neighbor.distance:.4f}\t{data.labels[neighbor.index]}")


__all__ = ["query_command"]
