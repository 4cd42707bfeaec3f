from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from schtree.algo import build_tree
from schtree.core.tree import TreeInvariantError, validate_tree

from .datasets import DatasetError, load_dataset
from .support.verify_utils import verify_against_baseline


def verify_command(
    dataset: Path = typer.Argument(..., help="CSV dataset: header row, D numeric columns, label."),
    k: int = typer.Option(100, "--k", "-k", min=1, help="Neighbours compared per query."),
    random_queries: int = typer.Option(1000, "--random-queries", min=0, help="Uniform random queries in [low, high)."),
    low: float = typer.Option(0.0, "--low", help="Lower bound of random query coordinates."),
    high: float = typer.Option(100.0, "--high", help="Upper bound of random query coordinates."),
    seed: int = typer.Option(0, "--seed", help="Seed for random queries."),
    dimension: Optional[int] = typer.Option(None, "--dimension", "-d", help="Numeric columns per row (inferred when omitted)."),
    engine: Optional[str] = typer.Option(None, "--engine", help="Search engine: python or numba."),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Threads for bulk queries."),
) -> None:
    """Check tree results against the exhaustive search."""

    try:
        data = load_dataset(dataset, dimension=dimension)
    except DatasetError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    tree = build_tree(data.points)
    try:
        validate_tree(tree)
    except TreeInvariantError as exc:
        typer.echo(f"error: tree validation failed: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    report = verify_against_baseline(
        tree,
        k=k,
        random_queries=random_queries,
        low=low,
        high=high,
        seed=seed,
        engine=engine,
        workers=workers,
    )
    for mismatch in report.mismatches[:10]:
        typer.echo(
            f"mismatch ({mismatch.source} #{mismatch.position}): "
            f"expected {list(mismatch.expected)[:5]}..., got {list(mismatch.actual)[:5]}...",
            err=True,
        )
    if not report.ok:
        typer.echo(f"FAILED: {len(report.mismatches)} of {report.checked} queries differ", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"OK: {report.checked} queries match (k={k}, leaves={tree.num_leaves})")


__all__ = ["verify_command"]
