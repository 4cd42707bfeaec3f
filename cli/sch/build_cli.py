from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Optional

import typer

from schtree.algo import build_tree
from schtree.core.tree import TreeInvariantError, validate_tree

from .datasets import DatasetError, load_dataset


def build_command(
    dataset: Path = typer.Argument(..., help="CSV dataset: header row, D numeric columns, label."),
    dimension: Optional[int] = typer.Option(None, "--dimension", "-d", help="Numeric columns per row (inferred when omitted)."),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json."),
) -> None:
    """Build a tree over DATASET, validate it and print a summary."""

    try:
        data = load_dataset(dataset, dimension=dimension)
    except DatasetError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    start = time.perf_counter()
    tree = build_tree(data.points)
    build_seconds = time.perf_counter() - start
    try:
        validate_tree(tree)
    except TreeInvariantError as exc:
        typer.echo(f"error: tree validation failed: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    summary = dict(tree.describe(), build_seconds=build_seconds)
    if output_format == "json":
        typer.echo(json.dumps(summary, indent=2, sort_keys=True))
        return
    if output_format != "text":
        raise typer.BadParameter("format must be 'text' or 'json'", param_hint="--format")
    for key in sorted(summary):
        typer.echo(f"{key}: {summary[key]}")


__all__ = ["build_command"]
