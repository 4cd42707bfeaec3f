from __future__ import annotations

from typing import Optional

import typer

from .support.benchmark_utils import benchmark_knn_latency, run_brute_force_baseline


def benchmark_command(
    dimension: int = typer.Option(8, "--dimension", min=1, help="Dimensionality of points."),
    tree_points: int = typer.Option(16_384, "--tree-points", min=1, help="Number of indexed points."),
    queries: int = typer.Option(1024, "--queries", min=1, help="Number of query points."),
    k: int = typer.Option(8, "--k", min=1, help="Number of neighbours to request."),
    seed: int = typer.Option(0, "--seed", help="Random seed."),
    engine: Optional[str] = typer.Option(None, "--engine", help="Search engine: python or numba."),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Threads for bulk queries."),
    baseline: bool = typer.Option(False, "--baseline/--no-baseline", help="Also time the exhaustive search."),
) -> None:
    """Measure build time and k-NN query latency on Gaussian data."""

    tree, query_points, result = benchmark_knn_latency(
        dimension=dimension,
        tree_points=tree_points,
        query_count=queries,
        k=k,
        seed=seed,
        engine=engine,
        workers=workers,
    )
    typer.echo(
        f"schtree: build={result.build_seconds:.4f}s queries={result.queries} k={result.k} "
        f"time={result.elapsed_seconds:.4f}s latency={result.latency_ms:.4f}ms "
        f"throughput={result.queries_per_second:,.1f} q/s"
    )
    if baseline:
        comparison = run_brute_force_baseline(tree, query_points, k=k, engine=engine)
        typer.echo(
            f"{comparison.name}: time={comparison.elapsed_seconds:.4f}s "
            f"latency={comparison.latency_ms:.4f}ms "
            f"throughput={comparison.queries_per_second:,.1f} q/s "
            f"mismatches={comparison.mismatched_queries}"
        )


__all__ = ["benchmark_command"]
