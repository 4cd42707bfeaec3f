"""Benchmark batched k-NN query latency for the schtree implementation.

Thin argparse front-end over ``cli.sch.support.benchmark_utils`` so the
benchmark can run without the Typer CLI installed as a console script.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict

from cli.sch.support.benchmark_utils import benchmark_knn_latency, run_brute_force_baseline


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark batched k-NN query latency for the schtree implementation."
    )
    parser.add_argument("--dimension", type=int, default=8, help="Dimensionality of points.")
    parser.add_argument(
        "--tree-points",
        type=int,
        default=16_384,
        help="Number of points to index before querying.",
    )
    parser.add_argument(
        "--queries",
        type=int,
        default=1024,
        help="Number of query points to evaluate.",
    )
    parser.add_argument("--k", type=int, default=8, help="Number of neighbours to request.")
    parser.add_argument("--seed", type=int, default=0, help="Random seed.")
    parser.add_argument(
        "--engine",
        choices=("python", "numba"),
        default=None,
        help="Search engine (default: SCHTREE_ENABLE_NUMBA).",
    )
    parser.add_argument("--workers", type=int, default=None, help="Threads for bulk queries.")
    parser.add_argument(
        "--baseline",
        action="store_true",
        help="Also time the exhaustive search and report mismatching queries.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit results as JSON instead of plain text.",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    tree, queries, result = benchmark_knn_latency(
        dimension=args.dimension,
        tree_points=args.tree_points,
        query_count=args.queries,
        k=args.k,
        seed=args.seed,
        engine=args.engine,
        workers=args.workers,
    )
    payload = {"schtree": asdict(result), "tree": tree.describe()}
    if args.baseline:
        payload["baseline"] = asdict(run_brute_force_baseline(tree, queries, k=args.k, engine=args.engine))

    if args.json:
        print(json.dumps(payload, indent=2, sort_keys=True))
        return
    print(
        f"schtree| build={result.build_seconds:.4f}s queries={result.queries} k={result.k} "
        f"time={result.elapsed_seconds:.4f}s latency={result.latency_ms:.4f}ms "
        f"throughput={result.queries_per_second:,.1f} q/s"
    )
    if args.baseline:
        baseline = payload["baseline"]
        print(
            f"baseline| time={baseline['elapsed_seconds']:.4f}s "
            f"latency={baseline['latency_ms']:.4f}ms "
            f"mismatches={baseline['mismatched_queries']}"
        )


if __name__ == "__main__":
    main()
