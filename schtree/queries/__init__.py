"""Exact k-NN search over a built partition tree."""

from .knn import knn_bulk_search, knn_search, resolve_engine, results_to_arrays

__all__ = ["knn_search", "knn_bulk_search", "resolve_engine", "results_to_arrays"]
