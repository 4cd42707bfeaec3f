"""Helpers shared by the CLI commands and the benchmark scripts."""
