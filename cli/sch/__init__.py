"""Typer application exposing the schtree subcommands."""

from .main import app, main

__all__ = ["app", "main"]
