"""Command line entry points for schtree."""
