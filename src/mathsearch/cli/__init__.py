"""
CLI Module - Command-line interface for MathSearch.
===================================================

Usage:
    mathsearch --help
    mathsearch init-index
    mathsearch load data/datasets/grade3.json --batch 50
    mathsearch search "What is 5 + 3?" --grade 3
    mathsearch check-duplicate "What is 5 plus 3?"

Components:
- main: Typer CLI application
"""

from mathsearch.cli.main import app, cli

__all__ = ["app", "cli"]
