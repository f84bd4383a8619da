"""Command-line interface for Tuning Master."""

from .main import cli, main

__all__ = ["cli", "main"]
