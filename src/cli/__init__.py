"""Command-line entry point for the sketch diary."""

from .main import main

__all__ = ["main"]
