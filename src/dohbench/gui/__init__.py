"""
GUI package for DoH Bench.

Provides a web-based interface for running benchmarks.
"""

from .app import create_app, run_gui

__all__ = ["create_app", "run_gui"]
