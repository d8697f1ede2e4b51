"""
CLI Interface - Command-line tools for ThoughtGraph.

Provides commands for:
- Running the reasoning pipeline
- Inspecting evidence scores
- Multi-layer network analysis
"""

from .main import app, main

__all__ = ["app", "main"]
