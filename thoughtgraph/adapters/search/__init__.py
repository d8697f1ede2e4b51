"""
Search Adapter - Evidence search provider.
"""

from .client import SonarSearchClient

__all__ = ["SonarSearchClient"]
