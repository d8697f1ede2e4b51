"""
thoughtgraph - Confidence-weighted graph-of-thoughts engine for scientific reasoning.

Example:
    >>> from thoughtgraph.domains.orchestration import ReasoningEngine
    >>> engine = ReasoningEngine(inference=provider)
    >>> outcome = await engine.execute_stage(1, "Does chromosomal instability drive CTCL progression?")
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
