"""
Knowledge Domain - Reasoning graph data model and storage.

This domain handles:
- Four-dimensional confidence arithmetic
- Typed nodes, edges and hyperedges
- Dangling-reference filtering for consumer views
- JSON export and import of graph snapshots
"""

from .confidence import (
    DIMENSIONS,
    clamp,
    clamp_vector,
    cosine_similarity,
    mean,
    weighted_average,
)
from .contracts import GraphStore
from .graph_store import ROOT_NODE_ID, ReasoningGraphStore, slugify
from .models import (
    CausalMetadata,
    ConfidenceVector,
    Edge,
    EdgeKind,
    EdgeMetadata,
    EvidenceMetadata,
    EvidenceQuality,
    GraphData,
    GraphMetadata,
    GraphStats,
    HyperEdge,
    HyperEdgeKind,
    HyperEdgeMetadata,
    HypothesisMetadata,
    Node,
    NodeKind,
    NodeMetadata,
    TemporalMetadata,
)

__all__ = [
    # Contracts
    "GraphStore",
    # Confidence
    "DIMENSIONS",
    "clamp",
    "clamp_vector",
    "cosine_similarity",
    "mean",
    "weighted_average",
    # Models
    "CausalMetadata",
    "ConfidenceVector",
    "Edge",
    "EdgeKind",
    "EdgeMetadata",
    "EvidenceMetadata",
    "EvidenceQuality",
    "GraphData",
    "GraphMetadata",
    "GraphStats",
    "HyperEdge",
    "HyperEdgeKind",
    "HyperEdgeMetadata",
    "HypothesisMetadata",
    "Node",
    "NodeKind",
    "NodeMetadata",
    "TemporalMetadata",
    # Implementations
    "ROOT_NODE_ID",
    "ReasoningGraphStore",
    "slugify",
]
