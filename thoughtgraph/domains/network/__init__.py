"""
Network Domain - Multi-layer view of the reasoning graph.

This domain handles:
- Layer decomposition by abstraction level
- Similarity-based inter-layer connections
- Per-layer structural metrics and community detection
- Cross-layer emergence, reduction and information flow
"""

from .analyzer import analyze_cross_layer, analyze_layer, layer_graph
from .builder import (
    MultiLayerBuilder,
    connection_kind,
    default_layer_definitions,
    global_metrics,
    layer_complexity,
    semantic_similarity,
)
from .models import (
    CentralNode,
    Community,
    ConnectionKind,
    CrossLayerAnalysis,
    EmergentProperty,
    EpistemicStatus,
    FlowDirection,
    GlobalMetrics,
    InformationFlow,
    InterLayerConnection,
    LayerAnalysis,
    LayerDefinition,
    LayerKind,
    LayerMetrics,
    MultiLayerNetwork,
    NetworkLayer,
    NodeMapping,
    PropagationReport,
    PropagationResult,
    ReductionMapping,
    epistemic_status_for,
)

__all__ = [
    # Models
    "CentralNode",
    "Community",
    "ConnectionKind",
    "CrossLayerAnalysis",
    "EmergentProperty",
    "EpistemicStatus",
    "FlowDirection",
    "GlobalMetrics",
    "InformationFlow",
    "InterLayerConnection",
    "LayerAnalysis",
    "LayerDefinition",
    "LayerKind",
    "LayerMetrics",
    "MultiLayerNetwork",
    "NetworkLayer",
    "NodeMapping",
    "PropagationReport",
    "PropagationResult",
    "ReductionMapping",
    "epistemic_status_for",
    # Builder
    "connection_kind",
    "default_layer_definitions",
    "global_metrics",
    "layer_complexity",
    "semantic_similarity",
    # Analysis
    "analyze_cross_layer",
    "analyze_layer",
    "layer_graph",
    # Implementations
    "MultiLayerBuilder",
]
