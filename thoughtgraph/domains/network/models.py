"""
Network Models - Data types for the multi-layer network view.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from thoughtgraph.domains.knowledge.models import Edge, Node, utcnow


class LayerKind(str, Enum):
    """Abstraction level a layer represents."""

    EVIDENCE = "evidence"
    HYPOTHESIS = "hypothesis"
    THEORY = "theory"
    META_THEORY = "meta_theory"
    METHODOLOGY = "methodology"


class EpistemicStatus(str, Enum):
    EMPIRICAL = "empirical"
    THEORETICAL = "theoretical"
    META_THEORETICAL = "meta_theoretical"


_EPISTEMIC_STATUS: dict[LayerKind, EpistemicStatus] = {
    LayerKind.EVIDENCE: EpistemicStatus.EMPIRICAL,
    LayerKind.HYPOTHESIS: EpistemicStatus.THEORETICAL,
    LayerKind.THEORY: EpistemicStatus.THEORETICAL,
    LayerKind.META_THEORY: EpistemicStatus.META_THEORETICAL,
    LayerKind.METHODOLOGY: EpistemicStatus.META_THEORETICAL,
}


def epistemic_status_for(kind: LayerKind) -> EpistemicStatus:
    return _EPISTEMIC_STATUS[kind]


class ConnectionKind(str, Enum):
    """Relationship between nodes in different layers."""

    ABSTRACTION = "abstraction"
    INSTANTIATION = "instantiation"
    EMERGENCE = "emergence"
    REDUCTION = "reduction"
    CORRESPONDENCE = "correspondence"


class FlowDirection(str, Enum):
    UPWARD = "upward"
    DOWNWARD = "downward"
    LATERAL = "lateral"


@dataclass(frozen=True)
class LayerDefinition:
    """Which nodes go into a layer and where the layer sits."""

    name: str
    level: int
    kind: LayerKind
    predicate: Callable[[Node], bool]


# --- Network ---


class NetworkLayer(BaseModel):
    """Nodes of one abstraction level and the edges among them."""

    id: str
    name: str
    level: int
    kind: LayerKind
    description: str = ""
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    complexity: float = 0.0
    created_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def epistemic_status(self) -> EpistemicStatus:
        return epistemic_status_for(self.kind)

    @property
    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}


class InterLayerConnection(BaseModel):
    """Link between a node in one layer and a node in another."""

    id: str
    source_layer: str
    target_layer: str
    source_node: str
    target_node: str
    kind: ConnectionKind
    strength: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    bidirectional: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class GlobalMetrics(BaseModel):
    """Whole-network summary."""

    total_nodes: int = 0
    total_edges: int = 0
    layer_count: int = 0
    connectivity: float = 0.0
    hierarchical_depth: int = 0
    emergence_score: float = 0.0


class MultiLayerNetwork(BaseModel):
    """Layers plus the connections between them."""

    id: str
    layers: list[NetworkLayer] = Field(default_factory=list)
    connections: list[InterLayerConnection] = Field(default_factory=list)
    metrics: GlobalMetrics = Field(default_factory=GlobalMetrics)
    created_at: datetime = Field(default_factory=utcnow)

    def get_layer(self, layer_id: str) -> NetworkLayer | None:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None


# --- Analysis results ---


class LayerMetrics(BaseModel):
    node_density: float = 0.0
    edge_density: float = 0.0
    clustering_coefficient: float = 0.0
    path_length: float | None = Field(
        default=0.0,
        description="Mean weighted shortest-path length over connected pairs; None when no pair is connected",
    )
    centralization: float = 0.0
    modularity: float = 0.0


class CentralNode(BaseModel):
    node_id: str
    centrality: float
    influence: float


class Community(BaseModel):
    id: str
    nodes: list[str]
    cohesion: float


class LayerAnalysis(BaseModel):
    """Structural metrics for one layer."""

    layer_id: str
    metrics: LayerMetrics
    central_nodes: list[CentralNode] = Field(default_factory=list)
    communities: list[Community] = Field(default_factory=list)


class EmergentProperty(BaseModel):
    property: str
    strength: float
    layers: list[str]
    description: str = ""


class NodeMapping(BaseModel):
    higher: str
    lower: str
    fidelity: float


class ReductionMapping(BaseModel):
    """How nodes of a higher layer map onto a lower one."""

    higher_layer: str
    lower_layer: str
    nodes: list[NodeMapping] = Field(default_factory=list)


class InformationFlow(BaseModel):
    source_layer: str
    target_layer: str
    flow_rate: float
    direction: FlowDirection


class CrossLayerAnalysis(BaseModel):
    """Properties that only appear across layers."""

    emergent_properties: list[EmergentProperty] = Field(default_factory=list)
    reduction_mappings: list[ReductionMapping] = Field(default_factory=list)
    information_flow: list[InformationFlow] = Field(default_factory=list)


class PropagationResult(BaseModel):
    layer_id: str
    affected_nodes: list[str]
    impact: float


class PropagationReport(BaseModel):
    """Layers and nodes reached by a change to one node."""

    affected_layers: list[str] = Field(default_factory=list)
    results: list[PropagationResult] = Field(default_factory=list)
