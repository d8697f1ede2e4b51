"""
Knowledge Models - Data types for the reasoning graph.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializeAsAny,
    field_validator,
    model_serializer,
    model_validator,
)

from .confidence import DIMENSIONS, clamp, mean


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class NodeKind(str, Enum):
    """Types of nodes in the reasoning graph."""

    ROOT = "root"
    KNOWLEDGE = "knowledge"
    DIMENSION = "dimension"
    HYPOTHESIS = "hypothesis"
    EVIDENCE = "evidence"
    REFLECTION = "reflection"


class EdgeKind(str, Enum):
    """Relationship kinds carried by binary edges."""

    SUPPORTIVE = "supportive"
    CAUSAL_DIRECT = "causal_direct"
    CAUSAL_COUNTERFACTUAL = "causal_counterfactual"
    CAUSAL_CONFOUNDED = "causal_confounded"
    CORRELATIVE = "correlative"
    CONTRADICTORY = "contradictory"
    TEMPORAL_SEQUENTIAL = "temporal_sequential"
    TEMPORAL_PRECEDENCE = "temporal_precedence"
    TEMPORAL_DELAYED = "temporal_delayed"
    TEMPORAL_CYCLIC = "temporal_cyclic"


class HyperEdgeKind(str, Enum):
    """Relationship kinds spanning two or more nodes."""

    INTERDISCIPLINARY = "interdisciplinary"
    MULTI_CAUSAL = "multi_causal"
    COMPLEX_RELATIONSHIP = "complex_relationship"


class EvidenceQuality(str, Enum):
    """Categorical evidence quality."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConfidenceVector(BaseModel):
    """
    Four-dimensional confidence attached to a node.

    Serialized as ``[empirical_support, theoretical_basis,
    methodological_rigor, consensus_alignment]``; every component is clamped
    into ``[0, 1]`` on construction.
    """

    empirical_support: float = 0.5
    theoretical_basis: float = 0.5
    methodological_rigor: float = 0.5
    consensus_alignment: float = 0.5

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != len(DIMENSIONS):
                raise ValueError(f"confidence vector needs {len(DIMENSIONS)} components")
            return dict(zip(DIMENSIONS, data))
        return data

    @field_validator("*", mode="after")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return clamp(value)

    @model_serializer
    def _as_list(self) -> list[float]:
        return self.as_list()

    @classmethod
    def of(cls, *values: float) -> ConfidenceVector:
        """Build from positional components."""
        return cls.model_validate(list(values))

    def as_list(self) -> list[float]:
        """Components in canonical order."""
        return [getattr(self, name) for name in DIMENSIONS]

    def mean(self) -> float:
        """Mean of the four components."""
        return mean(self.as_list())


# --- Metadata variants ---


class NodeMetadata(BaseModel):
    """Provenance and payload shared by every node kind."""

    source_description: str = ""
    value: str = ""
    notes: str = ""
    disciplinary_tags: list[str] = Field(default_factory=list)
    impact_score: float = Field(default=0.0, ge=0.0, le=1.0)
    attribution: str = ""
    timestamp: datetime = Field(default_factory=utcnow)


class HypothesisMetadata(NodeMetadata):
    """Hypothesis payload; falsification criteria are mandatory."""

    falsification_criteria: str = Field(min_length=1)
    merged_from: list[str] = Field(default_factory=list)


class EvidenceMetadata(NodeMetadata):
    """Evidence payload with scoring outputs."""

    statistical_power: float = Field(default=0.5, ge=0.0, le=1.0)
    evidence_quality: EvidenceQuality = EvidenceQuality.MEDIUM
    peer_review_status: str = "peer-reviewed"
    info_metrics: dict[str, float] = Field(default_factory=dict)
    fired_rules: list[str] = Field(default_factory=list)


_METADATA_BY_KIND: dict[NodeKind, type[NodeMetadata]] = {
    NodeKind.HYPOTHESIS: HypothesisMetadata,
    NodeKind.EVIDENCE: EvidenceMetadata,
}


class Node(BaseModel):
    """Node in the reasoning graph."""

    id: str = Field(min_length=1)
    label: str
    kind: NodeKind
    confidence: ConfidenceVector = Field(default_factory=ConfidenceVector)
    metadata: SerializeAsAny[NodeMetadata] = Field(default_factory=NodeMetadata)

    @model_validator(mode="before")
    @classmethod
    def _coerce_metadata(cls, data: Any) -> Any:
        """Parse metadata into the variant required by the node kind."""
        if not isinstance(data, dict) or not isinstance(data.get("metadata"), dict):
            return data
        try:
            kind = NodeKind(data.get("kind"))
        except ValueError:
            return data
        meta_cls = _METADATA_BY_KIND.get(kind, NodeMetadata)
        return {**data, "metadata": meta_cls.model_validate(data["metadata"])}

    @model_validator(mode="after")
    def _check_metadata_variant(self) -> Node:
        expected = _METADATA_BY_KIND.get(self.kind)
        if expected is not None and not isinstance(self.metadata, expected):
            raise ValueError(f"{self.kind.value} nodes require {expected.__name__}")
        return self

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def impact_score(self) -> float:
        return self.metadata.impact_score

    @property
    def timestamp(self) -> datetime:
        return self.metadata.timestamp


class CausalMetadata(BaseModel):
    """Outcome of causal analysis for an edge."""

    causal_direction: str = "unknown"
    confounding_variables: list[str] = Field(default_factory=list)
    temporal_order: str | None = None
    causal_mechanism: str | None = None
    counterfactual_analysis: str | None = None
    causal_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    analysis_error: str | None = None
    fallback_classification: bool = False
    analysis_timestamp: datetime = Field(default_factory=utcnow)


class TemporalMetadata(BaseModel):
    """Outcome of timestamp comparison for an edge."""

    time_difference_ms: float = 0.0
    time_difference_hours: float = 0.0
    temporal_direction: str = "forward"
    temporal_patterns: list[str] = Field(default_factory=list)
    temporal_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    analysis_timestamp: datetime = Field(default_factory=utcnow)


class EdgeMetadata(BaseModel):
    """Provenance for an edge."""

    type: str = ""
    source_description: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    causal_metadata: CausalMetadata | None = None
    temporal_metadata: TemporalMetadata | None = None


class Edge(BaseModel):
    """Directed, typed edge between two nodes."""

    id: str = Field(min_length=1)
    source: str
    target: str
    kind: EdgeKind
    confidence: float = 0.5
    weight: float | None = None
    bidirectional: bool = False
    metadata: EdgeMetadata = Field(default_factory=EdgeMetadata)

    @field_validator("confidence", mode="after")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp(value)


class HyperEdgeMetadata(BaseModel):
    """Provenance for a hyperedge."""

    source_description: str = ""
    value: str = ""
    notes: str = ""
    disciplinary_tags: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class HyperEdge(BaseModel):
    """Relationship spanning two or more distinct nodes."""

    id: str = Field(min_length=1)
    nodes: list[str]
    kind: HyperEdgeKind
    confidence: float = 0.5
    metadata: HyperEdgeMetadata = Field(default_factory=HyperEdgeMetadata)

    @field_validator("nodes", mode="after")
    @classmethod
    def _distinct_members(cls, value: list[str]) -> list[str]:
        members = list(dict.fromkeys(value))
        if len(members) < 2:
            raise ValueError("a hyperedge needs at least 2 distinct nodes")
        return members

    @field_validator("confidence", mode="after")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp(value)


class GraphMetadata(BaseModel):
    """Snapshot bookkeeping exposed to callers after each stage."""

    version: str = "1.0.0"
    created: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)
    stage: int = Field(default=0, ge=0, le=9)
    total_nodes: int = 0
    total_edges: int = 0
    completed: bool = False
    graph_metrics: dict[str, float] = Field(default_factory=dict)


class GraphData(BaseModel):
    """Complete graph snapshot (nodes, edges, hyperedges, metadata)."""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    hyperedges: list[HyperEdge] = Field(default_factory=list)
    metadata: GraphMetadata = Field(default_factory=GraphMetadata)


class GraphStats(BaseModel):
    """Statistics about the reasoning graph."""

    total_nodes: int = 0
    total_edges: int = 0
    total_hyperedges: int = 0
    dangling_edges: int = 0
    nodes_by_kind: dict[str, int] = Field(default_factory=dict)
    edges_by_kind: dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
