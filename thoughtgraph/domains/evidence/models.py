"""
Evidence Models - Data types for evidence scoring and relationship analysis.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from thoughtgraph.domains.knowledge.models import (
    CausalMetadata,
    ConfidenceVector,
    EdgeKind,
    EvidenceQuality,
    TemporalMetadata,
)


class InformationMetrics(BaseModel):
    """Information-theoretic summary of a piece of evidence."""

    entropy: float = 0.0
    information_gain: float = 0.0
    complexity: float = 1.0


class EvidenceScore(BaseModel):
    """Result of scoring free-text evidence analysis."""

    confidence: ConfidenceVector
    statistical_power: float = Field(ge=0.0, le=1.0)
    quality: EvidenceQuality
    info_metrics: InformationMetrics = Field(default_factory=InformationMetrics)
    fired_rules: list[str] = Field(default_factory=list)
    ruleset_version: str = ""


class CausalAnalysis(BaseModel):
    """Causal classification of a hypothesis-evidence relationship."""

    kind: EdgeKind = EdgeKind.SUPPORTIVE
    metadata: CausalMetadata = Field(default_factory=CausalMetadata)


class TemporalAnalysis(BaseModel):
    """Temporal classification from node timestamps."""

    kind: EdgeKind
    metadata: TemporalMetadata


class RelationshipAnalysis(BaseModel):
    """Final edge kind with both analyses attached."""

    kind: EdgeKind
    causal: CausalAnalysis
    temporal: TemporalAnalysis
