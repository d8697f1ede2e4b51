"""
Evidence Domain - Heuristic scoring and relationship analysis.

This domain handles:
- Keyword rule table for confidence vectors
- Statistical power and information metrics
- Causal and temporal edge classification
- Hyperedge synthesis
"""

from .classifier import (
    analyze_causal,
    analyze_relationship,
    analyze_temporal,
    causal_failure,
    classify_causal_text,
    extract_causal_metadata,
    resolve_edge_kind,
    temporal_confidence,
)
from .hyperedges import HyperedgeSynthesizer
from .models import (
    CausalAnalysis,
    EvidenceScore,
    InformationMetrics,
    RelationshipAnalysis,
    TemporalAnalysis,
)
from .scoring import (
    DEFAULT_SCORES,
    DEFAULT_STATISTICAL_POWER,
    RULESET_VERSION,
    SCORING_RULES,
    EvidenceScorer,
    ScoringRule,
    assess_quality,
    estimate_statistical_power,
    information_metrics,
)

__all__ = [
    # Models
    "CausalAnalysis",
    "EvidenceScore",
    "InformationMetrics",
    "RelationshipAnalysis",
    "TemporalAnalysis",
    # Scoring
    "DEFAULT_SCORES",
    "DEFAULT_STATISTICAL_POWER",
    "RULESET_VERSION",
    "SCORING_RULES",
    "EvidenceScorer",
    "ScoringRule",
    "assess_quality",
    "estimate_statistical_power",
    "information_metrics",
    # Classification
    "analyze_causal",
    "analyze_relationship",
    "analyze_temporal",
    "causal_failure",
    "classify_causal_text",
    "extract_causal_metadata",
    "resolve_edge_kind",
    "temporal_confidence",
    # Implementations
    "HyperedgeSynthesizer",
]
