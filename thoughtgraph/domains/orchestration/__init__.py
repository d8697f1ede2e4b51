"""
Orchestration Domain - The nine-stage reasoning pipeline.

This domain handles:
- Stage sequencing and validation
- Provider calls with per-stage timeouts
- Response parsing with deterministic fallbacks
- Pruning, merging and subgraph extraction
"""

from .contracts import EvidenceSearchProvider, InferenceProvider
from .engine import ReasoningEngine
from .models import (
    DIMENSION_LABELS,
    HYPOTHESES_PER_DIMENSION,
    STAGE_CONFIDENCE,
    STAGE_NAMES,
    EvidenceRecord,
    FieldAnalysis,
    InferencePriority,
    PruneReport,
    ResearchContext,
    StageExecutionContext,
    StageOutcome,
    StageStatus,
    SubgraphReport,
)
from .parsing import (
    extract_dimension_content,
    extract_falsification_criteria,
    extract_field,
    extract_hypothesis,
    extract_objectives,
    parse_field_analysis,
)
from .pruning import (
    critical_subgraph,
    merge_similar_hypotheses,
    prune_graph,
    prune_low_confidence_edges,
    remove_orphans,
    text_overlap,
)

__all__ = [
    # Contracts
    "EvidenceSearchProvider",
    "InferenceProvider",
    # Models
    "DIMENSION_LABELS",
    "HYPOTHESES_PER_DIMENSION",
    "STAGE_CONFIDENCE",
    "STAGE_NAMES",
    "EvidenceRecord",
    "FieldAnalysis",
    "InferencePriority",
    "PruneReport",
    "ResearchContext",
    "StageExecutionContext",
    "StageOutcome",
    "StageStatus",
    "SubgraphReport",
    # Parsing
    "extract_dimension_content",
    "extract_falsification_criteria",
    "extract_field",
    "extract_hypothesis",
    "extract_objectives",
    "parse_field_analysis",
    # Pruning
    "critical_subgraph",
    "merge_similar_hypotheses",
    "prune_graph",
    "prune_low_confidence_edges",
    "remove_orphans",
    "text_overlap",
    # Implementations
    "ReasoningEngine",
]
