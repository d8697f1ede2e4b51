"""
Orchestration Models - Data types for the stage pipeline.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from thoughtgraph.domains.knowledge.models import GraphData, utcnow


class StageStatus(str, Enum):
    """Lifecycle of a single stage invocation."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class InferencePriority(str, Enum):
    """Scheduling priority for inference calls."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


STAGE_NAMES: dict[int, str] = {
    1: "Initialization",
    2: "Decomposition",
    3: "Hypothesis/Planning",
    4: "Evidence Integration",
    5: "Pruning/Merging",
    6: "Subgraph Extraction",
    7: "Composition",
    8: "Reflection",
    9: "Final Analysis",
}

STAGE_CONFIDENCE: dict[int, float] = {
    1: 0.8,
    2: 0.75,
    3: 0.65,
    4: 0.8,
    5: 0.85,
    6: 0.9,
    7: 0.95,
    8: 1.0,
    9: 1.0,
}

DIMENSION_LABELS: tuple[str, ...] = (
    "Scope",
    "Objectives",
    "Constraints",
    "Data Needs",
    "Use Cases",
    "Potential Biases",
    "Knowledge Gaps",
)

HYPOTHESES_PER_DIMENSION = 4


class ResearchContext(BaseModel):
    """Session state shared by all stages."""

    field: str = ""
    topic: str = ""
    objectives: list[str] = Field(default_factory=list)
    hypotheses: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    biases_detected: list[str] = Field(default_factory=list)
    knowledge_gaps: list[str] = Field(default_factory=list)
    auto_generated: bool = True


class FieldAnalysis(BaseModel):
    """Field classification of the research question."""

    primary_field: str = "General Science"
    secondary_fields: list[str] = Field(default_factory=list)
    objectives: list[str] = Field(default_factory=lambda: ["Comprehensive analysis"])
    interdisciplinary_connections: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(
        default_factory=lambda: ["Limited computational resources", "Time constraints"]
    )
    initial_scope: str = "Comprehensive analysis required"


class StageExecutionContext(BaseModel):
    """Record of one stage invocation."""

    stage_id: int
    stage_name: str
    status: StageStatus = StageStatus.IN_PROGRESS
    api_calls_made: int = 0
    confidence_achieved: float = 0.0
    error_message: str | None = None
    started_at: datetime = Field(default_factory=utcnow)
    duration_ms: float = 0.0
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: dict[str, Any] = Field(default_factory=dict)


class EvidenceRecord(BaseModel):
    """Raw provider output gathered for one hypothesis."""

    hypothesis_id: str
    evidence_text: str
    analysis_text: str
    source: str = "search"
    causal_text: str | None = None
    causal_error: str | None = None


class PruneReport(BaseModel):
    """Changes made by the pruning stage."""

    pruned_edges: list[str] = Field(default_factory=list)
    merged: dict[str, list[str]] = Field(default_factory=dict)
    removed_nodes: list[str] = Field(default_factory=list)


class SubgraphReport(BaseModel):
    """High-impact subgraph statistics."""

    node_ids: list[str] = Field(default_factory=list)
    components: int = 0
    paths: int = 0
    complexity_score: float = 0.0


class StageOutcome(BaseModel):
    """What a caller receives after a stage completes."""

    stage_id: int
    result: str
    graph: GraphData
    context: StageExecutionContext
