"""
Relationship Classifier - Causal and temporal typing of hypothesis-evidence edges.

Causal typing reads the inference provider's free-text analysis; temporal
typing compares node timestamps. The final edge kind is the causal kind
unless that is ``supportive``, in which case the temporal kind is used.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from thoughtgraph.domains.knowledge.confidence import clamp
from thoughtgraph.domains.knowledge.models import (
    CausalMetadata,
    EdgeKind,
    Node,
    NodeKind,
    TemporalMetadata,
)

from .models import CausalAnalysis, RelationshipAnalysis, TemporalAnalysis

logger = logging.getLogger(__name__)

__all__ = [
    "analyze_causal",
    "analyze_relationship",
    "analyze_temporal",
    "causal_failure",
    "classify_causal_text",
    "extract_causal_metadata",
    "resolve_edge_kind",
    "temporal_confidence",
]

# First match wins.
_CAUSAL_KEYWORDS: tuple[tuple[tuple[str, ...], EdgeKind], ...] = (
    (("causal_direct", "direct causal"), EdgeKind.CAUSAL_DIRECT),
    (("causal_counterfactual", "counterfactual"), EdgeKind.CAUSAL_COUNTERFACTUAL),
    (("causal_confounded", "confounded"), EdgeKind.CAUSAL_CONFOUNDED),
    (("contradict",), EdgeKind.CONTRADICTORY),
    (("correlat",), EdgeKind.CORRELATIVE),
)

_SECTION_END = r"(?=\n\d|\n[A-Z]|\n\s*\n|\Z)"


def _section(header: str) -> re.Pattern[str]:
    return re.compile(rf"(?i:{header})[^:\n]*:(.*?){_SECTION_END}", re.DOTALL)


_DIRECTION = _section("causal direction")
_MECHANISM = _section("mechanism")
_TEMPORAL = _section("temporal")
_COUNTERFACTUAL = _section("counterfactual")
_CONFOUNDING = re.compile(r"confounding[^:]*:(.*)", re.IGNORECASE | re.DOTALL)
_BULLET = re.compile(r"[-•*]\s*([^;\n]+)")
_CONFIDENCE = re.compile(r"confidence[^:]*:\s*([0-9.]+)", re.IGNORECASE)

SEQUENTIAL_WINDOW = timedelta(minutes=5)
DELAYED_AFTER = timedelta(weeks=1)


def classify_causal_text(text: str) -> EdgeKind:
    """Map analysis text to an edge kind by keyword, ``supportive`` otherwise."""
    lowered = text.lower()
    for keywords, kind in _CAUSAL_KEYWORDS:
        if any(k in lowered for k in keywords):
            return kind
    return EdgeKind.SUPPORTIVE


def _section_text(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def _confounders(text: str) -> list[str]:
    section = _CONFOUNDING.search(text)
    if not section:
        return []
    return [m.strip() for m in _BULLET.findall(section.group(1)) if m.strip()]


def _causal_confidence(text: str) -> float:
    match = _CONFIDENCE.search(text)
    if not match:
        return 0.7
    try:
        return clamp(float(match.group(1)))
    except ValueError:
        return 0.7


def extract_causal_metadata(text: str) -> CausalMetadata:
    """Pull structured causal details out of free text."""
    return CausalMetadata(
        causal_direction=_section_text(_DIRECTION, text) or "unknown",
        confounding_variables=_confounders(text),
        temporal_order=_section_text(_TEMPORAL, text),
        causal_mechanism=_section_text(_MECHANISM, text),
        counterfactual_analysis=_section_text(_COUNTERFACTUAL, text),
        causal_confidence=_causal_confidence(text),
    )


def analyze_causal(text: str) -> CausalAnalysis:
    """Classify a causal analysis response."""
    return CausalAnalysis(kind=classify_causal_text(text), metadata=extract_causal_metadata(text))


def causal_failure(error: BaseException | str) -> CausalAnalysis:
    """Supportive fallback used when the causal analysis call fails."""
    message = str(error) or type(error).__name__
    logger.warning("Causal analysis failed, falling back to supportive: %s", message)
    return CausalAnalysis(
        kind=EdgeKind.SUPPORTIVE,
        metadata=CausalMetadata(analysis_error=message, fallback_classification=True),
    )


def temporal_confidence(difference: timedelta) -> float:
    """Confidence decays as the gap between timestamps grows."""
    hours = abs(difference.total_seconds()) / 3600
    if hours < 1:
        return 0.9
    if hours < 24:
        return 0.8
    if hours < 24 * 7:
        return 0.7
    if hours < 24 * 30:
        return 0.6
    return 0.5


def _temporal_patterns(source: Node, target: Node) -> list[str]:
    patterns = []
    if source.kind == target.kind:
        patterns.append("same_type_connection")
    if source.kind == NodeKind.DIMENSION and target.kind == NodeKind.HYPOTHESIS:
        patterns.append("hierarchical_flow")
    if source.kind == NodeKind.HYPOTHESIS and target.kind == NodeKind.EVIDENCE:
        patterns.append("evidence_support_flow")
    return patterns


def analyze_temporal(source: Node, target: Node) -> TemporalAnalysis:
    """
    Classify the relationship by the gap between node timestamps.

    Args:
        source: Edge source (usually the hypothesis)
        target: Edge target (usually the evidence)

    Returns:
        Temporal kind with timing metadata
    """
    difference = target.timestamp - source.timestamp

    if abs(difference) < SEQUENTIAL_WINDOW:
        kind = EdgeKind.TEMPORAL_SEQUENTIAL
    elif difference > DELAYED_AFTER:
        kind = EdgeKind.TEMPORAL_DELAYED
    elif difference > timedelta(0):
        kind = EdgeKind.TEMPORAL_PRECEDENCE
    else:
        kind = EdgeKind.TEMPORAL_CYCLIC

    seconds = difference.total_seconds()
    return TemporalAnalysis(
        kind=kind,
        metadata=TemporalMetadata(
            time_difference_ms=seconds * 1000,
            time_difference_hours=seconds / 3600,
            temporal_direction="forward" if seconds > 0 else "backward",
            temporal_patterns=_temporal_patterns(source, target),
            temporal_confidence=temporal_confidence(difference),
        ),
    )


def resolve_edge_kind(causal: CausalAnalysis, temporal: TemporalAnalysis) -> EdgeKind:
    """Causal kind unless supportive, otherwise the temporal kind."""
    if causal.kind != EdgeKind.SUPPORTIVE:
        return causal.kind
    return temporal.kind


def analyze_relationship(
    source: Node,
    target: Node,
    causal_text: str | None = None,
    error: BaseException | None = None,
) -> RelationshipAnalysis:
    """
    Combine causal and temporal analysis into a final edge kind.

    Args:
        source: Hypothesis node
        target: Evidence node
        causal_text: Causal analysis response, if the call succeeded
        error: Failure raised by the causal analysis call, if any

    Returns:
        Final kind with both analyses
    """
    if error is not None or causal_text is None:
        causal = causal_failure(error if error is not None else "no causal analysis")
    else:
        causal = analyze_causal(causal_text)
    temporal = analyze_temporal(source, target)
    return RelationshipAnalysis(
        kind=resolve_edge_kind(causal, temporal),
        causal=causal,
        temporal=temporal,
    )
