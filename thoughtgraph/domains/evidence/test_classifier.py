"""
Tests for causal and temporal relationship classification.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from thoughtgraph.domains.knowledge.models import (
    EdgeKind,
    EvidenceMetadata,
    HypothesisMetadata,
    Node,
    NodeKind,
)

from .classifier import (
    analyze_relationship,
    analyze_temporal,
    causal_failure,
    classify_causal_text,
    extract_causal_metadata,
    temporal_confidence,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _hypothesis(at: datetime = T0) -> Node:
    return Node(
        id="hn1_scope_1",
        label="Hypothesis 1: Scope",
        kind=NodeKind.HYPOTHESIS,
        metadata=HypothesisMetadata(falsification_criteria="No effect observed", timestamp=at),
    )


def _evidence(offset: timedelta) -> Node:
    return Node(
        id="e_hn1_scope_1",
        label="Evidence: Hypothesis 1",
        kind=NodeKind.EVIDENCE,
        metadata=EvidenceMetadata(timestamp=T0 + offset),
    )


# --- Causal ---


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Relationship type: causal_direct", EdgeKind.CAUSAL_DIRECT),
        ("This is a counterfactual relationship", EdgeKind.CAUSAL_COUNTERFACTUAL),
        ("The association is confounded by age", EdgeKind.CAUSAL_CONFOUNDED),
        ("The evidence contradicts the hypothesis", EdgeKind.CONTRADICTORY),
        ("A strong correlation was observed", EdgeKind.CORRELATIVE),
        ("The evidence is consistent with the hypothesis", EdgeKind.SUPPORTIVE),
    ],
)
def test_classify_causal_text(text: str, expected: EdgeKind) -> None:
    assert classify_causal_text(text) == expected


def test_causal_keywords_first_match_wins() -> None:
    assert classify_causal_text("direct causal link; counterfactual also holds") == EdgeKind.CAUSAL_DIRECT


def test_extract_causal_metadata() -> None:
    text = (
        "Causal Direction: evidence supports hypothesis\n"
        "Confounding variables:\n"
        "- age\n"
        "- smoking status\n"
        "Mechanism: chromosomal instability drives clonal expansion\n"
        "Confidence: 0.82"
    )
    metadata = extract_causal_metadata(text)
    assert metadata.causal_direction == "evidence supports hypothesis"
    assert metadata.confounding_variables == ["age", "smoking status"]
    assert metadata.causal_mechanism == "chromosomal instability drives clonal expansion"
    assert metadata.causal_confidence == pytest.approx(0.82)
    assert metadata.counterfactual_analysis is None


def test_causal_confidence_default_and_clamp() -> None:
    assert extract_causal_metadata("no numbers here").causal_confidence == 0.7
    assert extract_causal_metadata("confidence: 3.5").causal_confidence == 1.0


def test_causal_failure_falls_back_to_supportive() -> None:
    analysis = causal_failure(TimeoutError("provider timed out"))
    assert analysis.kind == EdgeKind.SUPPORTIVE
    assert analysis.metadata.analysis_error == "provider timed out"
    assert analysis.metadata.fallback_classification is True


# --- Temporal ---


@pytest.mark.parametrize(
    ("offset", "expected"),
    [
        (timedelta(minutes=2), EdgeKind.TEMPORAL_SEQUENTIAL),
        (timedelta(minutes=10), EdgeKind.TEMPORAL_PRECEDENCE),
        (timedelta(days=6), EdgeKind.TEMPORAL_PRECEDENCE),
        (timedelta(days=8), EdgeKind.TEMPORAL_DELAYED),
        (timedelta(hours=-1), EdgeKind.TEMPORAL_CYCLIC),
    ],
)
def test_temporal_kind(offset: timedelta, expected: EdgeKind) -> None:
    assert analyze_temporal(_hypothesis(), _evidence(offset)).kind == expected


def test_temporal_metadata() -> None:
    analysis = analyze_temporal(_hypothesis(), _evidence(timedelta(hours=-1)))
    assert analysis.metadata.temporal_direction == "backward"
    assert analysis.metadata.time_difference_hours == pytest.approx(-1.0)
    assert analysis.metadata.temporal_patterns == ["evidence_support_flow"]


def test_temporal_confidence_decay() -> None:
    assert temporal_confidence(timedelta(minutes=10)) == 0.9
    assert temporal_confidence(timedelta(hours=5)) == 0.8
    assert temporal_confidence(timedelta(days=3)) == 0.7
    assert temporal_confidence(timedelta(days=10)) == 0.6
    assert temporal_confidence(timedelta(days=90)) == 0.5


# --- Combined ---


def test_supportive_causal_yields_temporal_kind() -> None:
    """No causal keyword and a ten-minute gap gives temporal precedence."""
    analysis = analyze_relationship(
        _hypothesis(),
        _evidence(timedelta(minutes=10)),
        causal_text="The evidence is consistent with the hypothesis",
    )
    assert analysis.kind == EdgeKind.TEMPORAL_PRECEDENCE


def test_causal_kind_takes_precedence() -> None:
    analysis = analyze_relationship(
        _hypothesis(),
        _evidence(timedelta(minutes=10)),
        causal_text="counterfactual dependence established",
    )
    assert analysis.kind == EdgeKind.CAUSAL_COUNTERFACTUAL


def test_failed_causal_analysis_keeps_error() -> None:
    analysis = analyze_relationship(
        _hypothesis(),
        _evidence(timedelta(minutes=1)),
        error=RuntimeError("rate limited"),
    )
    assert analysis.kind == EdgeKind.TEMPORAL_SEQUENTIAL
    assert analysis.causal.metadata.analysis_error == "rate limited"
