"""
Tests for the evidence scoring heuristic.
"""

from __future__ import annotations

import pytest

from thoughtgraph.domains.knowledge.models import ConfidenceVector, EvidenceQuality

from .scoring import (
    BASELINE,
    EvidenceScorer,
    assess_quality,
    estimate_statistical_power,
    information_metrics,
)


@pytest.fixture
def scorer() -> EvidenceScorer:
    return EvidenceScorer()


# --- Confidence vector ---


def test_empty_text_uses_defaults(scorer: EvidenceScorer) -> None:
    """Absent text yields the documented defaults."""
    for text in (None, "", "   "):
        result = scorer.score(text)
        assert result.confidence.as_list() == [0.8, 0.7, 0.9, 0.6]
        assert result.statistical_power == 0.85
        assert result.fired_rules == []


def test_meta_analysis_sets_empirical_support(scorer: EvidenceScorer) -> None:
    """A meta-analysis lifts empirical support to 0.8, other dimensions stay at the baseline."""
    result = scorer.score("A meta-analysis of 40 trials")
    assert result.confidence.as_list() == pytest.approx([0.8, BASELINE, BASELINE, BASELINE])
    assert result.fired_rules == ["meta_analysis"]


def test_text_without_signal_starts_at_baseline(scorer: EvidenceScorer) -> None:
    result = scorer.score("The study examined skin lesions")
    assert result.confidence.as_list() == [0.5, 0.5, 0.5, 0.5]
    assert result.fired_rules == []


def test_named_design_scores_above_text_without_signal(scorer: EvidenceScorer) -> None:
    plain = scorer.score("The study examined skin lesions").confidence
    trial = scorer.score("A randomized controlled trial").confidence
    assert trial.empirical_support == pytest.approx(0.75)
    assert trial.empirical_support > plain.empirical_support
    assert trial.as_list()[1:] == [0.5, 0.5, 0.5]


def test_study_design_rules_are_exclusive(scorer: EvidenceScorer) -> None:
    """Only the first matching design rule applies."""
    result = scorer.score("A meta-analysis that pooled one randomized controlled trial")
    assert result.confidence.empirical_support == pytest.approx(0.8)
    assert "meta_analysis" in result.fired_rules
    assert "randomized_trial" not in result.fired_rules


def test_independent_rules_accumulate(scorer: EvidenceScorer) -> None:
    result = scorer.score("A double-blind, well-designed study")
    assert result.confidence.methodological_rigor == pytest.approx(0.85)


def test_scores_are_clamped(scorer: EvidenceScorer) -> None:
    high = scorer.score(
        "rigorous methodology, controlled for confounders, double-blind, validated measures"
    )
    assert high.confidence.methodological_rigor == 1.0

    low = scorer.score("case study with small sample, not significant")
    assert low.confidence.empirical_support == 0.0


def test_all_components_within_unit_interval(scorer: EvidenceScorer) -> None:
    texts = [
        "meta-analysis, large sample, p < 0.001, scientific consensus, widely accepted",
        "controversial, disputed, conflicting evidence, preliminary findings",
        "poor methodology, flawed design, selection bias, potential bias",
        "theoretical gap, lacks theory, limited citations",
        "random words with no signal",
    ]
    for text in texts:
        values = scorer.score(text).confidence.as_list()
        assert all(0.0 <= v <= 1.0 for v in values)


def test_ruleset_version_recorded(scorer: EvidenceScorer) -> None:
    assert scorer.score("anything").ruleset_version == scorer.version


# --- Statistical power ---


def test_explicit_statistical_power_wins() -> None:
    assert estimate_statistical_power("Statistical power: 0.92") == pytest.approx(0.92)
    assert estimate_statistical_power("statistical power: 1.7") == 1.0


def test_statistical_power_estimated_from_design() -> None:
    assert estimate_statistical_power("case study with small sample") == pytest.approx(0.3)
    assert estimate_statistical_power("sample size: 50; effect size: 0.1") == pytest.approx(0.4)
    assert estimate_statistical_power("sample size: 400, p < 0.03") == pytest.approx(0.75)


def test_statistical_power_default() -> None:
    assert estimate_statistical_power(None) == 0.85


# --- Quality and information metrics ---


def test_assess_quality() -> None:
    assert assess_quality(ConfidenceVector.of(0.8, 0.7, 0.9, 0.6)) == EvidenceQuality.HIGH
    assert assess_quality(ConfidenceVector.of(0.0, 0.7, 0.9, 0.6)) == EvidenceQuality.MEDIUM
    assert assess_quality(ConfidenceVector.of(0.2, 0.2, 0.2, 0.2)) == EvidenceQuality.LOW


def test_information_metrics() -> None:
    metrics = information_metrics(EvidenceQuality.HIGH, 0.85)
    assert metrics.entropy == pytest.approx(0.884, abs=1e-3)
    assert metrics.information_gain == pytest.approx(2.644, abs=1e-3)
    assert metrics.complexity == 0.5

    assert information_metrics(EvidenceQuality.LOW, 0.5, "preprint").complexity == 0.7
    assert information_metrics(EvidenceQuality.LOW, 0.5, "unreviewed").complexity == 1.0
