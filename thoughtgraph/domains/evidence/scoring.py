"""
Evidence Scoring - Keyword heuristics mapping analysis text to confidence.

The rule table is ordered data. Rules sharing a ``group`` are mutually
exclusive: the first matching rule of the group wins. Ungrouped rules fire
independently and their deltas add up. A dimension with at least one fired
rule scores ``BASELINE + sum(deltas)``; a dimension with no fired rule keeps
its default. Every output is clamped into ``[0, 1]``.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from thoughtgraph.domains.knowledge.confidence import DIMENSIONS, clamp
from thoughtgraph.domains.knowledge.models import ConfidenceVector, EvidenceQuality

from .models import EvidenceScore, InformationMetrics

logger = logging.getLogger(__name__)

__all__ = [
    "BASELINE",
    "DEFAULT_SCORES",
    "DEFAULT_STATISTICAL_POWER",
    "RULESET_VERSION",
    "SCORING_RULES",
    "EvidenceScorer",
    "ScoringRule",
    "assess_quality",
    "estimate_statistical_power",
    "information_metrics",
]

RULESET_VERSION = "1.0"

BASELINE = 0.5

DEFAULT_SCORES: dict[str, float] = {
    "empirical_support": 0.8,
    "theoretical_basis": 0.7,
    "methodological_rigor": 0.9,
    "consensus_alignment": 0.6,
}

DEFAULT_STATISTICAL_POWER = 0.85


@dataclass(frozen=True)
class ScoringRule:
    """Substring patterns that move one confidence dimension."""

    name: str
    dimension: str
    patterns: tuple[str, ...]
    delta: float
    group: str | None = None

    def matches(self, lowered: str) -> bool:
        return any(p in lowered for p in self.patterns)


SCORING_RULES: tuple[ScoringRule, ...] = (
    # Empirical support: study design
    ScoringRule("meta_analysis", "empirical_support", ("meta-analysis",), 0.3, "design"),
    ScoringRule(
        "randomized_trial",
        "empirical_support",
        ("randomized controlled trial", "rct"),
        0.25,
        "design",
    ),
    ScoringRule("cohort_study", "empirical_support", ("cohort study",), 0.2, "design"),
    ScoringRule("case_study", "empirical_support", ("case study",), -0.2, "design"),
    # Empirical support: sample size
    ScoringRule("large_sample", "empirical_support", ("large sample", "n > 1000"), 0.15, "sample"),
    ScoringRule("small_sample", "empirical_support", ("small sample", "n < 30"), -0.15, "sample"),
    # Empirical support: significance
    ScoringRule("p_001", "empirical_support", ("p < 0.001",), 0.15, "significance"),
    ScoringRule("p_01", "empirical_support", ("p < 0.01",), 0.1, "significance"),
    ScoringRule("p_05", "empirical_support", ("p < 0.05",), 0.05, "significance"),
    ScoringRule("not_significant", "empirical_support", ("not significant",), -0.2, "significance"),
    # Theoretical basis
    ScoringRule(
        "established_theory",
        "theoretical_basis",
        ("well-established theory", "theoretical framework"),
        0.2,
    ),
    ScoringRule("novel_approach", "theoretical_basis", ("novel approach", "innovative"), 0.15),
    ScoringRule("established_principles", "theoretical_basis", ("established principles",), 0.1),
    ScoringRule("theoretical_gap", "theoretical_basis", ("theoretical gap", "lacks theory"), -0.2),
    ScoringRule(
        "widely_cited",
        "theoretical_basis",
        ("extensively cited", "foundational work"),
        0.15,
    ),
    ScoringRule("few_citations", "theoretical_basis", ("limited citations", "few references"), -0.1),
    # Methodological rigor
    ScoringRule(
        "rigorous_method",
        "methodological_rigor",
        ("rigorous methodology", "well-designed"),
        0.2,
    ),
    ScoringRule(
        "confounders_controlled",
        "methodological_rigor",
        ("controlled for confounders", "adjusted for"),
        0.15,
    ),
    ScoringRule("blinded", "methodological_rigor", ("blinded", "double-blind"), 0.15),
    ScoringRule("validated_measures", "methodological_rigor", ("validated measures", "standardized"), 0.1),
    ScoringRule(
        "method_limitations",
        "methodological_rigor",
        ("methodological limitations", "potential bias"),
        -0.15,
    ),
    ScoringRule("selection_bias", "methodological_rigor", ("selection bias", "confounding"), -0.1),
    ScoringRule("poor_method", "methodological_rigor", ("poor methodology", "flawed design"), -0.25),
    # Consensus alignment
    ScoringRule(
        "scientific_consensus",
        "consensus_alignment",
        ("scientific consensus", "widely accepted"),
        0.25,
    ),
    ScoringRule(
        "expert_agreement",
        "consensus_alignment",
        ("expert agreement", "professional consensus"),
        0.2,
    ),
    ScoringRule(
        "replicated",
        "consensus_alignment",
        ("replicated findings", "consistent results"),
        0.15,
    ),
    ScoringRule("multiple_confirm", "consensus_alignment", ("multiple studies confirm",), 0.1),
    ScoringRule("controversial", "consensus_alignment", ("controversial", "disputed"), -0.2),
    ScoringRule(
        "conflicting",
        "consensus_alignment",
        ("conflicting evidence", "mixed results"),
        -0.15,
    ),
    ScoringRule(
        "preliminary",
        "consensus_alignment",
        ("preliminary findings", "needs replication"),
        -0.1,
    ),
)

_EXPLICIT_POWER = re.compile(r"statistical power[^:]*:\s*([0-9.]+)", re.IGNORECASE)
_SAMPLE_SIZE = re.compile(r"sample size[^:]*:\s*([0-9,]+)", re.IGNORECASE)
_EFFECT_SIZE = re.compile(r"effect size[^:]*:\s*([0-9.]+)", re.IGNORECASE)
_P_VALUE = re.compile(r"p[- ]value[^:]*:\s*([0-9.]+)|p\s*[<>]\s*([0-9.]+)", re.IGNORECASE)

_QUALITY_PROBABILITIES: dict[EvidenceQuality, tuple[float, ...]] = {
    EvidenceQuality.HIGH: (0.8, 0.15, 0.05),
    EvidenceQuality.MEDIUM: (0.3, 0.6, 0.1),
    EvidenceQuality.LOW: (0.1, 0.3, 0.6),
}

_REVIEW_COMPLEXITY = {"peer-reviewed": 0.5, "preprint": 0.7}


def _to_float(raw: str) -> float | None:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def estimate_statistical_power(text: str | None) -> float:
    """
    Estimate statistical power from analysis text.

    An explicit ``statistical power: x`` wins. Otherwise the estimate starts
    at 0.5 and is adjusted by sample size, effect size, p-value, study design
    and peer review mentions.

    Args:
        text: Free-text analysis, may be empty

    Returns:
        Power in ``[0, 1]``
    """
    if not text or not text.strip():
        return DEFAULT_STATISTICAL_POWER

    explicit = _EXPLICIT_POWER.search(text)
    if explicit:
        value = _to_float(explicit.group(1))
        if value is not None:
            return clamp(value)

    lowered = text.lower()
    power = 0.5

    sample = _SAMPLE_SIZE.search(text)
    if sample:
        size = _to_float(sample.group(1))
        if size is not None:
            if size > 1000:
                power += 0.2
            elif size > 300:
                power += 0.15
            elif size > 100:
                power += 0.1
            elif size < 30:
                power -= 0.2

    effect = _EFFECT_SIZE.search(text)
    if effect:
        size = _to_float(effect.group(1))
        if size is not None:
            if size > 0.8:
                power += 0.15
            elif size > 0.5:
                power += 0.1
            elif size > 0.2:
                power += 0.05
            else:
                power -= 0.1

    p_match = _P_VALUE.search(text)
    if p_match:
        p_value = _to_float(p_match.group(1) or p_match.group(2))
        if p_value is not None:
            if p_value < 0.01:
                power += 0.15
            elif p_value < 0.05:
                power += 0.1
            elif p_value < 0.1:
                power += 0.05
            else:
                power -= 0.1

    if "rct" in lowered or "randomized controlled" in lowered:
        power += 0.15
    elif "meta-analysis" in lowered:
        power += 0.2
    elif "case study" in lowered or "anecdotal" in lowered:
        power -= 0.2

    if "peer-reviewed" in lowered or "published" in lowered:
        power += 0.1

    return clamp(power)


def assess_quality(confidence: ConfidenceVector) -> EvidenceQuality:
    """Map a confidence vector to a quality category by its mean."""
    score = confidence.mean()
    if score >= 0.7:
        return EvidenceQuality.HIGH
    if score >= 0.5:
        return EvidenceQuality.MEDIUM
    return EvidenceQuality.LOW


def information_metrics(
    quality: EvidenceQuality,
    statistical_power: float,
    peer_review_status: str = "peer-reviewed",
) -> InformationMetrics:
    """Entropy of the quality distribution, power-based gain, review complexity."""
    probabilities = _QUALITY_PROBABILITIES[quality]
    entropy = -sum(p * math.log2(p) for p in probabilities if p > 0)
    gain = -math.log2(1 - clamp(statistical_power) + 0.01)
    return InformationMetrics(
        entropy=entropy,
        information_gain=gain,
        complexity=_REVIEW_COMPLEXITY.get(peer_review_status, 1.0),
    )


class EvidenceScorer:
    """
    Scores free-text evidence analysis with a versioned rule table.

    Example:
        >>> scorer = EvidenceScorer()
        >>> scorer.score("A meta-analysis of 40 trials").confidence.empirical_support
        0.8
    """

    def __init__(
        self,
        rules: tuple[ScoringRule, ...] = SCORING_RULES,
        version: str = RULESET_VERSION,
    ) -> None:
        self.rules = rules
        self.version = version

    def score_vector(self, text: str | None) -> tuple[ConfidenceVector, list[str]]:
        """Confidence vector and the names of the rules that fired."""
        if not text or not text.strip():
            return ConfidenceVector(**DEFAULT_SCORES), []

        lowered = text.lower()
        deltas: dict[str, float] = {}
        fired: list[str] = []
        closed_groups: set[str] = set()

        for rule in self.rules:
            if rule.group is not None and rule.group in closed_groups:
                continue
            if not rule.matches(lowered):
                continue
            fired.append(rule.name)
            deltas[rule.dimension] = deltas.get(rule.dimension, 0.0) + rule.delta
            if rule.group is not None:
                closed_groups.add(rule.group)

        values = {dim: clamp(BASELINE + deltas.get(dim, 0.0)) for dim in DIMENSIONS}
        return ConfidenceVector(**values), fired

    def score(self, text: str | None, peer_review_status: str = "peer-reviewed") -> EvidenceScore:
        """
        Full scoring breakdown for analysis text.

        Args:
            text: Free-text analysis returned by the inference provider
            peer_review_status: Review status recorded on the evidence

        Returns:
            Confidence vector, statistical power, quality and information metrics
        """
        confidence, fired = self.score_vector(text)
        power = estimate_statistical_power(text)
        quality = assess_quality(confidence)

        logger.debug(
            "Scored evidence: %s power=%.2f quality=%s rules=%s",
            confidence.as_list(),
            power,
            quality.value,
            fired,
        )

        return EvidenceScore(
            confidence=confidence,
            statistical_power=power,
            quality=quality,
            info_metrics=information_metrics(quality, power, peer_review_status),
            fired_rules=fired,
            ruleset_version=self.version,
        )
