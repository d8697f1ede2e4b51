"""
Tests for hyperedge synthesis.
"""

from __future__ import annotations

import pytest

from thoughtgraph.domains.knowledge.models import (
    ConfidenceVector,
    Edge,
    EdgeKind,
    EvidenceMetadata,
    HyperEdgeKind,
    HypothesisMetadata,
    Node,
    NodeKind,
)

from .hyperedges import HyperedgeSynthesizer


@pytest.fixture
def synthesizer() -> HyperedgeSynthesizer:
    return HyperedgeSynthesizer()


def _evidence(node_id: str, tags: list[str], confidence: float = 0.6) -> Node:
    return Node(
        id=node_id,
        label=node_id,
        kind=NodeKind.EVIDENCE,
        confidence=ConfidenceVector.of(confidence, confidence, confidence, confidence),
        metadata=EvidenceMetadata(disciplinary_tags=tags),
    )


def _hypothesis(node_id: str) -> Node:
    return Node(
        id=node_id,
        label=node_id,
        kind=NodeKind.HYPOTHESIS,
        metadata=HypothesisMetadata(falsification_criteria="Refuted by null result"),
    )


def _edge(source: str, target: str, kind: EdgeKind = EdgeKind.SUPPORTIVE) -> Edge:
    return Edge(id=f"edge_{source}_{target}", source=source, target=target, kind=kind, confidence=0.7)


def test_shared_tag_yields_one_interdisciplinary_hyperedge(synthesizer: HyperedgeSynthesizer) -> None:
    evidence = [_evidence(f"e{i}", ["immunology"]) for i in range(4)]

    hyperedges = synthesizer.synthesize(evidence, [])

    inter = [h for h in hyperedges if h.kind == HyperEdgeKind.INTERDISCIPLINARY]
    assert len(inter) == 1
    assert inter[0].nodes == ["e0", "e1", "e2", "e3"]
    assert inter[0].confidence == 0.7


def test_single_node_tags_are_ignored(synthesizer: HyperedgeSynthesizer) -> None:
    evidence = [_evidence("e0", ["oncology"]), _evidence("e1", ["dermatology"])]
    assert synthesizer.interdisciplinary(evidence) == []


def test_multi_causal_requires_two_supporting_edges(synthesizer: HyperedgeSynthesizer) -> None:
    nodes = [_hypothesis("h1"), _evidence("e1", []), _evidence("e2", []), _evidence("e3", [])]
    edges = [
        _edge("h1", "e1"),
        _edge("h1", "e2", EdgeKind.CAUSAL_DIRECT),
        _edge("h1", "e3", EdgeKind.CONTRADICTORY),
    ]

    hyperedges = synthesizer.synthesize(nodes, edges)

    multi = [h for h in hyperedges if h.kind == HyperEdgeKind.MULTI_CAUSAL]
    assert len(multi) == 1
    assert multi[0].id == "hyper_causal_h1"
    assert multi[0].nodes == ["h1", "e1", "e2"]
    assert multi[0].confidence == 0.8


def test_multi_causal_not_emitted_for_single_edge(synthesizer: HyperedgeSynthesizer) -> None:
    nodes = [_hypothesis("h1"), _evidence("e1", [])]
    assert synthesizer.multi_causal([nodes[0]], [nodes[1]], [_edge("h1", "e1")]) == []


def test_complex_relationship_needs_three_strong_nodes(synthesizer: HyperedgeSynthesizer) -> None:
    strong = [_evidence(f"s{i}", [], confidence=0.9) for i in range(3)]
    weak = [_evidence("w0", [], confidence=0.7)]

    hyperedges = synthesizer.complex_relationship(strong + weak)
    assert len(hyperedges) == 1
    assert hyperedges[0].nodes == ["s0", "s1", "s2"]
    assert hyperedges[0].confidence == 0.85

    assert synthesizer.complex_relationship(strong[:2] + weak) == []


def test_rules_are_additive_and_deterministic(synthesizer: HyperedgeSynthesizer) -> None:
    nodes = [_hypothesis("h1")] + [_evidence(f"e{i}", ["genomics"], confidence=0.9) for i in range(3)]
    edges = [_edge("h1", f"e{i}") for i in range(3)]

    first = synthesizer.synthesize(nodes, edges)
    second = synthesizer.synthesize(nodes, edges)

    assert {h.kind for h in first} == set(HyperEdgeKind)
    assert [h.id for h in first] == [h.id for h in second]
