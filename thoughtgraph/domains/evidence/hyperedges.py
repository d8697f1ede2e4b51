"""
Hyperedge Synthesizer - Multi-node relationships derived from the graph.

Three independent rules, all additive:

- interdisciplinary: evidence nodes sharing a disciplinary tag
- multi_causal: a hypothesis with two or more supporting evidence nodes
- complex_relationship: three or more high-confidence evidence nodes

Hyperedge ids are derived from their content so re-running the synthesis
replaces rather than duplicates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from thoughtgraph.domains.knowledge.graph_store import slugify
from thoughtgraph.domains.knowledge.models import (
    Edge,
    EdgeKind,
    HyperEdge,
    HyperEdgeKind,
    HyperEdgeMetadata,
    Node,
    NodeKind,
)

logger = logging.getLogger(__name__)

__all__ = ["HyperedgeSynthesizer"]

INTERDISCIPLINARY_CONFIDENCE = 0.7
MULTI_CAUSAL_CONFIDENCE = 0.8
COMPLEX_CONFIDENCE = 0.85
COMPLEX_MEAN_THRESHOLD = 0.8


class HyperedgeSynthesizer:
    """
    Derives hyperedges from evidence and hypothesis nodes.

    Example:
        >>> synthesizer = HyperedgeSynthesizer()
        >>> hyperedges = synthesizer.synthesize(store.nodes(), store.valid_edges())
    """

    def synthesize(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> list[HyperEdge]:
        """
        Run all rules.

        Args:
            nodes: Current graph nodes
            edges: Valid edges of the graph

        Returns:
            Hyperedges from every rule, in rule order
        """
        nodes = list(nodes)
        evidence = [n for n in nodes if n.kind == NodeKind.EVIDENCE]
        hypotheses = [n for n in nodes if n.kind == NodeKind.HYPOTHESIS]

        hyperedges = [
            *self.interdisciplinary(evidence),
            *self.multi_causal(hypotheses, evidence, list(edges)),
            *self.complex_relationship(evidence),
        ]
        logger.info(
            "Synthesized %d hyperedges from %d evidence nodes",
            len(hyperedges),
            len(evidence),
        )
        return hyperedges

    def interdisciplinary(self, evidence: list[Node]) -> list[HyperEdge]:
        """One hyperedge per tag shared by at least two evidence nodes."""
        by_tag: dict[str, list[str]] = {}
        for node in evidence:
            for tag in node.metadata.disciplinary_tags:
                members = by_tag.setdefault(tag, [])
                if node.id not in members:
                    members.append(node.id)

        return [
            HyperEdge(
                id=f"hyper_interdisciplinary_{slugify(tag)}",
                nodes=members,
                kind=HyperEdgeKind.INTERDISCIPLINARY,
                confidence=INTERDISCIPLINARY_CONFIDENCE,
                metadata=HyperEdgeMetadata(
                    source_description=f"Interdisciplinary connection in {tag}",
                    value=tag,
                    disciplinary_tags=[tag],
                    notes=f"Hyperedge connecting {len(members)} nodes with shared disciplinary focus",
                ),
            )
            for tag, members in by_tag.items()
            if len(members) >= 2
        ]

    def multi_causal(
        self,
        hypotheses: list[Node],
        evidence: list[Node],
        edges: list[Edge],
    ) -> list[HyperEdge]:
        """One hyperedge per hypothesis backed by two or more evidence nodes."""
        evidence_ids = {n.id for n in evidence}
        hyperedges = []

        for hypothesis in hypotheses:
            supporting = list(
                dict.fromkeys(
                    e.target
                    for e in edges
                    if e.source == hypothesis.id
                    and e.target in evidence_ids
                    and e.kind != EdgeKind.CONTRADICTORY
                )
            )
            if len(supporting) < 2:
                continue
            hyperedges.append(
                HyperEdge(
                    id=f"hyper_causal_{hypothesis.id}",
                    nodes=[hypothesis.id, *supporting],
                    kind=HyperEdgeKind.MULTI_CAUSAL,
                    confidence=MULTI_CAUSAL_CONFIDENCE,
                    metadata=HyperEdgeMetadata(
                        source_description="Multi-causal relationship between hypothesis and evidence",
                        value=f"Multiple evidence sources supporting {hypothesis.label}",
                        notes=f"Hyperedge connecting hypothesis with {len(supporting)} supporting evidence nodes",
                    ),
                )
            )
        return hyperedges

    def complex_relationship(self, evidence: list[Node]) -> list[HyperEdge]:
        """A single hyperedge over all evidence with mean confidence above 0.8."""
        strong = [n.id for n in evidence if n.confidence.mean() > COMPLEX_MEAN_THRESHOLD]
        if len(strong) < 3:
            return []
        return [
            HyperEdge(
                id="hyper_complex",
                nodes=strong,
                kind=HyperEdgeKind.COMPLEX_RELATIONSHIP,
                confidence=COMPLEX_CONFIDENCE,
                metadata=HyperEdgeMetadata(
                    source_description="Complex relationship between high-confidence evidence nodes",
                    value="High-confidence evidence cluster",
                    notes=f"Complex hyperedge connecting {len(strong)} high-confidence nodes",
                ),
            )
        ]
