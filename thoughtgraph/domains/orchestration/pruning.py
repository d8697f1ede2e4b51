"""
Graph Pruning - Low-confidence edge removal, hypothesis merging, orphan cleanup
and high-impact subgraph extraction.
"""

from __future__ import annotations

import logging
import re

import networkx as nx

from thoughtgraph.domains.knowledge.confidence import cosine_similarity
from thoughtgraph.domains.knowledge.contracts import GraphStore
from thoughtgraph.domains.knowledge.graph_store import ROOT_NODE_ID, ReasoningGraphStore
from thoughtgraph.domains.knowledge.models import Edge, HyperEdge, Node, NodeKind

from .models import PruneReport, SubgraphReport

logger = logging.getLogger(__name__)

__all__ = [
    "critical_subgraph",
    "merge_similar_hypotheses",
    "prune_graph",
    "prune_low_confidence_edges",
    "remove_orphans",
    "text_overlap",
]

_TOKEN = re.compile(r"\w+")


def text_overlap(a: str, b: str) -> float:
    """Jaccard overlap of lowercase word tokens."""
    tokens_a = set(_TOKEN.findall(a.lower()))
    tokens_b = set(_TOKEN.findall(b.lower()))
    if not tokens_a and not tokens_b:
        return 1.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def prune_low_confidence_edges(store: ReasoningGraphStore, threshold: float) -> list[str]:
    """Remove edges with confidence below ``threshold``."""
    removed = store.remove_edges(lambda e: e.confidence < threshold)
    for edge in removed:
        logger.debug("Pruned edge %s (confidence %.2f)", edge.id, edge.confidence)
    return [e.id for e in removed]


def _parent_dimension(store: ReasoningGraphStore, hypothesis: Node) -> str | None:
    for edge in store.valid_edges():
        if edge.target != hypothesis.id:
            continue
        source = store.get_node(edge.source)
        if source is not None and source.kind == NodeKind.DIMENSION:
            return source.id
    return None


def _is_similar(a: Node, b: Node, similarity: float, overlap: float) -> bool:
    if cosine_similarity(a.confidence.as_list(), b.confidence.as_list()) < similarity:
        return False
    return text_overlap(a.metadata.value, b.metadata.value) >= overlap


def _representative(group: list[Node]) -> Node:
    return sorted(group, key=lambda n: (-n.confidence.mean(), -n.impact_score, n.id))[0]


def _rewire_edges(edges: list[Edge], alias: dict[str, str]) -> list[Edge]:
    """Point edges at representatives, dropping self-loops and duplicates."""
    kept: dict[tuple[str, str, str], Edge] = {}
    for edge in edges:
        source = alias.get(edge.source, edge.source)
        target = alias.get(edge.target, edge.target)
        if source == target:
            continue
        if (source, target) != (edge.source, edge.target):
            edge = edge.model_copy(update={"source": source, "target": target})
        key = (source, target, edge.kind.value)
        existing = kept.get(key)
        if existing is None:
            kept[key] = edge
        elif edge.confidence > existing.confidence:
            kept[key] = existing.model_copy(update={"confidence": edge.confidence})
    return list(kept.values())


def _rewire_hyperedges(hyperedges: list[HyperEdge], alias: dict[str, str]) -> list[HyperEdge]:
    rewired = []
    for hyperedge in hyperedges:
        members = list(dict.fromkeys(alias.get(n, n) for n in hyperedge.nodes))
        if len(members) < 2:
            logger.debug("Dropped hyperedge %s after merge", hyperedge.id)
            continue
        rewired.append(hyperedge.model_copy(update={"nodes": members}))
    return rewired


def merge_similar_hypotheses(
    store: ReasoningGraphStore,
    similarity_threshold: float,
    overlap_threshold: float,
) -> dict[str, list[str]]:
    """
    Merge sibling hypotheses that say the same thing.

    Two hypotheses under the same dimension are similar when the cosine
    similarity of their confidence vectors reaches ``similarity_threshold``
    and their statements overlap by at least ``overlap_threshold``. The
    representative of a group has the highest mean confidence (then impact,
    then smallest id); edges and hyperedges of the others are re-pointed to it.

    Args:
        store: Graph to mutate
        similarity_threshold: Minimum confidence-vector cosine similarity
        overlap_threshold: Minimum statement token overlap

    Returns:
        Mapping of representative id to the ids merged into it
    """
    siblings: dict[str, list[Node]] = {}
    for hypothesis in store.nodes(NodeKind.HYPOTHESIS):
        parent = _parent_dimension(store, hypothesis)
        if parent is not None:
            siblings.setdefault(parent, []).append(hypothesis)

    alias: dict[str, str] = {}
    merged: dict[str, list[str]] = {}

    for group in siblings.values():
        assigned: set[str] = set()
        for i, seed in enumerate(group):
            if seed.id in assigned:
                continue
            cluster = [seed]
            for other in group[i + 1 :]:
                if other.id not in assigned and _is_similar(
                    seed, other, similarity_threshold, overlap_threshold
                ):
                    cluster.append(other)
            assigned.update(n.id for n in cluster)
            if len(cluster) < 2:
                continue

            keep = _representative(cluster)
            absorbed = [n.id for n in cluster if n.id != keep.id]
            for node_id in absorbed:
                alias[node_id] = keep.id
            merged[keep.id] = absorbed

    if not merged:
        return merged

    store.replace_edges(_rewire_edges(store.edges(), alias))
    store.replace_hyperedges(_rewire_hyperedges(store.hyperedges(), alias))

    for keep_id, absorbed in merged.items():
        keep = store.get_node(keep_id)
        if keep is None:
            continue
        metadata = keep.metadata.model_copy(
            update={"merged_from": [*keep.metadata.merged_from, *absorbed]}
        )
        store.add_node(keep.model_copy(update={"metadata": metadata}))
        for node_id in absorbed:
            store.remove_node(node_id)
        logger.info("Merged %d hypotheses into %s", len(absorbed), keep_id)

    return merged


def remove_orphans(store: ReasoningGraphStore) -> list[str]:
    """Remove every node without a valid edge, except the root."""
    connected: set[str] = set()
    for edge in store.valid_edges():
        connected.add(edge.source)
        connected.add(edge.target)

    removed = []
    for node in store.nodes():
        if node.id == ROOT_NODE_ID or node.kind == NodeKind.ROOT or node.id in connected:
            continue
        store.remove_node(node.id)
        removed.append(node.id)
    return removed


def prune_graph(
    store: ReasoningGraphStore,
    confidence_threshold: float = 0.4,
    similarity_threshold: float = 0.98,
    overlap_threshold: float = 0.8,
) -> PruneReport:
    """Prune low-confidence edges, merge similar hypotheses, drop orphans."""
    pruned = prune_low_confidence_edges(store, confidence_threshold)
    merged = merge_similar_hypotheses(store, similarity_threshold, overlap_threshold)
    removed = remove_orphans(store)
    logger.info(
        "Pruned %d edges, merged %d groups, removed %d orphan nodes",
        len(pruned),
        len(merged),
        len(removed),
    )
    return PruneReport(pruned_edges=pruned, merged=merged, removed_nodes=removed)


def critical_subgraph(store: GraphStore, impact_threshold: float = 0.7) -> SubgraphReport:
    """
    Connected structure of the high-impact nodes.

    ``paths`` counts node pairs joined by a path inside the induced subgraph.
    The store is not modified.
    """
    selected = [n.id for n in store.nodes() if n.impact_score >= impact_threshold]
    subgraph = store.to_networkx(directed=False).subgraph(selected)

    components = list(nx.connected_components(subgraph)) if selected else []
    paths = sum(len(c) * (len(c) - 1) // 2 for c in components)

    return SubgraphReport(
        node_ids=selected,
        components=len(components),
        paths=paths,
        complexity_score=len(components) * 0.3,
    )
