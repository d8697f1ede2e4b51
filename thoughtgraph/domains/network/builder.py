"""
Multi-Layer Builder - Partitions a reasoning graph into abstraction layers.

Layers are built from predicates over nodes; inter-layer connections are
inferred from node similarity and typed by the relative level of the two
layers.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Iterable, Sequence

from thoughtgraph.domains.knowledge.confidence import mean
from thoughtgraph.domains.knowledge.models import Edge, GraphData, Node, NodeKind

from .models import (
    ConnectionKind,
    GlobalMetrics,
    InterLayerConnection,
    LayerDefinition,
    LayerKind,
    MultiLayerNetwork,
    NetworkLayer,
    PropagationReport,
    PropagationResult,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MultiLayerBuilder",
    "connection_kind",
    "default_layer_definitions",
    "global_metrics",
    "layer_complexity",
    "semantic_similarity",
]

TYPE_MATCH_WEIGHT = 0.3
ALIGNMENT_WEIGHT = 0.3
SIMILARITY_NORMALIZER = 1.6
CONNECTION_CONFIDENCE_FACTOR = 0.8
PROPAGATION_SPREAD_IMPACT = 0.5


def default_layer_definitions() -> list[LayerDefinition]:
    """Evidence at the bottom, the research question at the top."""
    return [
        LayerDefinition("Evidence", 0, LayerKind.EVIDENCE, lambda n: n.kind == NodeKind.EVIDENCE),
        LayerDefinition("Hypotheses", 1, LayerKind.HYPOTHESIS, lambda n: n.kind == NodeKind.HYPOTHESIS),
        LayerDefinition("Dimensions", 2, LayerKind.THEORY, lambda n: n.kind == NodeKind.DIMENSION),
        LayerDefinition("Research Question", 3, LayerKind.META_THEORY, lambda n: n.kind == NodeKind.ROOT),
    ]


def _tag_overlap(a: Node, b: Node) -> float:
    tags_a = set(a.metadata.disciplinary_tags)
    tags_b = set(b.metadata.disciplinary_tags)
    if not tags_a and not tags_b:
        return 0.5
    return len(tags_a & tags_b) / len(tags_a | tags_b)


def semantic_similarity(a: Node, b: Node) -> float:
    """
    Similarity of two nodes in [0, 1].

    Matching kind contributes 0.3, disciplinary tag overlap up to 1.0 and
    alignment of mean confidence up to 0.3; the sum is divided by 1.6.
    """
    type_match = TYPE_MATCH_WEIGHT if a.kind == b.kind else 0.0
    alignment = 1.0 - abs(a.confidence.mean() - b.confidence.mean())
    score = (type_match + _tag_overlap(a, b) + alignment * ALIGNMENT_WEIGHT) / SIMILARITY_NORMALIZER
    return min(1.0, max(0.0, score))


def connection_kind(source: NetworkLayer, target: NetworkLayer) -> ConnectionKind:
    if source.level < target.level:
        return ConnectionKind.ABSTRACTION
    if source.level > target.level:
        return ConnectionKind.INSTANTIATION
    return ConnectionKind.CORRESPONDENCE


def layer_complexity(nodes: Sequence[Node], edges: Sequence[Edge]) -> float:
    """Mean of edge density, confidence variance and kind variety."""
    if not nodes:
        return 0.0
    n = len(nodes)
    connectivity = len(edges) / max(1, n * (n - 1) / 2)
    variances = []
    for node in nodes:
        values = node.confidence.as_list()
        center = mean(values)
        variances.append(mean([(v - center) ** 2 for v in values]))
    variety = len({node.kind for node in nodes}) / n
    return (connectivity + mean(variances) + variety) / 3


def global_metrics(
    layers: Sequence[NetworkLayer],
    connections: Sequence[InterLayerConnection],
) -> GlobalMetrics:
    total_nodes = sum(len(layer.nodes) for layer in layers)
    total_edges = sum(len(layer.edges) for layer in layers) + len(connections)
    emergent = sum(1 for c in connections if c.kind == ConnectionKind.EMERGENCE)
    return GlobalMetrics(
        total_nodes=total_nodes,
        total_edges=total_edges,
        layer_count=len(layers),
        connectivity=total_edges / max(1, total_nodes * (total_nodes - 1) / 2),
        hierarchical_depth=max([layer.level for layer in layers] + [0]),
        emergence_score=emergent / len(connections) if connections else 0.0,
    )


class MultiLayerBuilder:
    """
    Builds and edits multi-layer views of a reasoning graph.

    Example:
        >>> builder = MultiLayerBuilder()
        >>> network = builder.build(engine.graph_data())
        >>> [layer.name for layer in network.layers]
        ['Evidence', 'Hypotheses', 'Dimensions', 'Research Question']
    """

    def __init__(self, similarity_threshold: float = 0.6) -> None:
        self.similarity_threshold = similarity_threshold

    def create_layers(
        self,
        graph: GraphData,
        definitions: Sequence[LayerDefinition] | None = None,
    ) -> list[NetworkLayer]:
        """
        One layer per definition with its matching nodes and induced edges.

        Args:
            graph: Graph snapshot
            definitions: Layer definitions, the default decomposition when omitted

        Returns:
            Layers in definition order, ids ``layer_<index>``
        """
        known = {n.id for n in graph.nodes}
        edges = [e for e in graph.edges if e.source in known and e.target in known]

        layers = []
        for index, definition in enumerate(definitions or default_layer_definitions()):
            nodes = [n for n in graph.nodes if definition.predicate(n)]
            member_ids = {n.id for n in nodes}
            induced = [e for e in edges if e.source in member_ids and e.target in member_ids]
            layers.append(
                NetworkLayer(
                    id=f"layer_{index}",
                    name=definition.name,
                    level=definition.level,
                    kind=definition.kind,
                    description=f"{definition.name} layer with {len(nodes)} nodes",
                    nodes=nodes,
                    edges=induced,
                    complexity=layer_complexity(nodes, induced),
                )
            )
            logger.debug("Layer %s: %d nodes, %d edges", definition.name, len(nodes), len(induced))
        return layers

    def connect(self, source: NetworkLayer, target: NetworkLayer) -> list[InterLayerConnection]:
        """Connections between node pairs whose similarity exceeds the threshold."""
        kind = connection_kind(source, target)
        connections = []
        for a in source.nodes:
            for b in target.nodes:
                similarity = semantic_similarity(a, b)
                if similarity <= self.similarity_threshold:
                    continue
                connections.append(
                    InterLayerConnection(
                        id=f"interlayer_{a.id}_{b.id}",
                        source_layer=source.id,
                        target_layer=target.id,
                        source_node=a.id,
                        target_node=b.id,
                        kind=kind,
                        strength=similarity,
                        confidence=similarity * CONNECTION_CONFIDENCE_FACTOR,
                        bidirectional=kind == ConnectionKind.CORRESPONDENCE,
                        metadata={
                            "source_layer_kind": source.kind.value,
                            "target_layer_kind": target.kind.value,
                        },
                    )
                )
        return connections

    def infer_inter_layer_connections(self, layers: Sequence[NetworkLayer]) -> list[InterLayerConnection]:
        """Connections for every unordered pair of layers."""
        connections: list[InterLayerConnection] = []
        for i, source in enumerate(layers):
            for target in layers[i + 1 :]:
                connections.extend(self.connect(source, target))
        logger.info("Inferred %d inter-layer connections across %d layers", len(connections), len(layers))
        return connections

    def build(
        self,
        graph: GraphData,
        definitions: Sequence[LayerDefinition] | None = None,
    ) -> MultiLayerNetwork:
        layers = self.create_layers(graph, definitions)
        connections = self.infer_inter_layer_connections(layers)
        return MultiLayerNetwork(
            id=f"multilayer_{int(time.time() * 1000)}",
            layers=layers,
            connections=connections,
            metrics=global_metrics(layers, connections),
        )

    def add_layer(self, network: MultiLayerNetwork, layer: NetworkLayer) -> MultiLayerNetwork:
        """Return a copy of ``network`` with ``layer`` connected to every existing layer."""
        added: list[InterLayerConnection] = []
        for existing in network.layers:
            added.extend(self.connect(existing, layer))

        layers = [*network.layers, layer]
        connections = [*network.connections, *added]
        return network.model_copy(
            update={
                "layers": layers,
                "connections": connections,
                "metrics": global_metrics(layers, connections),
            }
        )

    def propagate_change(self, network: MultiLayerNetwork, layer_id: str, node_id: str) -> PropagationReport:
        """
        Layers and nodes reached when ``node_id`` changes.

        Each connection touching the node carries the change to the node on
        its other end with impact ``strength * confidence``; when the impact
        reaches 0.5 it spreads one hop further inside that layer.
        """
        report = PropagationReport()
        for connection in network.connections:
            if connection.source_layer == layer_id and connection.source_node == node_id:
                target_layer, target_node = connection.target_layer, connection.target_node
            elif connection.target_layer == layer_id and connection.target_node == node_id:
                target_layer, target_node = connection.source_layer, connection.source_node
            else:
                continue

            if target_layer not in report.affected_layers:
                report.affected_layers.append(target_layer)

            impact = connection.strength * connection.confidence
            affected = [target_node]
            layer = network.get_layer(target_layer)
            if layer is not None and impact >= PROPAGATION_SPREAD_IMPACT:
                affected.extend(n.id for n in _neighbors(layer, target_node) if n.id not in affected)
            report.results.append(
                PropagationResult(layer_id=target_layer, affected_nodes=affected, impact=impact)
            )
        return report

    def extract_subnetwork(
        self,
        network: MultiLayerNetwork,
        node_ids: Iterable[str] | None = None,
        layer_ids: Iterable[str] | None = None,
        confidence_threshold: float = 0.0,
        max_distance: int = 2,
    ) -> MultiLayerNetwork:
        """
        Restrict the network to selected layers and nodes.

        Args:
            network: Source network (not modified)
            node_ids: Seed nodes; each layer keeps nodes within ``max_distance`` hops of its seeds
            layer_ids: Layers to keep, all when omitted
            confidence_threshold: Minimum mean node confidence
            max_distance: Hop limit for seed expansion

        Returns:
            New network with only connections between kept nodes
        """
        seeds = set(node_ids or [])
        wanted = set(layer_ids or [])
        layers = [layer for layer in network.layers if not wanted or layer.id in wanted]

        extracted = []
        for layer in layers:
            nodes = layer.nodes
            if seeds:
                nodes = _expand(layer, [n for n in nodes if n.id in seeds], max_distance)
            if confidence_threshold > 0:
                nodes = [n for n in nodes if n.confidence.mean() >= confidence_threshold]
            kept = {n.id for n in nodes}
            edges = [e for e in layer.edges if e.source in kept and e.target in kept]
            extracted.append(layer.model_copy(update={"nodes": nodes, "edges": edges}))

        all_ids = {n.id for layer in extracted for n in layer.nodes}
        connections = [
            c for c in network.connections if c.source_node in all_ids and c.target_node in all_ids
        ]
        return network.model_copy(
            update={
                "layers": extracted,
                "connections": connections,
                "metrics": global_metrics(extracted, connections),
            }
        )


def _neighbors(layer: NetworkLayer, node_id: str) -> list[Node]:
    by_id = {n.id: n for n in layer.nodes}
    found: dict[str, Node] = {}
    for edge in layer.edges:
        if edge.source == node_id and edge.target in by_id:
            found[edge.target] = by_id[edge.target]
        elif edge.target == node_id and edge.source in by_id:
            found[edge.source] = by_id[edge.source]
    return list(found.values())


def _expand(layer: NetworkLayer, seeds: list[Node], max_distance: int) -> list[Node]:
    """Breadth-first expansion from ``seeds`` within the layer, keeping layer order."""
    selected = {n.id for n in seeds}
    queue = deque((n, 0) for n in seeds)
    while queue:
        node, distance = queue.popleft()
        if distance >= max_distance:
            continue
        for neighbor in _neighbors(layer, node.id):
            if neighbor.id not in selected:
                selected.add(neighbor.id)
                queue.append((neighbor, distance + 1))
    return [n for n in layer.nodes if n.id in selected]
