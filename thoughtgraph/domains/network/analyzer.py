"""
Layer Analyzer - Structural metrics per layer and emergence across layers.
"""

from __future__ import annotations

import logging

import networkx as nx

from thoughtgraph.domains.knowledge.confidence import mean

from .models import (
    CentralNode,
    Community,
    ConnectionKind,
    CrossLayerAnalysis,
    EmergentProperty,
    FlowDirection,
    InformationFlow,
    LayerAnalysis,
    LayerMetrics,
    MultiLayerNetwork,
    NetworkLayer,
    NodeMapping,
    ReductionMapping,
)

logger = logging.getLogger(__name__)

__all__ = ["analyze_cross_layer", "analyze_layer", "layer_graph"]

_LEVEL_CROSSING_KINDS = {ConnectionKind.ABSTRACTION, ConnectionKind.INSTANTIATION, ConnectionKind.REDUCTION}


def layer_graph(layer: NetworkLayer) -> nx.Graph:
    """Undirected graph of the layer weighted by edge confidence."""
    graph = nx.Graph()
    graph.add_nodes_from(n.id for n in layer.nodes)
    for edge in layer.edges:
        if edge.source in graph and edge.target in graph and edge.source != edge.target:
            graph.add_edge(edge.source, edge.target, weight=edge.confidence)
    return graph


def _average_path_length(graph: nx.Graph) -> float | None:
    if graph.number_of_nodes() <= 1:
        return 0.0
    order = {node: i for i, node in enumerate(graph.nodes)}
    lengths = []
    for source, distances in nx.all_pairs_dijkstra_path_length(graph, weight="weight"):
        lengths.extend(d for target, d in distances.items() if order[target] > order[source])
    return mean(lengths) if lengths else None


def _centralization(degrees: dict[str, int]) -> float:
    if not degrees:
        return 0.0
    highest = max(degrees.values())
    if highest == 0:
        return 0.0
    return (highest - mean(list(degrees.values()))) / highest


def _communities(graph: nx.Graph) -> tuple[list[set[str]], float]:
    """Greedy modularity communities and their modularity."""
    if graph.number_of_nodes() == 0:
        return [], 0.0
    if graph.number_of_edges() == 0:
        return [{node} for node in graph.nodes], 0.0
    found = [set(c) for c in nx.community.greedy_modularity_communities(graph, weight="weight")]
    return found, nx.community.modularity(graph, found, weight="weight")


def analyze_layer(layer: NetworkLayer) -> LayerAnalysis:
    """
    Structural metrics of one layer.

    Clustering is the mean local clustering coefficient over all nodes (layers
    under 3 nodes score 0). Path length is the mean Dijkstra distance over
    connected pairs with edge confidence as the weight. Centralization is
    ``(max degree - mean degree) / max degree``.

    Args:
        layer: Layer to analyze

    Returns:
        Metrics, nodes ranked by normalized degree and detected communities
    """
    graph = layer_graph(layer)
    n = graph.number_of_nodes()
    degrees = dict(graph.degree())
    communities, modularity = _communities(graph)

    metrics = LayerMetrics(
        node_density=n / max(1, n**2),
        edge_density=graph.number_of_edges() / max(1, n * (n - 1) / 2),
        clustering_coefficient=nx.average_clustering(graph) if n >= 3 else 0.0,
        path_length=_average_path_length(graph),
        centralization=_centralization(degrees),
        modularity=modularity,
    )

    central = [
        CentralNode(
            node_id=node.id,
            centrality=degrees.get(node.id, 0) / max(1, n - 1),
            influence=degrees.get(node.id, 0) * node.confidence.mean(),
        )
        for node in layer.nodes
    ]
    central.sort(key=lambda c: c.centrality, reverse=True)

    logger.debug("Analyzed layer %s: %d nodes, %d communities", layer.id, n, len(communities))
    return LayerAnalysis(
        layer_id=layer.id,
        metrics=metrics,
        central_nodes=central,
        communities=[
            Community(
                id=f"community_{i + 1}",
                nodes=sorted(members),
                cohesion=nx.density(graph.subgraph(members)),
            )
            for i, members in enumerate(communities)
        ],
    )


def _flow_direction(network: MultiLayerNetwork, source_id: str, target_id: str) -> FlowDirection:
    source = network.get_layer(source_id)
    target = network.get_layer(target_id)
    if source is None or target is None or source.level == target.level:
        return FlowDirection.LATERAL
    return FlowDirection.UPWARD if source.level < target.level else FlowDirection.DOWNWARD


def _reduction_mappings(network: MultiLayerNetwork) -> list[ReductionMapping]:
    """Group level-crossing connections by (higher layer, lower layer)."""
    mappings: dict[tuple[str, str], ReductionMapping] = {}
    for connection in network.connections:
        if connection.kind not in _LEVEL_CROSSING_KINDS:
            continue
        source = network.get_layer(connection.source_layer)
        target = network.get_layer(connection.target_layer)
        if source is None or target is None or source.level == target.level:
            continue

        if source.level > target.level:
            higher, lower = (source.id, connection.source_node), (target.id, connection.target_node)
        else:
            higher, lower = (target.id, connection.target_node), (source.id, connection.source_node)

        mapping = mappings.setdefault(
            (higher[0], lower[0]),
            ReductionMapping(higher_layer=higher[0], lower_layer=lower[0]),
        )
        mapping.nodes.append(NodeMapping(higher=higher[1], lower=lower[1], fidelity=connection.confidence))
    return list(mappings.values())


def analyze_cross_layer(network: MultiLayerNetwork) -> CrossLayerAnalysis:
    """
    Emergent properties, reduction mappings and information flow.

    Every connection contributes a flow of ``strength * confidence``;
    emergent properties are the connections of kind ``emergence``.
    """
    emergent = [
        EmergentProperty(
            property=f"emergence:{c.source_node}->{c.target_node}",
            strength=c.strength,
            layers=[c.source_layer, c.target_layer],
            description=f"{c.source_node} and {c.target_node} interact across layers",
        )
        for c in network.connections
        if c.kind == ConnectionKind.EMERGENCE
    ]
    flows = [
        InformationFlow(
            source_layer=c.source_layer,
            target_layer=c.target_layer,
            flow_rate=c.strength * c.confidence,
            direction=_flow_direction(network, c.source_layer, c.target_layer),
        )
        for c in network.connections
    ]
    return CrossLayerAnalysis(
        emergent_properties=emergent,
        reduction_mappings=_reduction_mappings(network),
        information_flow=flows,
    )
