"""
Reasoning Graph Store - In-memory typed graph with NetworkX views.

Nodes, edges and hyperedges are keyed by stable string ids. The raw
collections may transiently hold references to missing nodes; every view
handed to consumers goes through ``valid_edges`` / ``valid_hyperedges``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from pathlib import Path

import networkx as nx

from thoughtgraph.config.errors import ValidationError

from .confidence import mean
from .models import (
    Edge,
    GraphData,
    GraphMetadata,
    GraphStats,
    HyperEdge,
    Node,
    NodeKind,
    utcnow,
)

logger = logging.getLogger(__name__)

__all__ = ["ReasoningGraphStore", "ROOT_NODE_ID", "slugify"]

ROOT_NODE_ID = "n0_root"


def slugify(text: str) -> str:
    """Lowercase id fragment with runs of whitespace turned into underscores."""
    return re.sub(r"\s+", "_", text.strip().lower())


class ReasoningGraphStore:
    """
    Reasoning graph with insertion-ordered storage.

    Example:
        >>> store = ReasoningGraphStore()
        >>> store.add_node(Node(id="n0_root", label="Task Understanding", kind=NodeKind.ROOT))
        'n0_root'
        >>> store.valid_edges()
        []
    """

    def __init__(self, graph: GraphData | None = None) -> None:
        """
        Initialize the store.

        Args:
            graph: Optional snapshot to load
        """
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._hyperedges: dict[str, HyperEdge] = {}
        self.metadata = GraphMetadata()

        if graph is not None:
            self.load(graph)

    # --- Mutation ---

    def load(self, graph: GraphData) -> None:
        """Replace the whole content with a snapshot."""
        self.clear()
        for node in graph.nodes:
            self.add_node(node)
        for edge in graph.edges:
            self.add_edge(edge)
        for hyperedge in graph.hyperedges:
            self.add_hyperedge(hyperedge)
        self.metadata = graph.metadata.model_copy()

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()
        self._hyperedges.clear()

    def add_node(self, node: Node) -> str:
        """Add or replace a node."""
        self._nodes[node.id] = node
        logger.debug("Added node: %s (%s)", node.id, node.kind.value)
        return node.id

    def add_edge(self, edge: Edge) -> str:
        """Add or replace an edge. Endpoints are not checked here."""
        self._edges[edge.id] = edge
        logger.debug(
            "Added edge: %s -[%s]-> %s",
            edge.source,
            edge.kind.value,
            edge.target,
        )
        return edge.id

    def add_hyperedge(self, hyperedge: HyperEdge) -> str:
        """Add or replace a hyperedge."""
        self._hyperedges[hyperedge.id] = hyperedge
        logger.debug("Added hyperedge: %s (%d members)", hyperedge.id, len(hyperedge.nodes))
        return hyperedge.id

    def remove_node(self, node_id: str) -> bool:
        """
        Remove a node. Incident edges are left for the views to filter.

        Raises:
            ValidationError: When asked to remove the root node
        """
        if node_id == ROOT_NODE_ID:
            raise ValidationError("The root node cannot be removed", {"node_id": node_id})
        removed = self._nodes.pop(node_id, None) is not None
        if removed:
            logger.debug("Removed node: %s", node_id)
        return removed

    def remove_edge(self, edge_id: str) -> bool:
        return self._edges.pop(edge_id, None) is not None

    def remove_edges(self, predicate: Callable[[Edge], bool]) -> list[Edge]:
        """Remove every edge matching ``predicate`` and return them."""
        doomed = [e for e in self._edges.values() if predicate(e)]
        for edge in doomed:
            del self._edges[edge.id]
        return doomed

    def replace_edges(self, edges: Iterable[Edge]) -> None:
        self._edges = {e.id: e for e in edges}

    def replace_hyperedges(self, hyperedges: Iterable[HyperEdge]) -> None:
        self._hyperedges = {h.id: h for h in hyperedges}

    def touch(self, stage: int | None = None) -> GraphMetadata:
        """Refresh bookkeeping after a mutation."""
        update: dict[str, object] = {
            "last_updated": utcnow(),
            "total_nodes": len(self._nodes),
            "total_edges": len(self.valid_edges()),
        }
        if stage is not None:
            update["stage"] = stage
        self.metadata = self.metadata.model_copy(update=update)
        return self.metadata

    # --- Lookup ---

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_edge(self, edge_id: str) -> Edge | None:
        return self._edges.get(edge_id)

    def nodes(self, kind: NodeKind | None = None) -> list[Node]:
        """Nodes in insertion order, optionally filtered by kind."""
        if kind is None:
            return list(self._nodes.values())
        return [n for n in self._nodes.values() if n.kind == kind]

    def edges(self) -> list[Edge]:
        """Raw edges, possibly dangling."""
        return list(self._edges.values())

    def hyperedges(self) -> list[HyperEdge]:
        """Raw hyperedges, possibly dangling."""
        return list(self._hyperedges.values())

    @property
    def root(self) -> Node | None:
        return self._nodes.get(ROOT_NODE_ID)

    # --- Consumer views ---

    def valid_edges(self) -> list[Edge]:
        """
        Edges whose endpoints both exist.

        Missing weights are filled from the edge confidence.
        """
        valid = []
        for edge in self._edges.values():
            if edge.source not in self._nodes or edge.target not in self._nodes:
                continue
            if edge.weight is None:
                edge = edge.model_copy(update={"weight": edge.confidence})
            valid.append(edge)
        return valid

    def valid_hyperedges(self) -> list[HyperEdge]:
        """Hyperedges whose members all exist."""
        return [
            h for h in self._hyperedges.values() if all(n in self._nodes for n in h.nodes)
        ]

    def neighbors(self, node_id: str, direction: str = "both") -> list[Node]:
        """
        Neighboring nodes over valid edges.

        Args:
            node_id: Node to inspect
            direction: "in", "out", or "both"

        Returns:
            Neighboring nodes, without duplicates
        """
        found: dict[str, Node] = {}
        for edge in self.valid_edges():
            if direction in ("out", "both") and edge.source == node_id:
                found[edge.target] = self._nodes[edge.target]
            if direction in ("in", "both") and edge.target == node_id:
                found[edge.source] = self._nodes[edge.source]
        return list(found.values())

    def to_networkx(self, directed: bool = True) -> nx.Graph:
        """Build a NetworkX graph from nodes and valid edges."""
        graph: nx.Graph = nx.DiGraph() if directed else nx.Graph()
        for node in self._nodes.values():
            graph.add_node(node.id, kind=node.kind.value, label=node.label)
        for edge in self.valid_edges():
            graph.add_edge(
                edge.source,
                edge.target,
                id=edge.id,
                kind=edge.kind.value,
                weight=edge.weight,
                confidence=edge.confidence,
            )
        return graph

    def get_stats(self) -> GraphStats:
        """Get graph statistics."""
        nodes_by_kind: dict[str, int] = {}
        edges_by_kind: dict[str, int] = {}

        for node in self._nodes.values():
            nodes_by_kind[node.kind.value] = nodes_by_kind.get(node.kind.value, 0) + 1

        valid = self.valid_edges()
        for edge in valid:
            edges_by_kind[edge.kind.value] = edges_by_kind.get(edge.kind.value, 0) + 1

        return GraphStats(
            total_nodes=len(self._nodes),
            total_edges=len(valid),
            total_hyperedges=len(self.valid_hyperedges()),
            dangling_edges=len(self._edges) - len(valid),
            nodes_by_kind=nodes_by_kind,
            edges_by_kind=edges_by_kind,
            average_confidence=mean([n.confidence.mean() for n in self._nodes.values()]),
        )

    # --- Export / import ---

    def export(self) -> GraphData:
        """Snapshot containing only valid edges and hyperedges."""
        return GraphData(
            nodes=list(self._nodes.values()),
            edges=self.valid_edges(),
            hyperedges=self.valid_hyperedges(),
            metadata=self.metadata.model_copy(),
        )

    def save_json(self, path: str | Path) -> Path:
        """Write the exported snapshot as JSON."""
        path = Path(path)
        path.write_text(self.export().model_dump_json(indent=2), encoding="utf-8")
        logger.info("Saved graph to %s (%d nodes)", path, len(self._nodes))
        return path

    @classmethod
    def load_json(cls, path: str | Path) -> ReasoningGraphStore:
        """Load a store from a JSON snapshot."""
        with open(path, encoding="utf-8") as f:
            data = GraphData.model_validate(json.load(f))
        store = cls(data)
        logger.info(
            "Loaded graph from %s: %d nodes, %d edges",
            path,
            len(store._nodes),
            len(store._edges),
        )
        return store
