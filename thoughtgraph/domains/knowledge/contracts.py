"""
Knowledge Contracts - Interfaces for the knowledge domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import networkx as nx

from .models import Edge, GraphData, HyperEdge, Node, NodeKind


@runtime_checkable
class GraphStore(Protocol):
    """Contract for reasoning graph storage."""

    def add_node(self, node: Node) -> str:
        """Add or replace a node."""
        ...

    def add_edge(self, edge: Edge) -> str:
        """Add or replace an edge."""
        ...

    def add_hyperedge(self, hyperedge: HyperEdge) -> str:
        """Add or replace a hyperedge."""
        ...

    def get_node(self, node_id: str) -> Node | None:
        """Get a node by ID."""
        ...

    def nodes(self, kind: NodeKind | None = None) -> list[Node]:
        """List nodes, optionally by kind."""
        ...

    def valid_edges(self) -> list[Edge]:
        """Edges whose endpoints both exist."""
        ...

    def valid_hyperedges(self) -> list[HyperEdge]:
        """Hyperedges whose members all exist."""
        ...

    def export(self) -> GraphData:
        """Snapshot of the graph for consumers."""
        ...

    def to_networkx(self, directed: bool = True) -> nx.Graph:
        """NetworkX view over the valid edges."""
        ...
