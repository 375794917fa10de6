"""Index-addressed directed graph holding symbol nodes and relationship edges."""

from __future__ import annotations

from typing import Iterator, NewType, Optional, Tuple

import networkx as nx

from graph_migrator.graph.models import Edge, Node

NodeIndex = NewType("NodeIndex", int)
EdgeIndex = NewType("EdgeIndex", int)

_RECORD = "record"


class SymbolGraph:
    """Directed multigraph whose node and edge indices survive removals.

    Indices are handed out from monotonically increasing counters and are never
    reused. Removing a node or edge therefore never shifts or recycles the index
    of anything else: a retired index simply stops resolving. Storage is a
    ``networkx.MultiDiGraph`` keyed by those indices, with edge indices used as
    the multigraph edge keys.
    """

    def __init__(self) -> None:
        self._graph = nx.MultiDiGraph()
        self._edges: dict[EdgeIndex, Tuple[NodeIndex, NodeIndex]] = {}
        self._next_node = 0
        self._next_edge = 0

    def add_node(self, node: Node) -> NodeIndex:
        index = NodeIndex(self._next_node)
        self._next_node += 1
        self._graph.add_node(index, **{_RECORD: node})
        return index

    def add_edge(self, source: NodeIndex, target: NodeIndex, edge: Edge) -> EdgeIndex:
        """Connect two existing nodes. Unknown endpoints raise ``KeyError``."""

        for endpoint in (source, target):
            if endpoint not in self._graph:
                raise KeyError(f"Node index {endpoint} is not part of this graph.")
        index = EdgeIndex(self._next_edge)
        self._next_edge += 1
        self._graph.add_edge(source, target, key=index, **{_RECORD: edge})
        self._edges[index] = (source, target)
        return index

    def node_weight(self, index: NodeIndex) -> Optional[Node]:
        if index not in self._graph:
            return None
        return self._graph.nodes[index][_RECORD]

    def edge_weight(self, index: EdgeIndex) -> Optional[Edge]:
        endpoints = self._edges.get(index)
        if endpoints is None:
            return None
        source, target = endpoints
        return self._graph.edges[source, target, index][_RECORD]

    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    def edge_count(self) -> int:
        return len(self._edges)

    def nodes(self) -> Iterator[Node]:
        for _, data in self._graph.nodes(data=True):
            yield data[_RECORD]

    def edges(self) -> Iterator[Edge]:
        for index in self._edges:
            yield self.edge_weight(index)

    def node_indices(self) -> Iterator[NodeIndex]:
        return iter(list(self._graph.nodes))

    def edge_indices(self) -> Iterator[EdgeIndex]:
        return iter(list(self._edges))

    def edge_endpoints(self) -> Iterator[Tuple[NodeIndex, NodeIndex, Edge]]:
        """Yield ``(source, target, edge)`` for every edge in insertion order."""

        for index, (source, target) in self._edges.items():
            yield source, target, self._graph.edges[source, target, index][_RECORD]

    def edge_endpoints_for(self, index: EdgeIndex) -> Optional[Tuple[NodeIndex, NodeIndex]]:
        return self._edges.get(index)

    def find_node_by_id(self, node_id: str) -> Optional[NodeIndex]:
        """Return the first node whose identifier matches ``node_id``.

        This is a linear scan, O(n) in the number of nodes. Callers that look up
        identifiers repeatedly should keep their own identifier index.
        """

        for index, data in self._graph.nodes(data=True):
            if data[_RECORD].id == node_id:
                return index
        return None

    def remove_edge(self, index: EdgeIndex) -> Optional[Edge]:
        endpoints = self._edges.pop(index, None)
        if endpoints is None:
            return None
        source, target = endpoints
        edge = self._graph.edges[source, target, index][_RECORD]
        self._graph.remove_edge(source, target, key=index)
        return edge

    def remove_node(self, index: NodeIndex) -> Optional[Node]:
        """Remove a node together with its incident edges."""

        if index not in self._graph:
            return None
        incident = [key for _, _, key in self._graph.in_edges(index, keys=True)]
        incident.extend(key for _, _, key in self._graph.out_edges(index, keys=True))
        for key in incident:
            self._edges.pop(key, None)
        node = self._graph.nodes[index][_RECORD]
        self._graph.remove_node(index)
        return node

    def __contains__(self, index: object) -> bool:
        return index in self._graph

    def __len__(self) -> int:
        return self.node_count()


__all__ = ["NodeIndex", "EdgeIndex", "SymbolGraph"]
