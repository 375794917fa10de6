"""Helpers for analysing the unified symbol graph."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import networkx as nx

from graph_migrator.analysis.unified_graph import MultiFileGraph
from graph_migrator.graph.models import EdgeKind

NodeId = str


def to_networkx(multi: MultiFileGraph) -> nx.MultiDiGraph:
    """Identifier-keyed networkx view; node attributes mirror :class:`Node`."""

    graph = nx.MultiDiGraph(name="symbol_graph", files=sorted(str(path) for path in multi.files))
    for node in multi.graph.nodes():
        attributes = node.as_dict()
        attributes.pop("id")
        attributes["defined_in"] = str(multi.node_locations.get(node.id, node.file_path))
        graph.add_node(node.id, **attributes)
    for source, target, edge in multi.graph.edge_endpoints():
        source_id = multi.graph.node_weight(source).id
        target_id = multi.graph.node_weight(target).id
        graph.add_edge(source_id, target_id, kind=edge.kind.value)
    return graph


def _neighbours(multi: MultiFileGraph, identifier: NodeId, kind: EdgeKind, *, outgoing: bool) -> list[NodeId]:
    index = multi.node_index(identifier)
    if index is None:
        return []
    found: set[NodeId] = set()
    for source, target, edge in multi.graph.edge_endpoints():
        if edge.kind != kind:
            continue
        if outgoing and source == index:
            found.add(multi.graph.node_weight(target).id)
        elif not outgoing and target == index:
            found.add(multi.graph.node_weight(source).id)
    return sorted(found)


def callees(multi: MultiFileGraph, identifier: NodeId) -> list[NodeId]:
    """Identifiers called by ``identifier``; empty when unknown."""

    return _neighbours(multi, identifier, EdgeKind.CALLS, outgoing=True)


def callers(multi: MultiFileGraph, identifier: NodeId) -> list[NodeId]:
    return _neighbours(multi, identifier, EdgeKind.CALLS, outgoing=False)


def symbols_in_file(multi: MultiFileGraph, path: Path | str) -> list[NodeId]:
    """Identifiers whose provenance is ``path``."""

    target = Path(path).expanduser().resolve()
    return sorted(identifier for identifier, location in multi.node_locations.items() if location == target)


def reachable_from(multi: MultiFileGraph, identifier: NodeId) -> set[NodeId]:
    """Transitive callees of ``identifier``."""

    graph = to_networkx(multi)
    if identifier not in graph:
        return set()
    return set(nx.descendants(graph, identifier))


@dataclass(slots=True)
class GraphSummary:
    files: int
    nodes: int
    edges: int
    node_kinds: dict[str, int]
    edge_kinds: dict[str, int]
    largest_file: Optional[str] = None


def graph_summary(multi: MultiFileGraph) -> GraphSummary:
    node_kinds = Counter(node.kind.value for node in multi.graph.nodes())
    edge_kinds = Counter(edge.kind.value for edge in multi.graph.edges())
    per_file = Counter(str(path) for path in multi.node_locations.values())
    largest = max(sorted(per_file), key=per_file.__getitem__) if per_file else None
    return GraphSummary(
        files=len(multi.files),
        nodes=multi.graph.node_count(),
        edges=multi.graph.edge_count(),
        node_kinds=dict(sorted(node_kinds.items())),
        edge_kinds=dict(sorted(edge_kinds.items())),
        largest_file=largest,
    )


__all__ = [
    "GraphSummary",
    "callees",
    "callers",
    "graph_summary",
    "reachable_from",
    "symbols_in_file",
    "to_networkx",
]
