"""Merge per-file symbol subgraphs into a single multi-file graph."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from graph_migrator.errors import MergeConsistencyError
from graph_migrator.graph.container import NodeIndex, SymbolGraph
from graph_migrator.graph.models import Edge, EdgeKind, Node

LOGGER = logging.getLogger(__name__)


@dataclass
class MergePlan:
    """Changes needed to fold one subgraph in, computed before any mutation."""

    path: Path
    new_nodes: List[Tuple[NodeIndex, Node]] = field(default_factory=list)
    existing: Dict[NodeIndex, NodeIndex] = field(default_factory=dict)
    duplicates: Dict[NodeIndex, NodeIndex] = field(default_factory=dict)
    edges: List[Tuple[NodeIndex, NodeIndex, Edge]] = field(default_factory=list)


@dataclass
class MultiFileGraph:
    """Unified graph of every merged file plus identifier and provenance maps.

    ``id_index`` gives O(1) identifier lookup, ``node_locations`` records the
    file that first contributed each identifier, ``files`` every merged file.
    """

    graph: SymbolGraph = field(default_factory=SymbolGraph)
    id_index: Dict[str, NodeIndex] = field(default_factory=dict)
    node_locations: Dict[str, Path] = field(default_factory=dict)
    files: Set[Path] = field(default_factory=set)

    def node_index(self, identifier: str) -> Optional[NodeIndex]:
        return self.id_index.get(identifier)

    def node(self, identifier: str) -> Optional[Node]:
        index = self.id_index.get(identifier)
        if index is None:
            return None
        return self.graph.node_weight(index)

    def edge_triples(self) -> Set[Tuple[str, str, EdgeKind]]:
        """Edges as ``(source id, target id, kind)``, independent of raw indices."""

        triples = set()
        for source, target, edge in self.graph.edge_endpoints():
            triples.add((self.graph.node_weight(source).id, self.graph.node_weight(target).id, edge.kind))
        return triples

    def plan_merge(self, subgraph: SymbolGraph, path: Path) -> MergePlan:
        plan = MergePlan(path=path)
        pending: Dict[str, NodeIndex] = {}
        for local in subgraph.node_indices():
            node = subgraph.node_weight(local)
            if node.id in self.id_index:
                plan.existing[local] = self.id_index[node.id]
                continue
            if node.id in pending:
                plan.duplicates[local] = pending[node.id]
                continue
            pending[node.id] = local
            plan.new_nodes.append((local, node))

        mapped = {local for local, _ in plan.new_nodes} | set(plan.existing) | set(plan.duplicates)
        for source, target, edge in subgraph.edge_endpoints():
            for endpoint in (source, target):
                if endpoint not in mapped:
                    raise MergeConsistencyError(
                        f"Edge {edge.kind.value} {source}->{target} in {path} references "
                        f"node index {endpoint} missing from the local->global mapping.",
                        path=path,
                    )
            plan.edges.append((source, target, edge))
        return plan

    def apply(self, plan: MergePlan) -> None:
        mapping: Dict[NodeIndex, NodeIndex] = {}
        for local, node in plan.new_nodes:
            index = self.graph.add_node(copy.deepcopy(node))
            self.id_index[node.id] = index
            self.node_locations[node.id] = plan.path
            mapping[local] = index
        mapping.update(plan.existing)
        for local, first in plan.duplicates.items():
            mapping[local] = mapping[first]

        for source, target, edge in plan.edges:
            self.graph.add_edge(mapping[source], mapping[target], copy.deepcopy(edge))

        self.files.add(plan.path)
        LOGGER.debug(
            "Merged %s: %s new nodes, %s reused, %s new edges",
            plan.path,
            len(plan.new_nodes),
            len(plan.existing) + len(plan.duplicates),
            len(plan.edges),
        )

    def merge(self, subgraph: SymbolGraph, path: Path) -> bool:
        """Fold ``subgraph`` (extracted from ``path``) into this graph.

        A path already in ``files`` is skipped and ``False`` returned, so one
        file never contributes its edges twice. The whole plan is validated
        first, so an inconsistent subgraph raises :class:`MergeConsistencyError`
        and leaves this graph untouched.
        """

        if path in self.files:
            LOGGER.warning("Skipping %s: already merged.", path)
            return False
        plan = self.plan_merge(subgraph, path)
        self.apply(plan)
        return True

    def remove_node(self, identifier: str) -> Optional[Node]:
        """Remove a node and its incident edges, keeping the identifier maps in step."""

        index = self.id_index.pop(identifier, None)
        if index is None:
            return None
        self.node_locations.pop(identifier, None)
        return self.graph.remove_node(index)


def merge_file_graphs(pairs: Iterable[Tuple[SymbolGraph, Path]]) -> MultiFileGraph:
    """Merge ``(subgraph, path)`` pairs in lexicographic path order."""

    merged = MultiFileGraph()
    for subgraph, path in sorted(pairs, key=lambda item: str(item[1])):
        merged.merge(subgraph, path)
    LOGGER.info(
        "Unified graph: %s files, %s nodes, %s edges",
        len(merged.files),
        merged.graph.node_count(),
        merged.graph.edge_count(),
    )
    return merged


__all__ = ["MergePlan", "MultiFileGraph", "merge_file_graphs"]
