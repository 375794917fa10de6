"""JSON dump of a multi-file graph for inspection and debugging."""

from __future__ import annotations

import json
from pathlib import Path

from graph_migrator.analysis.unified_graph import MultiFileGraph


def graph_payload(multi: MultiFileGraph) -> dict:
    nodes = [node.as_dict() for node in multi.graph.nodes()]
    edges = []
    for source, target, edge in multi.graph.edge_endpoints():
        edges.append(
            {
                "source": multi.graph.node_weight(source).id,
                "target": multi.graph.node_weight(target).id,
                **edge.as_dict(),
            }
        )
    nodes.sort(key=lambda item: item["id"])
    edges.sort(key=lambda item: (item["source"], item["target"], item["kind"]))
    return {
        "files": sorted(str(path) for path in multi.files),
        "node_count": len(nodes),
        "edge_count": len(edges),
        "nodes": nodes,
        "edges": edges,
        "provenance": {identifier: str(path) for identifier, path in sorted(multi.node_locations.items())},
    }


def export_graph(multi: MultiFileGraph, destination: Path) -> Path:
    """Write the graph to ``destination`` as sorted, indented JSON."""

    destination = Path(destination).expanduser().resolve()
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w", encoding="utf-8") as handle:
        json.dump(graph_payload(multi), handle, indent=2)
    return destination


__all__ = ["export_graph", "graph_payload"]
