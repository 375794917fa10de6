"""Extract top-level symbols and intra-file call edges from Python syntax trees."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from graph_migrator.graph.container import NodeIndex, SymbolGraph
from graph_migrator.graph.models import Edge, EdgeKind, Node, NodeKind, symbol_id
from graph_migrator.io.syntax import Language, SyntaxTreeProvider, read_source

LOGGER = logging.getLogger(__name__)

LANGUAGE_TAG = Language.PYTHON.value

DEFINITION_KINDS: dict[str, NodeKind] = {
    "function_definition": NodeKind.FUNCTION,
    "class_definition": NodeKind.CLASS,
}


def _node_text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def _unwrap_decorated(node: Any) -> Any:
    if node.type == "decorated_definition":
        return node.child_by_field_name("definition")
    return node


def _definition_name(definition: Any, source: bytes) -> Optional[str]:
    name_node = definition.child_by_field_name("name")
    if name_node is None:
        return None
    name = _node_text(name_node, source)
    return name or None


def _iter_preorder(root: Any) -> Iterator[Any]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def extract_top_level_nodes(root: Any, file_path: Path, source: bytes) -> list[Node]:
    """Return Function/Class nodes for the direct children of ``root``.

    Decorated definitions are unwrapped; nested definitions are never visited.
    """

    nodes: list[Node] = []
    for child in root.children:
        definition = _unwrap_decorated(child)
        if definition is None:
            continue
        kind = DEFINITION_KINDS.get(definition.type)
        if kind is None:
            continue
        name = _definition_name(definition, source)
        if name is None:
            continue
        nodes.append(
            Node(
                id=symbol_id(file_path, name),
                name=name,
                kind=kind,
                language=LANGUAGE_TAG,
                file_path=file_path,
                line_range=(child.start_point[0] + 1, child.end_point[0] + 1),
            )
        )
    return nodes


def _dotted_name(node: Any, source: bytes) -> Optional[str]:
    if node.type == "identifier":
        return _node_text(node, source)
    if node.type == "attribute":
        obj = node.child_by_field_name("object")
        attr = node.child_by_field_name("attribute")
        if obj is None or attr is None:
            return None
        prefix = _dotted_name(obj, source)
        if prefix is None:
            return None
        return f"{prefix}.{_node_text(attr, source)}"
    return None


def extract_call_name(call: Any, source: bytes) -> Optional[str]:
    """Name of the callee: ``foo`` for ``foo()``, ``a.b.c`` for ``a.b.c()``.

    Calls on anything other than a name or attribute chain (subscripts,
    call results, lambdas) have no name.
    """

    function = call.child_by_field_name("function")
    if function is None:
        return None
    return _dotted_name(function, source)


def _is_top_level(definition: Any) -> bool:
    parent = definition.parent
    if parent is not None and parent.type == "decorated_definition":
        parent = parent.parent
    return parent is not None and parent.type == "module"


def enclosing_top_level_function(node: Any) -> Optional[Any]:
    """Closest ancestor that is a top-level ``function_definition``.

    Calls in nested functions and classes inside a top-level function resolve to
    that function. Calls at module level or inside a top-level class have none.
    """

    current = node.parent
    while current is not None:
        if current.type == "function_definition" and _is_top_level(current):
            return current
        current = current.parent
    return None


def resolve_symbol(name: Optional[str], registry: dict[str, NodeIndex]) -> Optional[NodeIndex]:
    """File-scoped lookup; ``None`` means the name is not a top-level symbol here."""

    if name is None:
        return None
    return registry.get(name)


def extract_file_graph(tree: Any, source: bytes, file_path: Path) -> SymbolGraph:
    """Build the subgraph for one file from its parsed syntax tree.

    ``file_path`` must already be canonical: it is embedded in every node
    identifier. When two top-level definitions share a name both become nodes,
    but call resolution only ever targets the first one.
    """

    root = getattr(tree, "root_node", tree)
    graph = SymbolGraph()
    registry: dict[str, NodeIndex] = {}

    for node in extract_top_level_nodes(root, file_path, source):
        index = graph.add_node(node)
        registry.setdefault(node.name, index)

    unresolved = 0
    for candidate in _iter_preorder(root):
        if candidate.type != "call":
            continue
        caller_def = enclosing_top_level_function(candidate)
        if caller_def is None:
            continue
        caller = resolve_symbol(_definition_name(caller_def, source), registry)
        callee = resolve_symbol(extract_call_name(candidate, source), registry)
        if caller is None or callee is None:
            unresolved += 1
            continue
        graph.add_edge(caller, callee, Edge(kind=EdgeKind.CALLS))

    LOGGER.debug(
        "Extracted %s nodes / %s call edges from %s (%s calls unresolved)",
        graph.node_count(),
        graph.edge_count(),
        file_path,
        unresolved,
    )
    return graph


def parse_file(path: Path | str, *, provider: SyntaxTreeProvider | None = None) -> SymbolGraph:
    """Read, parse and extract a single Python file."""

    canonical, source = read_source(path)
    provider = provider or SyntaxTreeProvider()
    tree = provider.parse(source, Language.PYTHON, path=canonical)
    return extract_file_graph(tree, source, canonical)


__all__ = [
    "DEFINITION_KINDS",
    "LANGUAGE_TAG",
    "enclosing_top_level_function",
    "extract_call_name",
    "extract_file_graph",
    "extract_top_level_nodes",
    "parse_file",
    "resolve_symbol",
]
