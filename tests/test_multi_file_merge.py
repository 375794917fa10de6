"""Tests for merging per-file subgraphs into the multi-file graph."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from graph_migrator.analysis.python_extractor import parse_file
from graph_migrator.analysis.unified_graph import MultiFileGraph, merge_file_graphs
from graph_migrator.config import DiscoveryConfig
from graph_migrator.errors import FileReadError, MergeConsistencyError, SourceParseError
from graph_migrator.graph.models import Edge, EdgeKind, Node, NodeKind, symbol_id
from graph_migrator.pipelines.build_graph import build_from_config, parse_directory, parse_files


def _write(tmp_path: Path, name: str, content: str) -> Path:
    target = tmp_path / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(textwrap.dedent(content), encoding="utf-8")
    return target


def _sample_project(tmp_path: Path) -> list[Path]:
    return [
        _write(tmp_path, "a.py", "def helper():\n    pass\n\ndef run():\n    helper()\n"),
        _write(tmp_path, "b.py", "def helper():\n    pass\n"),
        _write(tmp_path, "pkg/c.py", "class Service:\n    pass\n\ndef build():\n    return Service()\n"),
    ]


def test_empty_input_gives_empty_graph() -> None:
    merged = parse_files([])
    assert merged.graph.node_count() == 0
    assert merged.graph.edge_count() == 0
    assert merged.files == set()
    assert merged.node_locations == {}


def test_same_name_in_two_files_gives_two_nodes(tmp_path: Path) -> None:
    a = _write(tmp_path, "a.py", "def helper():\n    pass\n")
    b = _write(tmp_path, "b.py", "def helper():\n    pass\n")

    merged = parse_files([a, b])

    assert merged.graph.node_count() == 2
    assert merged.graph.edge_count() == 0
    assert merged.node_locations == {
        symbol_id(a.resolve(), "helper"): a.resolve(),
        symbol_id(b.resolve(), "helper"): b.resolve(),
    }
    assert merged.files == {a.resolve(), b.resolve()}


def test_edges_survive_merge(tmp_path: Path) -> None:
    paths = _sample_project(tmp_path)
    merged = parse_files(paths)

    a, _, c = (path.resolve() for path in paths)
    assert merged.graph.node_count() == 5
    assert merged.edge_triples() == {
        (symbol_id(a, "run"), symbol_id(a, "helper"), EdgeKind.CALLS),
        (symbol_id(c, "build"), symbol_id(c, "Service"), EdgeKind.CALLS),
    }


def test_input_order_does_not_matter(tmp_path: Path) -> None:
    paths = _sample_project(tmp_path)

    forward = parse_files(paths)
    backward = parse_files(list(reversed(paths)))

    assert set(forward.id_index) == set(backward.id_index)
    assert forward.edge_triples() == backward.edge_triples()
    assert forward.graph.node_count() == backward.graph.node_count()
    assert forward.graph.edge_count() == backward.graph.edge_count()
    assert forward.node_locations == backward.node_locations
    assert [node.id for node in forward.graph.nodes()] == [node.id for node in backward.graph.nodes()]


def test_merge_file_graphs_sorts_pairs(tmp_path: Path) -> None:
    paths = [path.resolve() for path in _sample_project(tmp_path)]
    pairs = [(parse_file(path), path) for path in paths]

    merged = merge_file_graphs(reversed(pairs))

    assert [node.file_path for node in merged.graph.nodes()][0] == paths[0]
    assert merged.files == set(paths)


def test_id_index_and_provenance_are_consistent(tmp_path: Path) -> None:
    merged = parse_files(_sample_project(tmp_path))

    assert set(merged.id_index) == set(merged.node_locations)
    for identifier, index in merged.id_index.items():
        node = merged.graph.node_weight(index)
        assert node.id == identifier
        assert merged.node(identifier) is node
        assert merged.node_locations[identifier] in merged.files
    assert merged.node("/nowhere.py::missing") is None


def test_duplicate_paths_are_parsed_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "a.py", "def helper():\n    pass\n\ndef run():\n    helper()\n")
    monkeypatch.chdir(tmp_path)

    merged = parse_files([path, Path("a.py"), Path(".") / "a.py"])

    assert merged.graph.node_count() == 2
    assert merged.graph.edge_count() == 1
    assert merged.files == {path.resolve()}


def test_already_merged_path_is_skipped(tmp_path: Path) -> None:
    path = _write(tmp_path, "a.py", "def helper():\n    pass\n\ndef run():\n    helper()\n").resolve()
    merged = MultiFileGraph()

    assert merged.merge(parse_file(path), path) is True
    assert merged.merge(parse_file(path), path) is False

    assert merged.files == {path}
    assert merged.graph.node_count() == 2
    assert merged.graph.edge_count() == 1


def test_every_call_edge_is_merged(tmp_path: Path) -> None:
    content = "def helper():\n    pass\n\ndef run():\n    helper()\n    helper()\n"
    path = _write(tmp_path, "a.py", content).resolve()
    subgraph = parse_file(path)

    merged = parse_files([path])

    assert subgraph.edge_count() == 2
    assert merged.graph.edge_count() == subgraph.edge_count()
    assert merged.edge_triples() == {(symbol_id(path, "run"), symbol_id(path, "helper"), EdgeKind.CALLS)}


def test_remove_node_keeps_maps_in_step(tmp_path: Path) -> None:
    a = _write(tmp_path, "a.py", "def helper():\n    pass\n\ndef run():\n    helper()\n").resolve()
    b = _write(tmp_path, "b.py", "def other():\n    pass\n").resolve()
    merged = MultiFileGraph()
    merged.merge(parse_file(a), a)

    removed = merged.remove_node(symbol_id(a, "helper"))

    assert removed.name == "helper"
    assert merged.node(symbol_id(a, "helper")) is None
    assert symbol_id(a, "helper") not in merged.node_locations
    assert merged.graph.edge_count() == 0
    assert merged.remove_node(symbol_id(a, "helper")) is None

    merged.merge(parse_file(b), b)
    assert set(merged.id_index) == {symbol_id(a, "run"), symbol_id(b, "other")}
    assert merged.node(symbol_id(b, "other")).file_path == b
    assert merged.edge_triples() == set()


def test_in_file_duplicates_collapse_to_first(tmp_path: Path) -> None:
    content = """\
    def helper():
        pass

    def caller():
        helper()

    def helper():
        pass
    """
    path = _write(tmp_path, "dupes.py", content).resolve()
    merged = parse_files([path])

    assert merged.graph.node_count() == 2
    assert merged.graph.edge_count() == 1
    assert merged.node(symbol_id(path, "helper")).line_range == (1, 2)


def test_merged_nodes_are_copies(tmp_path: Path) -> None:
    path = _write(tmp_path, "a.py", "def helper():\n    pass\n").resolve()
    subgraph = parse_file(path)
    merged = MultiFileGraph()
    merged.merge(subgraph, path)

    next(iter(subgraph.nodes())).name = "renamed"
    assert merged.node(symbol_id(path, "helper")).name == "helper"


class _DanglingSubgraph:
    """Minimal subgraph whose edge points at an index with no node."""

    def __init__(self, node: Node) -> None:
        self._node = node

    def node_indices(self):
        return iter([0])

    def node_weight(self, index):
        return self._node if index == 0 else None

    def edge_endpoints(self):
        return iter([(0, 7, Edge(kind=EdgeKind.CALLS))])


def test_inconsistent_subgraph_raises_and_leaves_graph_untouched() -> None:
    path = Path("/virtual/broken.py")
    node = Node(id=symbol_id(path, "orphan"), name="orphan", kind=NodeKind.FUNCTION, language="python", file_path=path)
    merged = MultiFileGraph()

    with pytest.raises(MergeConsistencyError) as excinfo:
        merged.merge(_DanglingSubgraph(node), path)

    assert excinfo.value.path == path
    assert merged.graph.node_count() == 0
    assert merged.files == set()
    assert merged.id_index == {}


def test_parse_failure_aborts_whole_run(tmp_path: Path) -> None:
    good = _write(tmp_path, "a_good.py", "def helper():\n    pass\n")
    bad = _write(tmp_path, "b_bad.py", "def broken(:\n    pass\n")

    with pytest.raises(SourceParseError) as excinfo:
        parse_files([good, bad])
    assert excinfo.value.path == bad.resolve()


def test_missing_input_raises(tmp_path: Path) -> None:
    good = _write(tmp_path, "a.py", "def helper():\n    pass\n")
    with pytest.raises(FileReadError):
        parse_files([good, tmp_path / "missing.py"])


def test_parse_directory(tmp_path: Path) -> None:
    _sample_project(tmp_path)
    _write(tmp_path, ".gitignore", "pkg/\n")

    merged = parse_directory(tmp_path)

    assert {path.name for path in merged.files} == {"a.py", "b.py"}
    assert merged.graph.node_count() == 3


def test_parse_directory_missing_root(tmp_path: Path) -> None:
    merged = parse_directory(tmp_path / "absent")
    assert merged.graph.node_count() == 0
    assert merged.files == set()


def test_build_from_config(tmp_path: Path) -> None:
    _sample_project(tmp_path)
    config = DiscoveryConfig.for_python(tmp_path, patterns=["pkg/**/*.py"])

    merged = build_from_config(config)

    assert {path.name for path in merged.files} == {"c.py"}
    assert merged.graph.edge_count() == 1
