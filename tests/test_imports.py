"""Tests for structured import capture."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from graph_migrator.analysis.imports import (
    Import,
    ImportFrom,
    ImportedName,
    extract_imports,
    import_statement_from_dict,
)
from graph_migrator.errors import SourceParseError
from graph_migrator.pipelines.build_graph import parse_directory_with_imports

SAMPLE = '''\
from __future__ import annotations

import os
import os.path as osp, sys
from collections import OrderedDict, defaultdict as dd
from . import sibling
from ..pkg.mod import thing as other
from typing import (
    Any,
    Optional,
)
from helpers import *


def lazy():
    import json
    return json
'''


def _write(tmp_path: Path, name: str, content: str) -> Path:
    target = tmp_path / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(textwrap.dedent(content), encoding="utf-8")
    return target


@pytest.fixture()
def statements(tmp_path: Path):
    return extract_imports(_write(tmp_path, "sample.py", SAMPLE))


def test_statements_in_source_order(statements) -> None:
    assert len(statements) == 9
    assert [statement.range.start_line for statement in statements] == [1, 3, 4, 5, 6, 7, 8, 12, 16]


def test_future_import(statements) -> None:
    future = statements[0]
    assert isinstance(future, ImportFrom)
    assert future.module == "__future__"
    assert future.level == 0
    assert [name.name for name in future.names] == ["annotations"]


def test_plain_and_aliased_imports(statements) -> None:
    plain, multi = statements[1], statements[2]
    assert isinstance(plain, Import)
    assert [(item.name, item.alias) for item in plain.items] == [("os", None)]
    assert [(item.name, item.alias) for item in multi.items] == [("os.path", "osp"), ("sys", None)]


def test_from_import_with_alias(statements) -> None:
    statement = statements[3]
    assert statement.module == "collections"
    assert [(name.name, name.alias) for name in statement.names] == [("OrderedDict", None), ("defaultdict", "dd")]
    assert not statement.is_star


def test_relative_imports(statements) -> None:
    current, parent = statements[4], statements[5]
    assert (current.module, current.level) == (None, 1)
    assert [name.name for name in current.names] == ["sibling"]
    assert (parent.module, parent.level) == ("pkg.mod", 2)
    assert [(name.name, name.alias) for name in parent.names] == [("thing", "other")]


def test_parenthesised_names(statements) -> None:
    statement = statements[6]
    assert statement.module == "typing"
    assert [name.name for name in statement.names] == ["Any", "Optional"]
    assert statement.range.end_line == 11


def test_star_import(statements) -> None:
    statement = statements[7]
    assert statement.is_star
    assert statement.names == [ImportedName(name="*", alias=None, is_star=True)]


def test_nested_import_is_captured(statements) -> None:
    nested = statements[8]
    assert isinstance(nested, Import)
    assert nested.items[0].name == "json"


def test_range_covers_statement_text(tmp_path: Path) -> None:
    path = _write(tmp_path, "single.py", "x = 1\nimport os\n")
    (statement,) = extract_imports(path)
    source = path.read_bytes()
    assert source[statement.range.start_byte : statement.range.end_byte] == b"import os"
    assert (statement.range.start_line, statement.range.end_line) == (2, 2)


def test_dict_round_trip(statements) -> None:
    for statement in statements:
        assert import_statement_from_dict(statement.as_dict()) == statement


def test_unknown_statement_type_rejected() -> None:
    payload = {"type": "include", "range": {"start_byte": 0, "end_byte": 1, "start_line": 1, "end_line": 1}}
    with pytest.raises(ValueError):
        import_statement_from_dict(payload)


def test_syntax_error_propagates(tmp_path: Path) -> None:
    with pytest.raises(SourceParseError):
        extract_imports(_write(tmp_path, "broken.py", "from import\n"))


def test_parse_directory_with_imports(tmp_path: Path) -> None:
    a = _write(tmp_path, "a.py", "import os\n\ndef helper():\n    pass\n")
    b = _write(tmp_path, "b.py", "from a import helper\n\ndef run():\n    helper()\n")
    _write(tmp_path, "c.py", "def lonely():\n    pass\n")

    output = parse_directory_with_imports(tmp_path)

    assert output.graph.graph.node_count() == 3
    # Imports are captured but never resolved into edges.
    assert output.graph.graph.edge_count() == 0
    assert set(output.imports) == output.graph.files
    assert [item.name for item in output.imports[a.resolve()][0].items] == ["os"]
    assert output.imports[b.resolve()][0].module == "a"
    assert output.imports[(tmp_path / "c.py").resolve()] == []
