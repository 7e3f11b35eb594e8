from pathlib import Path
from typing import List

import pytest

from src.main.loader.program_loader import SourceUnit, load


def _nodes_of(node, node_type: str) -> List:
    found = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == node_type:
            found.append(current)
        stack.extend(reversed(current.children))
    return found


@pytest.fixture
def go_package(tmp_path):
    """Write Go files into a fresh directory and load it as one unit."""

    def _make(files, name: str = "pkg") -> SourceUnit:
        directory: Path = tmp_path / name
        directory.mkdir()
        if isinstance(files, str):
            files = {"a.go": files}
        for fname, src in files.items():
            (directory / fname).write_text(src, encoding="utf-8")
        units = load([str(directory)])
        assert len(units) == 1
        return units[0]

    return _make


@pytest.fixture
def nodes_of():
    """All nodes of a given type under a node, in source order."""
    return _nodes_of


@pytest.fixture
def unit_nodes(nodes_of):
    """Nodes of a given type across a unit's files, paired with the file's type lookup."""

    def _collect(unit: SourceUnit, node_type: str):
        return [
            (node, info.type_of)
            for _, root, info in unit.files()
            for node in nodes_of(root, node_type)
        ]

    return _collect
