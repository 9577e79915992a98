"""Tests for revtree CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest import mock

import pytest
import structlog
from textual.logging import TextualHandler

from revtree.cli import (
    _collect_edges,
    _generate_dot,
    _generate_mermaid,
    _mermaid_id,
    _print_tree_text,
    main,
)
from revtree.core.tree import DependentNode


def _sample_tree() -> dict[str, DependentNode]:
    return {
        "b": DependentNode(
            kind="dependencies",
            version_range="^1.0",
            version="1.0",
            dependents={
                "c": DependentNode(kind="devDependencies", version_range="^1.0", version="2.0"),
            },
        ),
        "d": DependentNode(kind="peerDependencies", version_range=">=1", cycle=True),
    }


class TestPrintTreeText:
    """Tests for _print_tree_text helper."""

    def test_empty(self, capsys) -> None:
        _print_tree_text({})
        assert capsys.readouterr().out == ""

    def test_nested(self, capsys) -> None:
        _print_tree_text(_sample_tree())
        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "├── b@1.0 (dependencies ^1.0)",
            "│   └── c@2.0 (devDependencies ^1.0)",
            "└── d (peerDependencies >=1) [cycle]",
        ]


class TestCollectEdges:
    """Tests for _collect_edges helper."""

    def test_edges_point_from_dependent(self) -> None:
        edges: set[tuple[str, str, str]] = set()
        _collect_edges("a", _sample_tree(), edges)
        assert edges == {
            ("b", "a", "dependencies"),
            ("c", "b", "devDependencies"),
            ("d", "a", "peerDependencies"),
        }


class TestGenerateDot:
    """Tests for _generate_dot."""

    def test_basic(self) -> None:
        dot = _generate_dot("a", _sample_tree())
        assert dot.startswith("digraph dependents {")
        assert dot.endswith("}")
        assert '"b" -> "a" [label="dependencies"];' in dot
        assert '"c" -> "b" [label="devDependencies", style=dashed];' in dot
        assert '"a" [style="rounded,filled", fillcolor=lightblue];' in dot
        assert "label=" in dot

    def test_title(self) -> None:
        dot = _generate_dot("a", {}, title="a dependents")
        assert 'label="a dependents";' in dot


class TestGenerateMermaid:
    """Tests for _generate_mermaid."""

    def test_basic(self) -> None:
        out = _generate_mermaid("a", _sample_tree())
        assert out.startswith("graph RL")
        assert 'b["b"] -->|dependencies| a["a"]' in out
        assert 'c["c"] -.->|devDependencies| b["b"]' in out

    def test_title(self) -> None:
        out = _generate_mermaid("a", {}, title="T")
        assert out.startswith("---\ntitle: T\n---\ngraph RL")

    def test_mermaid_id(self) -> None:
        assert _mermaid_id("@scope/my-pkg.js") == "scope_my_pkg_js"


class TestMain:
    """Tests for main() and the subcommands."""

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "revtree" in capsys.readouterr().out

    def test_list(self, workspace: Path, capsys) -> None:
        assert main(["list", "-s", str(workspace)]) == 0
        out = capsys.readouterr().out
        assert "Found 5 package(s)" in out
        assert "a@1.0 (1 dependents)" in out

    def test_list_verbose(self, workspace: Path, capsys) -> None:
        assert main(["list", "-v", "-s", str(workspace)]) == 0
        assert "package.json" in capsys.readouterr().out

    def test_list_json(self, workspace: Path, capsys) -> None:
        assert main(["list", "--json", "-s", str(workspace)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert sorted(data) == ["a", "b", "c", "x", "y"]

    def test_list_empty(self, tmp_path: Path, capsys) -> None:
        assert main(["list", "-s", str(tmp_path)]) == 1
        assert "No packages found" in capsys.readouterr().out

    def test_tree_text(self, workspace: Path, capsys) -> None:
        assert main(["tree", "a", "-s", str(workspace)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "a@1.0",
            "└── b@1.0 (dependencies ^1.0)",
            "    └── c@1.0 (devDependencies ^1.0)",
        ]

    def test_tree_json(self, workspace: Path, capsys) -> None:
        assert main(["tree", "a", "--json", "-s", str(workspace)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {
            "b": {
                "kind": "dependencies",
                "versionRange": "^1.0",
                "dependents": {
                    "c": {"kind": "devDependencies", "versionRange": "^1.0", "dependents": {}},
                },
            }
        }

    def test_tree_cycle(self, workspace: Path, capsys) -> None:
        assert main(["tree", "x", "-s", str(workspace)]) == 0
        captured = capsys.readouterr()
        assert "x@1.0 (dependencies ^1) [cycle]" in captured.out

    def test_tree_depth(self, workspace: Path, capsys) -> None:
        assert main(["tree", "a", "-d", "1", "-s", str(workspace)]) == 0
        assert "c@" not in capsys.readouterr().out

    def test_tree_not_found(self, workspace: Path, capsys) -> None:
        assert main(["tree", "missing", "-s", str(workspace)]) == 1
        assert "Package not found: missing" in capsys.readouterr().err

    def test_graph_dot(self, workspace: Path, capsys) -> None:
        assert main(["graph", "a", "-s", str(workspace)]) == 0
        out = capsys.readouterr().out
        assert 'label="a dependents";' in out
        assert '"c" -> "b"' in out

    def test_graph_mermaid_no_title(self, workspace: Path, capsys) -> None:
        assert main(["graph", "a", "-f", "mermaid", "--no-title", "-s", str(workspace)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("graph RL")

    def test_graph_output_file(self, workspace: Path, tmp_path: Path, capsys) -> None:
        out_file = tmp_path / "deps.dot"
        assert main(["graph", "a", "-o", str(out_file), "-s", str(workspace)]) == 0
        assert out_file.read_text().startswith("digraph")
        assert "Graph written to" in capsys.readouterr().err

    def test_graph_not_found(self, workspace: Path, capsys) -> None:
        assert main(["graph", "missing", "-s", str(workspace)]) == 1

    def test_no_command_launches_tui(self) -> None:
        with mock.patch("revtree.tui.app.DependentsApp") as app_cls:
            assert main([]) == 0
        app_cls.assert_called_once_with(root_package=None, extra_source_roots=None)
        app_cls.return_value.run.assert_called_once()

    def test_tui_with_package(self, workspace: Path) -> None:
        with mock.patch("revtree.tui.app.DependentsApp") as app_cls:
            assert main(["tui", "a", "-s", str(workspace)]) == 0
        app_cls.assert_called_once_with(root_package="a", extra_source_roots=[workspace])


def _long_chain_tree(length: int) -> dict[str, DependentNode]:
    tree: dict[str, DependentNode] = {}
    for i in reversed(range(1, length)):
        tree = {f"p{i}": DependentNode(kind="dependencies", version_range="^1", dependents=tree)}
    return tree


class TestLongChainOutput:
    """Text and graph output for trees deeper than the recursion limit."""

    def test_print_tree_text(self, capsys) -> None:
        _print_tree_text(_long_chain_tree(1200))
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1199
        assert lines[0] == "└── p1 (dependencies ^1)"
        assert lines[-1] == " " * 4 * 1198 + "└── p1199 (dependencies ^1)"

    def test_collect_edges(self) -> None:
        edges: set[tuple[str, str, str]] = set()
        _collect_edges("p0", _long_chain_tree(1200), edges)
        assert len(edges) == 1199
        assert ("p1199", "p1198", "dependencies") in edges


class TestLogRouting:
    """Where main() sends diagnostics."""

    def _structlog_handlers(self) -> list[logging.Handler]:
        return [
            h
            for h in logging.getLogger().handlers
            if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
        ]

    def test_tui_logs_to_textual(self) -> None:
        with mock.patch("revtree.tui.app.DependentsApp"):
            assert main(["tui"]) == 0
        assert [type(h) for h in self._structlog_handlers()] == [TextualHandler]

    def test_default_command_logs_to_textual(self) -> None:
        with mock.patch("revtree.tui.app.DependentsApp"):
            assert main([]) == 0
        assert [type(h) for h in self._structlog_handlers()] == [TextualHandler]

    def test_tree_logs_to_stderr(self, workspace: Path, capsys) -> None:
        assert main(["tree", "x", "-s", str(workspace)]) == 0
        assert [type(h) for h in self._structlog_handlers()] == [logging.StreamHandler]
        captured = capsys.readouterr()
        assert "circular_dependency" in captured.err
        assert "circular_dependency" not in captured.out
