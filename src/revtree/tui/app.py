"""Textual TUI for navigating package dependent trees."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Static, Tree
from textual.widgets.tree import TreeNode
from textual.worker import Worker, WorkerState

from revtree.api import load_index
from revtree.core.errors import PackageNotFoundError
from revtree.core.finder import MANIFEST_PATH_ENV
from revtree.core.index import PackageIndex
from revtree.core.tree import DependentNode, DependentTree, get_dependent_tree

# Limits to avoid huge trees
MAX_TREE_DEPTH = 8
MAX_TREE_NODES = 500
EXPAND_DEPTH_DEFAULT = 2
# Dependent levels built per tree in the TUI
TUI_TREE_MAX_DEPTH = 6

COLOR_HEADER = "bold magenta"
COLOR_PKG = "white"
COLOR_STATS = "cyan"
COLOR_PATH = "dim"
KIND_COLORS = {
    "dependencies": "bold green",
    "devDependencies": "bold yellow",
    "peerDependencies": "bold cyan",
}


def _build_tui_tree(index: PackageIndex, root_package: str) -> DependentTree:
    """Dependent tree of root_package, at most TUI_TREE_MAX_DEPTH levels deep."""
    return get_dependent_tree(index, root_package, max_depth=TUI_TREE_MAX_DEPTH)


def _count_nodes(tree: DependentTree) -> int:
    """Count nodes in a dependent tree mapping."""
    n = 0
    for node in tree.values():
        n += 1 + _count_nodes(node.dependents)
    return n


def _node_stats(node: DependentNode) -> tuple[int, int, int]:
    """Return (direct_dependents, total_descendants, max_depth) for a node."""
    direct = len(node.dependents)
    total = 0
    max_d = 0
    for child in node.dependents.values():
        _sub_direct, sub_total, sub_depth = _node_stats(child)
        total += 1 + sub_total
        max_d = max(max_d, 1 + sub_depth)
    return direct, total, max_d


def _node_label(name: str, node: DependentNode) -> str:
    color = KIND_COLORS.get(node.kind, COLOR_PKG)
    cycle = " [red](cycle)[/]" if node.cycle else ""
    return f"[{COLOR_PKG}]{name}[/] [{color}]{node.kind}[/] [dim]{node.version_range}[/]{cycle}"


def _populate_textual_tree(
    tn: TreeNode,
    tree: DependentTree,
    *,
    depth: int = 0,
    max_depth: int = MAX_TREE_DEPTH,
    max_nodes: int = MAX_TREE_NODES,
    node_count: list[int] | None = None,
) -> None:
    """Recursively add dependent nodes; cap depth and total nodes."""
    if node_count is None:
        node_count = [0]
    for name, node in tree.items():
        if node_count[0] >= max_nodes:
            tn.add_leaf(f"[dim]… truncated ({max_nodes} nodes max)[/]")
            return
        if depth >= max_depth:
            tn.add_leaf(f"[dim]{name} …[/]")
            continue
        node_count[0] += 1
        child_tn = tn.add(_node_label(name, node), expand=False)
        child_tn.data = (name, node)
        _populate_textual_tree(
            child_tn,
            node.dependents,
            depth=depth + 1,
            max_depth=max_depth,
            max_nodes=max_nodes,
            node_count=node_count,
        )


def _expand_to_depth(tn: TreeNode, depth: int, current: int = 0) -> None:
    """Expand tree nodes up to given depth (0 = root only)."""
    if current >= depth:
        return
    tn.expand()
    for child in tn.children:
        _expand_to_depth(child, depth, current + 1)


class SearchScreen(ModalScreen[str | None]):
    """Modal to search for packages in the tree. Keyboard-only."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = """
    SearchScreen {
        align: center middle;
        padding: 2 4;
    }
    SearchScreen #search_title {
        text-align: center;
        padding-bottom: 1;
    }
    SearchScreen #search_input {
        width: 60;
        margin: 1 0;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(
                "[bold cyan]Search[/]\n\n"
                "Type a package name or partial match to find in the tree.",
                id="search_title",
                markup=True,
            )
            yield Input(placeholder="package name...", id="search_input")
            yield Static(
                "[dim]Enter[/] = Search  ·  [dim]Escape[/] = Cancel  ·  "
                "[dim]n[/]/[dim]N[/] = next/previous match",
                markup=True,
            )

    def on_mount(self) -> None:
        self.query_one("#search_input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        self.dismiss(value if value else None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class DependentsApp(App[None]):
    """Terminal UI to explore which packages depend on a package."""

    TITLE = "revtree"
    BINDINGS = [
        Binding("escape", "back", "Back", show=True),
        Binding("b", "back", "Back", show=False),
        Binding("/", "search", "Search"),
        Binding("n", "next_match", "Next match", show=False),
        Binding("N", "prev_match", "Prev match", show=False),
        Binding("d", "toggle_details", "Details"),
        Binding("r", "refresh", "Refresh"),
        Binding("e", "expand_all", "Expand all"),
        Binding("c", "collapse_all", "Collapse"),
        Binding("q", "quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #details {
        padding: 1 2;
        border: solid $primary;
        height: auto;
        min-height: 8;
    }
    """

    def __init__(
        self,
        root_package: str | None = None,
        *,
        extra_source_roots: list[Path] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._root_package = root_package
        self._extra_source_roots = list(extra_source_roots or [])
        self._index: PackageIndex | None = None
        self._search_matches: list[TreeNode] = []
        self._search_index = 0
        self._details_visible = True

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        with Container(id="main_container"):
            yield Tree("Loading packages...", id="dep_tree")
            yield Static("[dim]Scanning for package.json files...[/]", id="details")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = "Dependent Tree Explorer"
        self._start_index_load()

    def _start_index_load(self) -> None:
        self._index = None
        self.run_worker(self._load_index_worker, thread=True)

    def _load_index_worker(self) -> PackageIndex:
        return load_index(extra_source_roots=self._extra_source_roots or None)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.SUCCESS:
            self._index = event.worker.result
            if self._root_package:
                self._load_tree(self._root_package)
            else:
                self._load_package_list()
        elif event.state == WorkerState.ERROR:
            self._set_details(f"[red]Error loading packages: {event.worker.error!s}[/]")

    def _tree(self) -> Tree:
        return self.query_one("#dep_tree", Tree)

    def _clear_tree(self) -> Tree:
        tree = self._tree()
        tree.clear()
        return tree

    def _load_package_list(self) -> None:
        tree = self._clear_tree()
        index = self._index
        if index is None or not len(index):
            tree.root.set_label(f"[{COLOR_HEADER}]No packages[/]")
            self._set_details(f"No packages found. Set {MANIFEST_PATH_ENV} or pass -s PATH.")
            return
        tree.root.set_label(f"[{COLOR_HEADER}]Packages ({len(index)})[/]")
        for name in index.names():
            record = index[name]
            child = tree.root.add_leaf(
                f"[{COLOR_PKG}]{name}[/] [dim]v{record.version}[/] "
                f"[{COLOR_STATS}]{len(record.dependents)}[/]"
            )
            child.data = name
        tree.root.expand()
        self._set_details(
            f"[{COLOR_HEADER}]Package list[/]\n\n"
            f"Total: [{COLOR_STATS}]{len(index)}[/] packages\n\n"
            "[dim]↑/↓[/] move  ·  [dim]Enter[/] on a package = show dependents  ·  "
            "[dim]Esc[/]/[dim]b[/] = Back"
        )
        tree.focus()

    def _load_tree(self, root_package: str) -> None:
        if self._index is None:
            return
        try:
            dependents = _build_tui_tree(self._index, root_package)
        except PackageNotFoundError as e:
            self._set_details(f"[red]{e!s}[/]")
            return
        self._root_package = root_package
        record = self._index[root_package]
        tree = self._clear_tree()
        tree.root.set_label(f"[{COLOR_HEADER}]{root_package}[/] [dim]v{record.version}[/]")
        tree.root.data = None
        _populate_textual_tree(tree.root, dependents)
        _expand_to_depth(tree.root, EXPAND_DEPTH_DEFAULT)
        self._set_details(
            f"[{COLOR_HEADER}]{root_package}[/]  [dim]v{record.version}[/]\n\n"
            f"  Direct dependents:  [{COLOR_STATS}]{len(dependents)}[/]\n"
            f"  Tree nodes:         [{COLOR_STATS}]{_count_nodes(dependents)}[/]\n\n"
            f"[{COLOR_PATH}]{record.manifest.path or '(in memory)'}[/]"
        )
        tree.focus()

    def _format_node(self, name: str, node: DependentNode) -> str:
        direct, total_desc, max_depth = _node_stats(node)
        lines = [
            f"[{COLOR_HEADER}]Package[/]",
            f"  [{COLOR_PKG}]{name}[/]  [dim]v{node.version or '?'}[/]",
            "",
            f"[{COLOR_HEADER}]Declared as[/]",
            f"  {node.kind} [dim]{node.version_range}[/]",
            "",
            f"[{COLOR_HEADER}]Stats[/]",
            f"  Direct dependents:    [{COLOR_STATS}]{direct}[/]",
            f"  Total descendants:    [{COLOR_STATS}]{total_desc}[/]",
            f"  Max depth from here:  [{COLOR_STATS}]{max_depth}[/] [dim]levels[/]",
        ]
        if node.cycle:
            lines += ["", "[red]Circular dependency: expansion stopped here[/]"]
        return "\n".join(lines)

    def _set_details(self, text: str) -> None:
        self.query_one("#details", Static).update(text)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        data = event.node.data
        if isinstance(data, str):
            self._load_tree(data)
        elif isinstance(data, tuple):
            self._set_details(self._format_node(*data))

    def action_back(self) -> None:
        """Return to the package list (only when viewing a tree)."""
        if not self._root_package or self._index is None:
            return
        self._root_package = None
        self._load_package_list()

    def action_refresh(self) -> None:
        self._clear_tree().root.set_label("Loading packages...")
        self._start_index_load()

    def action_expand_all(self) -> None:
        self._tree().root.expand_all()

    def action_collapse_all(self) -> None:
        root = self._tree().root
        root.collapse_all()
        root.expand()

    def action_search(self) -> None:
        self.push_screen(SearchScreen(), self._on_search_done)

    def _on_search_done(self, query: str | None) -> None:
        if not query:
            return
        self._search_matches = []
        self._search_index = 0
        self._collect_matches(self._tree().root, query.lower())
        if not self._search_matches:
            self.notify(f"No matches for '{query}'", severity="warning", timeout=2)
            return
        self._goto_match(0)

    def _collect_matches(self, node: TreeNode, query: str) -> None:
        """Recursively collect nodes whose label matches the search query."""
        if query in str(node.label).lower():
            self._search_matches.append(node)
        for child in node.children:
            self._collect_matches(child, query)

    def _goto_match(self, index: int) -> None:
        if not self._search_matches:
            return
        self._search_index = index % len(self._search_matches)
        match_node = self._search_matches[self._search_index]
        parent = match_node.parent
        while parent is not None:
            parent.expand()
            parent = parent.parent
        tree = self._tree()
        tree.select_node(match_node)
        tree.scroll_to_node(match_node)
        self.notify(
            f"Match {self._search_index + 1}/{len(self._search_matches)}",
            severity="information",
            timeout=2,
        )

    def action_next_match(self) -> None:
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index + 1)

    def action_prev_match(self) -> None:
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index - 1)

    def action_toggle_details(self) -> None:
        self._details_visible = not self._details_visible
        details = self.query_one("#details", Static)
        details.styles.display = "block" if self._details_visible else "none"


def main() -> None:
    """Entry point for the revtree TUI."""
    root = sys.argv[1].strip() if len(sys.argv) > 1 else None
    DependentsApp(root_package=root).run()


if __name__ == "__main__":
    main()
