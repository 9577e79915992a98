"""Command-line interface for revtree: list packages, show dependent trees, export graphs."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from revtree.api import list_known_packages, load_index
from revtree.core.errors import PackageNotFoundError
from revtree.core.finder import MANIFEST_PATH_ENV
from revtree.core.tree import DependentNode, DependentTree, get_dependent_tree, tree_to_dict
from revtree.logging_config import configure_logging

NO_PACKAGES_HINT = f"No packages found. Set {MANIFEST_PATH_ENV} or pass -s PATH."


def _extra_roots(args: argparse.Namespace) -> list[Path] | None:
    return [Path(p) for p in args.source] if args.source else None


def _print_tree_text(tree: DependentTree, prefix: str = "") -> None:
    """Print a dependent tree as indented text below an already printed root line."""

    def _frames(nodes: DependentTree, pad: str) -> list[tuple[str, str, DependentNode, bool]]:
        items = list(nodes.items())
        return [
            (pad, name, node, i == len(items) - 1) for i, (name, node) in enumerate(items)
        ][::-1]

    stack = _frames(tree, prefix)
    while stack:
        pad, name, node, is_last = stack.pop()
        marker = "└── " if is_last else "├── "
        version = f"@{node.version}" if node.version else ""
        cycle = " [cycle]" if node.cycle else ""
        print(f"{pad}{marker}{name}{version} ({node.kind} {node.version_range}){cycle}")
        stack.extend(_frames(node.dependents, pad + ("    " if is_last else "│   ")))


def cmd_list(args: argparse.Namespace) -> int:
    """List known packages."""
    if args.json or args.verbose_list:
        packages = list_known_packages(extra_source_roots=_extra_roots(args))
        if args.json:
            print(json.dumps({name: str(path) for name, path in packages.items()}, indent=2))
            return 0
        if not packages:
            print(NO_PACKAGES_HINT)
            return 1
        print(f"Found {len(packages)} package(s):\n")
        for name, path in packages.items():
            print(f"  {name}: {path}")
        return 0

    index = load_index(extra_source_roots=_extra_roots(args))
    if not len(index):
        print(NO_PACKAGES_HINT)
        return 1
    print(f"Found {len(index)} package(s):\n")
    for name in index.names():
        record = index[name]
        print(f"  {name}@{record.version} ({len(record.dependents)} dependents)")
    return 0


def cmd_tree(args: argparse.Namespace) -> int:
    """Show the dependent tree for a package."""
    index = load_index(extra_source_roots=_extra_roots(args))
    try:
        tree = get_dependent_tree(index, args.package, max_depth=args.depth)
    except PackageNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(tree_to_dict(tree), indent=2))
    else:
        print(f"{args.package}@{index[args.package].version}")
        _print_tree_text(tree)
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the interactive TUI."""
    from revtree.tui.app import DependentsApp

    app = DependentsApp(
        root_package=getattr(args, "package", None),
        extra_source_roots=_extra_roots(args) if hasattr(args, "source") else None,
    )
    app.run()
    return 0


def _collect_edges(
    root: str,
    tree: DependentTree,
    edges: set[tuple[str, str, str]],
) -> None:
    """Collect (dependent, dependency, kind) edges from a dependent tree."""
    stack = [(root, tree)]
    while stack:
        parent, nodes = stack.pop()
        for name, node in nodes.items():
            edges.add((name, parent, node.kind))
            stack.append((name, node.dependents))


def _generate_dot(root: str, tree: DependentTree, title: str | None = None) -> str:
    """Generate DOT (Graphviz) format from a dependent tree."""
    edges: set[tuple[str, str, str]] = set()
    _collect_edges(root, tree, edges)

    lines = [
        "digraph dependents {",
        "    rankdir=RL;",
        '    node [shape=box, style=rounded, fontname="sans-serif"];',
    ]
    if title:
        lines.insert(1, f'    label="{title}";')
        lines.insert(2, "    labelloc=t;")

    lines.append(f'    "{root}" [style="rounded,filled", fillcolor=lightblue];')
    for dependent, dependency, kind in sorted(edges):
        style = "" if kind == "dependencies" else ", style=dashed"
        lines.append(f'    "{dependent}" -> "{dependency}" [label="{kind}"{style}];')

    lines.append("}")
    return "\n".join(lines)


def _mermaid_id(name: str) -> str:
    """Convert a package name to a valid Mermaid node ID."""
    return name.replace("@", "").replace("/", "_").replace("-", "_").replace(".", "_")


def _generate_mermaid(root: str, tree: DependentTree, title: str | None = None) -> str:
    """Generate Mermaid format from a dependent tree."""
    edges: set[tuple[str, str, str]] = set()
    _collect_edges(root, tree, edges)

    lines = ["graph RL"]
    if title:
        lines[0] = f"---\ntitle: {title}\n---\ngraph RL"

    lines.append(f'    {_mermaid_id(root)}["{root}"]')
    lines.append(f"    style {_mermaid_id(root)} fill:#lightblue")
    for dependent, dependency, kind in sorted(edges):
        arrow = "-->" if kind == "dependencies" else "-.->"
        lines.append(
            f'    {_mermaid_id(dependent)}["{dependent}"] {arrow}|{kind}| '
            f'{_mermaid_id(dependency)}["{dependency}"]'
        )

    return "\n".join(lines)


def cmd_graph(args: argparse.Namespace) -> int:
    """Generate a dependent graph in DOT or Mermaid format."""
    index = load_index(extra_source_roots=_extra_roots(args))
    try:
        tree = get_dependent_tree(index, args.package, max_depth=args.depth)
    except PackageNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 1

    title = None if args.no_title else f"{args.package} dependents"
    if args.format == "mermaid":
        output = _generate_mermaid(args.package, tree, title=title)
    else:
        output = _generate_dot(args.package, tree, title=title)

    if args.output:
        Path(args.output).write_text(output)
        print(f"Graph written to: {args.output}", file=sys.stderr)
    else:
        print(output)
    return 0


def _add_source_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-s",
        "--source",
        action="append",
        metavar="PATH",
        help=f"Directory to scan for package.json files (can be repeated; adds to ${MANIFEST_PATH_ENV})",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the revtree CLI."""
    parser = argparse.ArgumentParser(
        prog="revtree",
        description="Explore which packages depend on a package.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug diagnostics on stderr",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit diagnostics as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # revtree list
    list_parser = subparsers.add_parser(
        "list",
        help="List known packages",
        description="List packages found under the configured source directories.",
    )
    _add_source_argument(list_parser)
    list_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose_list",
        help="Show manifest paths",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON (name -> manifest path)",
    )
    list_parser.set_defaults(func=cmd_list)

    # revtree tree
    tree_parser = subparsers.add_parser(
        "tree",
        help="Show dependent tree for a package",
        description="Build and display everything that (transitively) depends on a package.",
    )
    tree_parser.add_argument(
        "package",
        help="Package name to show dependents for",
    )
    tree_parser.add_argument(
        "-d",
        "--depth",
        type=int,
        default=None,
        help="Maximum tree depth (default: unlimited)",
    )
    _add_source_argument(tree_parser)
    tree_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    tree_parser.set_defaults(func=cmd_tree)

    # revtree graph
    graph_parser = subparsers.add_parser(
        "graph",
        help="Generate a dependent graph (DOT/Mermaid format)",
        description="Generate a visual graph of the packages depending on a package.",
    )
    graph_parser.add_argument(
        "package",
        help="Package name to graph",
    )
    graph_parser.add_argument(
        "-f",
        "--format",
        choices=["dot", "mermaid"],
        default="dot",
        help="Output format: dot (Graphviz) or mermaid (default: dot)",
    )
    graph_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )
    graph_parser.add_argument(
        "-d",
        "--depth",
        type=int,
        default=None,
        help="Maximum tree depth (default: unlimited)",
    )
    _add_source_argument(graph_parser)
    graph_parser.add_argument(
        "--no-title",
        action="store_true",
        help="Don't include a title in the graph",
    )
    graph_parser.set_defaults(func=cmd_graph)

    # revtree tui (default if no command)
    tui_parser = subparsers.add_parser(
        "tui",
        help="Launch the interactive terminal UI",
        description="Start the interactive TUI for browsing packages and their dependents.",
    )
    tui_parser.add_argument(
        "package",
        nargs="?",
        help="Optional: start with this package's dependent tree",
    )
    _add_source_argument(tui_parser)
    tui_parser.set_defaults(func=cmd_tui)

    args = parser.parse_args(argv)
    configure_logging(
        verbose=args.verbose,
        log_json=args.log_json,
        tui=args.command in (None, "tui"),
    )

    # Default to TUI if no command specified
    if args.command is None:
        return cmd_tui(argparse.Namespace(package=None, source=None))

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
