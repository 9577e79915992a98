"""Build and represent dependent (reverse dependency) trees."""

from __future__ import annotations

from dataclasses import dataclass, field

from revtree.core.errors import IndexNotPopulatedError, PackageNotFoundError
from revtree.core.index import PackageIndex, PackageRecord
from revtree.logging_config import get_logger

log = get_logger(__name__)


@dataclass
class DependentNode:
    """A node in the dependent tree: how one package depends on its parent."""

    kind: str
    version_range: str
    dependents: dict[str, DependentNode] = field(default_factory=dict)
    # Display only: the dependent's own version, and whether the cycle guard cut it off
    version: str = ""
    cycle: bool = False

    def to_dict(self) -> dict:
        """Serialize node to a JSON-friendly dict."""
        return {
            "kind": self.kind,
            "versionRange": self.version_range,
            "dependents": tree_to_dict(self.dependents),
        }


DependentTree = dict[str, DependentNode]


def tree_to_dict(tree: DependentTree) -> dict:
    """Serialize a {name: DependentNode} mapping to nested dicts."""
    result: dict = {}
    stack: list[tuple[DependentTree, dict]] = [(tree, result)]
    while stack:
        nodes, out = stack.pop()
        for name, node in nodes.items():
            children: dict = {}
            out[name] = {
                "kind": node.kind,
                "versionRange": node.version_range,
                "dependents": children,
            }
            stack.append((node.dependents, children))
    return result


def _build_tree(
    root: PackageRecord,
    tree: DependentTree,
    max_depth: int | None,
) -> None:
    """
    Expand root's dependents into tree, depth-first and pre-order.

    Each stack frame is (record, output mapping, path to record, node that owns
    the mapping). A record already on its own path is not expanded and its node
    is flagged as a cycle.
    """
    stack: list[tuple[PackageRecord, DependentTree, list[str], DependentNode | None]] = [
        (root, tree, [root.name], None)
    ]
    while stack:
        record, out, path, owner = stack.pop()
        if path.count(record.name) > 1:
            log.warning("circular_dependency", package=record.name, path=path)
            if owner is not None:
                owner.cycle = True
            continue
        log.debug("expanding_dependents", package=record.name, path=path)
        if max_depth is not None and len(path) > max_depth:
            continue

        frames = []
        for dependent_name, edge in record.iter_dependents():
            node = DependentNode(
                kind=edge.kind,
                version_range=edge.version_range,
                version=edge.target.version,
            )
            out[dependent_name] = node
            frames.append((edge.target, node.dependents, [*path, dependent_name], node))
        # Reversed so the first dependent is expanded first
        stack.extend(reversed(frames))


def get_dependent_tree(
    index: PackageIndex,
    root_name: str,
    *,
    max_depth: int | None = None,
) -> DependentTree:
    """
    Build the tree of every package that (transitively) depends on root_name.

    Expansion is depth-first. A package that would appear a second time on
    the same path is kept as a leaf with cycle=True and a circular_dependency
    warning is logged, so the result is finite even if the graph has cycles.

    Args:
        index: A populated PackageIndex.
        root_name: Name of the package whose dependents are wanted.
        max_depth: Optional number of dependent levels to expand; None = unlimited.

    Returns:
        Mapping of direct dependent name -> DependentNode.

    Raises:
        PackageNotFoundError: root_name is not in the index.
        IndexNotPopulatedError: populate_dependents() has not run on index.
    """
    if not index.populated:
        raise IndexNotPopulatedError("populate_dependents() must run before querying trees")
    record = index.get(root_name)
    if record is None:
        log.error("package_not_found", package=root_name)
        raise PackageNotFoundError(root_name)
    log.debug("building_dependent_tree", package=root_name, version=record.version)
    tree: DependentTree = {}
    _build_tree(record, tree, max_depth)
    return tree
