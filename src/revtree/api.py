"""Public API: use revtree from Python or from other tools."""

from __future__ import annotations

from pathlib import Path

from revtree.core.finder import find_manifest_path, load_manifests
from revtree.core.index import PackageIndex
from revtree.core.manifest import Manifest, parse_manifest_file
from revtree.core.tree import DependentTree, get_dependent_tree


def load_index(
    *,
    extra_source_roots: list[Path] | None = None,
) -> PackageIndex:
    """
    Load every discoverable manifest and return a populated PackageIndex.

    Manifests are read from REVTREE_MANIFEST_PATH and the optional
    extra_source_roots.
    """
    return PackageIndex.from_manifests(load_manifests(extra_source_roots=extra_source_roots))


def list_known_packages(
    *,
    extra_source_roots: list[Path] | None = None,
) -> dict[str, Path]:
    """
    List all packages visible from the configured source roots.

    Returns a mapping from package name to the path of its manifest. When two
    manifests share a name the later one wins, as in the index.
    """
    result: dict[str, Path] = {}
    for manifest in load_manifests(extra_source_roots=extra_source_roots):
        if manifest.path is not None:
            result[manifest.name] = manifest.path
    return dict(sorted(result.items()))


def get_package_info(
    package_name: str,
    *,
    extra_source_roots: list[Path] | None = None,
) -> Manifest | None:
    """
    Get the parsed manifest of a package by name.

    Returns None if the package is not found.
    """
    path = find_manifest_path(package_name, extra_source_roots=extra_source_roots)
    if path is None:
        return None
    return parse_manifest_file(path)


def build_dependent_tree(
    root_package: str,
    *,
    max_depth: int | None = None,
    extra_source_roots: list[Path] | None = None,
    index: PackageIndex | None = None,
) -> DependentTree:
    """
    Build the tree of packages that depend on root_package.

    Args:
        root_package: Name of the root package.
        max_depth: Optional maximum depth; None = unlimited.
        extra_source_roots: Optional list of Paths to scan for manifests.
        index: Reuse an already loaded index instead of scanning again.

    Returns:
        Mapping of dependent name -> DependentNode.

    Raises:
        PackageNotFoundError: root_package is not among the loaded manifests.
    """
    if index is None:
        index = load_index(extra_source_roots=extra_source_roots)
    return get_dependent_tree(index, root_package, max_depth=max_depth)
