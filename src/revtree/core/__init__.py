"""Core library: manifest loading, package index, dependent graph and tree building."""

from revtree.core.errors import (
    IndexNotPopulatedError,
    InvalidEdgeError,
    InvalidManifestError,
    PackageNotFoundError,
    RevtreeError,
)
from revtree.core.finder import list_manifest_paths, load_manifests
from revtree.core.index import (
    DependencyEdge,
    PackageIndex,
    PackageRecord,
    build_index,
    for_each_package,
    populate_dependents,
)
from revtree.core.manifest import DEPENDENCY_KINDS, Manifest, parse_manifest_file
from revtree.core.tree import DependentNode, get_dependent_tree, tree_to_dict

__all__ = [
    "DEPENDENCY_KINDS",
    "DependencyEdge",
    "DependentNode",
    "IndexNotPopulatedError",
    "InvalidEdgeError",
    "InvalidManifestError",
    "Manifest",
    "PackageIndex",
    "PackageNotFoundError",
    "PackageRecord",
    "RevtreeError",
    "build_index",
    "for_each_package",
    "get_dependent_tree",
    "list_manifest_paths",
    "load_manifests",
    "parse_manifest_file",
    "populate_dependents",
    "tree_to_dict",
]
