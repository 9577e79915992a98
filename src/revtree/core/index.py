"""In-memory package index and the reverse-dependency (dependent) graph built on it."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from revtree.core.errors import InvalidEdgeError, InvalidManifestError
from revtree.core.manifest import DEPENDENCY_KINDS, Manifest
from revtree.logging_config import get_logger

log = get_logger(__name__)


@dataclass(eq=False)
class PackageRecord:
    """One indexed package and the packages that depend on it."""

    name: str
    version: str
    manifest: Manifest
    dependents: dict[str, DependencyEdge] = field(default_factory=dict, repr=False)

    @classmethod
    def from_manifest(cls, manifest: Manifest) -> PackageRecord:
        return cls(name=manifest.name, version=manifest.version, manifest=manifest)

    def add_dependent(self, dependent_name: str, edge: DependencyEdge) -> None:
        """Register (or replace) the edge from dependent_name onto this package."""
        self.dependents[dependent_name] = edge

    def iter_dependents(self) -> Iterator[tuple[str, DependencyEdge]]:
        """Yield (dependent name, edge) pairs in registration order."""
        yield from self.dependents.items()


@dataclass(frozen=True)
class DependencyEdge:
    """
    Reverse edge stored on the depended-upon package.

    target is the package that declares the dependency (the dependent).
    """

    kind: str
    version_range: str
    target: PackageRecord = field(repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.kind not in DEPENDENCY_KINDS:
            raise InvalidEdgeError(f"unknown dependency kind: {self.kind!r}")
        if not self.version_range:
            raise InvalidEdgeError(
                f"empty version range for dependent {self.target.name!r} ({self.kind})"
            )


class PackageIndex:
    """
    Mapping from package name to PackageRecord.

    Built once by build_index(); reverse edges are added once by
    populate_dependents(). Treat as read-only afterwards.
    """

    def __init__(self, records: Mapping[str, PackageRecord] | None = None) -> None:
        self._records: dict[str, PackageRecord] = dict(records or {})
        self._populated = False

    @classmethod
    def from_manifests(cls, manifests: Iterable[Manifest | Mapping[str, Any]]) -> PackageIndex:
        """Build the index and populate its dependents in one step."""
        index = build_index(manifests)
        populate_dependents(index)
        return index

    @property
    def populated(self) -> bool:
        return self._populated

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __getitem__(self, name: str) -> PackageRecord:
        return self._records[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"PackageIndex({len(self._records)} packages, populated={self._populated})"

    def get(self, name: str) -> PackageRecord | None:
        return self._records.get(name)

    def names(self) -> list[str]:
        """Sorted package names."""
        return sorted(self._records)

    def for_each_package(self, visit: Callable[[PackageRecord, str], None]) -> None:
        for name, record in list(self._records.items()):
            visit(record, name)

    def get_dependent_tree(self, root_name: str, *, max_depth: int | None = None) -> dict:
        from revtree.core.tree import get_dependent_tree

        return get_dependent_tree(self, root_name, max_depth=max_depth)

    def _put(self, record: PackageRecord) -> None:
        previous = self._records.get(record.name)
        if previous is not None:
            log.debug(
                "package_replaced",
                package=record.name,
                old_version=previous.version,
                new_version=record.version,
            )
        self._records[record.name] = record


def build_index(manifests: Iterable[Manifest | Mapping[str, Any]]) -> PackageIndex:
    """
    Build a PackageIndex from manifest records.

    Accepts Manifest objects or raw package.json mappings. Records without a
    name or version are skipped (debug event, no exception). On a name
    collision the later record replaces the earlier one.
    """
    index = PackageIndex()
    skipped = 0
    for item in manifests:
        if isinstance(item, Manifest):
            manifest = item
        else:
            try:
                manifest = Manifest.from_dict(item)
            except InvalidManifestError as e:
                skipped += 1
                log.debug("manifest_skipped", reason=str(e))
                continue
        index._put(PackageRecord.from_manifest(manifest))
    log.debug("index_built", packages=len(index), skipped=skipped)
    return index


def _add_dependents_to_package(
    index: PackageIndex,
    record: PackageRecord,
    bucket: Mapping[str, str],
    kind: str,
) -> int:
    # record depends on each entry of bucket, so record is a dependent of that entry.
    added = 0
    for dependency_name, version_range in bucket.items():
        dependency = index.get(dependency_name)
        if dependency is None:
            continue
        dependency.add_dependent(
            record.name,
            DependencyEdge(kind=kind, version_range=version_range, target=record),
        )
        added += 1
    return added


def populate_dependents(index: PackageIndex) -> None:
    """
    Register a reverse edge for every declared dependency present in the index.

    Buckets are processed in DEPENDENCY_KINDS order, so if a package lists the
    same dependency in several buckets the edge from peerDependencies wins over
    devDependencies, which wins over dependencies. Dependencies on packages
    outside the index are ignored. Calling this twice is a no-op.
    """
    if index.populated:
        log.debug("dependents_already_populated", packages=len(index))
        return
    edges = 0

    def _visit(record: PackageRecord, _name: str) -> None:
        nonlocal edges
        for kind in DEPENDENCY_KINDS:
            edges += _add_dependents_to_package(index, record, record.manifest.bucket(kind), kind)

    index.for_each_package(_visit)
    index._populated = True
    log.debug("dependents_populated", packages=len(index), edges=edges)


def for_each_package(index: PackageIndex, visit: Callable[[PackageRecord, str], None]) -> None:
    """Call visit(record, name) for every package in the index."""
    index.for_each_package(visit)
