"""Parse package.json manifests into typed records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from revtree.core.errors import InvalidManifestError
from revtree.logging_config import get_logger

log = get_logger(__name__)

# Buckets that declare a dependency on another package, in processing order.
# When one package lists the same dependency in several buckets the last one wins.
DEPENDENCY_KINDS = ("dependencies", "devDependencies", "peerDependencies")


def _normalize_bucket(name: str, kind: str, value: Any) -> dict[str, str]:
    """Return a {dependency: range} dict, dropping anything that is not a usable range."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        log.debug("bucket_ignored", package=name, kind=kind, reason="not a mapping")
        return {}
    bucket: dict[str, str] = {}
    for dep, version_range in value.items():
        if not isinstance(dep, str) or not dep:
            continue
        if not isinstance(version_range, str) or not version_range.strip():
            log.debug(
                "dependency_range_ignored",
                package=name,
                kind=kind,
                dependency=dep,
                version_range=version_range,
            )
            continue
        bucket[dep] = version_range
    return bucket


@dataclass(frozen=True)
class Manifest:
    """The parts of a package.json that matter for the dependent graph."""

    name: str
    version: str
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    peer_dependencies: dict[str, str] = field(default_factory=dict)
    description: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)
    path: Path | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidManifestError(f"manifest has no name (version={self.version!r})")
        if not isinstance(self.version, str) or not self.version.strip():
            raise InvalidManifestError(f"manifest {self.name!r} has no version")

    def bucket(self, kind: str) -> dict[str, str]:
        """Return the dependency mapping for one of DEPENDENCY_KINDS."""
        if kind == "dependencies":
            return self.dependencies
        if kind == "devDependencies":
            return self.dev_dependencies
        if kind == "peerDependencies":
            return self.peer_dependencies
        raise KeyError(kind)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, path: Path | None = None) -> Manifest:
        """
        Build a Manifest from a decoded package.json document.

        Raises InvalidManifestError if the document is not an object or lacks
        a non-empty string name or version. Malformed dependency buckets are
        treated as empty rather than rejected.
        """
        if not isinstance(data, Mapping):
            raise InvalidManifestError(f"manifest must be an object, got {type(data).__name__}")
        name = data.get("name")
        version = data.get("version")
        if not isinstance(name, str) or not name.strip():
            raise InvalidManifestError(f"manifest has no name (path={path})")
        if not isinstance(version, str) or not version.strip():
            raise InvalidManifestError(f"manifest {name!r} has no version (path={path})")
        name = name.strip()
        description = data.get("description")
        return cls(
            name=name,
            version=version.strip(),
            dependencies=_normalize_bucket(name, "dependencies", data.get("dependencies")),
            dev_dependencies=_normalize_bucket(name, "devDependencies", data.get("devDependencies")),
            peer_dependencies=_normalize_bucket(
                name, "peerDependencies", data.get("peerDependencies")
            ),
            description=description.strip() if isinstance(description, str) else "",
            raw=data,
            path=path.resolve() if path is not None else None,
        )


def parse_manifest_file(path: Path) -> Manifest | None:
    """
    Read and parse a package.json file.

    Returns None if the file cannot be read, is not valid JSON, or has no
    name/version. The reason is reported as a debug event.
    """
    if not path.exists() or not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.debug("manifest_unreadable", path=str(path), error=str(e))
        return None
    try:
        manifest = Manifest.from_dict(data, path=path)
    except InvalidManifestError as e:
        log.debug("manifest_skipped", path=str(path), reason=str(e))
        return None
    log.debug("manifest_loaded", path=str(path), package=manifest.name)
    return manifest
