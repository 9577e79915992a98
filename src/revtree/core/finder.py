"""Discover package.json manifests under configured source roots."""

from __future__ import annotations

import os
from pathlib import Path

from revtree.core.manifest import Manifest, parse_manifest_file
from revtree.logging_config import get_logger

log = get_logger(__name__)

# os.pathsep-separated list of directories to scan for manifests.
MANIFEST_PATH_ENV = "REVTREE_MANIFEST_PATH"
MANIFEST_FILENAME = "package.json"
# Directories never descended into while scanning.
_SKIP_DIRS = frozenset({"node_modules"})


def _env_paths(env_var: str) -> list[Path]:
    """Split an environment variable by os.pathsep and return existing Paths."""
    value = os.environ.get(env_var, "")
    if not value:
        return []
    return [Path(p).resolve() for p in value.split(os.pathsep) if p.strip() and Path(p).exists()]


def _gather_source_roots(extra_source_roots: list[Path] | None = None) -> list[Path]:
    """Collect source roots from the environment and optional extra roots. Deduplicated."""
    roots: list[Path] = _env_paths(MANIFEST_PATH_ENV)
    if extra_source_roots:
        for p in extra_source_roots:
            r = Path(p).expanduser().resolve()
            if r.exists() and r.is_dir():
                roots.append(r)
            else:
                log.debug("source_root_ignored", path=str(r))
    seen: set[Path] = set()
    out: list[Path] = []
    for root in roots:
        if root in seen or not root.is_dir():
            continue
        seen.add(root)
        out.append(root)
    return out


def _walk_manifests(root: Path) -> list[Path]:
    """Every package.json below root, skipping node_modules and hidden directories."""
    found: list[Path] = []
    for dirpath, dirs, files in os.walk(root, topdown=True):
        dirs[:] = sorted(d for d in dirs if d not in _SKIP_DIRS and not d.startswith("."))
        if MANIFEST_FILENAME in files:
            found.append(Path(dirpath) / MANIFEST_FILENAME)
    return found


def _flat_snapshot_manifests(root: Path) -> list[Path]:
    """*.json files directly inside root (a directory of saved manifests)."""
    try:
        return sorted(p for p in root.iterdir() if p.is_file() and p.suffix == ".json")
    except PermissionError:
        return []


def list_manifest_paths(*, extra_source_roots: list[Path] | None = None) -> list[Path]:
    """
    List manifest files under REVTREE_MANIFEST_PATH and extra_source_roots.

    Each root is searched recursively for package.json files. A root that
    contains none is treated as a flat snapshot directory and every *.json
    file directly inside it is returned instead.
    """
    paths: list[Path] = []
    for root in _gather_source_roots(extra_source_roots):
        try:
            found = _walk_manifests(root)
        except PermissionError:
            found = []
        if not found:
            found = _flat_snapshot_manifests(root)
        log.debug("source_root_scanned", root=str(root), manifests=len(found))
        paths.extend(found)
    return paths


def load_manifests(*, extra_source_roots: list[Path] | None = None) -> list[Manifest]:
    """Parse every discovered manifest, silently dropping the ones that fail to parse."""
    manifests: list[Manifest] = []
    for path in list_manifest_paths(extra_source_roots=extra_source_roots):
        manifest = parse_manifest_file(path)
        if manifest is not None:
            manifests.append(manifest)
    return manifests


def find_manifest_path(
    package_name: str,
    *,
    extra_source_roots: list[Path] | None = None,
) -> Path | None:
    """Return the manifest path for package_name, or None if it is not found."""
    match: Path | None = None
    for manifest in load_manifests(extra_source_roots=extra_source_roots):
        # Later manifests win, as in the index
        if manifest.name == package_name:
            match = manifest.path
    return match
