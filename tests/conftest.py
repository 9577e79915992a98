"""Shared fixtures for revtree tests."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from unittest import mock

import pytest
import structlog


def _write_manifest(directory: Path, **fields: object) -> Path:
    """Write a package.json with the given fields into directory and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(fields))
    return path


@pytest.fixture(autouse=True)
def _clean_manifest_env():
    """Keep a developer's REVTREE_MANIFEST_PATH out of the tests."""
    with mock.patch.dict(os.environ, {"REVTREE_MANIFEST_PATH": ""}, clear=False):
        yield


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A small monorepo: a <- b (dependencies), b <- c (devDependencies), x <-> y cycle."""
    root = tmp_path / "ws"
    _write_manifest(root / "packages" / "a", name="a", version="1.0")
    _write_manifest(
        root / "packages" / "b", name="b", version="1.0", dependencies={"a": "^1.0"}
    )
    _write_manifest(
        root / "packages" / "c", name="c", version="1.0", devDependencies={"b": "^1.0"}
    )
    _write_manifest(root / "packages" / "x", name="x", version="1.0", dependencies={"y": "^1"})
    _write_manifest(root / "packages" / "y", name="y", version="1.0", dependencies={"x": "^1"})
    return root


@pytest.fixture
def write_manifest():
    """Helper that writes a package.json: write_manifest(directory, name=..., version=...)."""
    return _write_manifest


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo configure_logging() calls made by CLI tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("revtree").setLevel(logging.NOTSET)
    structlog.reset_defaults()
