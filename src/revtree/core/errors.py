"""Exceptions raised by the revtree core."""

from __future__ import annotations


class RevtreeError(Exception):
    """Base class for all revtree failures."""


class InvalidManifestError(RevtreeError, ValueError):
    """A manifest record lacks a usable name or version."""


class InvalidEdgeError(RevtreeError, ValueError):
    """A dependency edge was built with an unknown kind or an empty version range."""


class PackageNotFoundError(RevtreeError, KeyError):
    """The requested package is not present in the index."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Package not found: {self.name}"


class IndexNotPopulatedError(RevtreeError, RuntimeError):
    """A tree was requested before populate_dependents() ran on the index."""
