"""revtree: explore which packages depend on a package (library, TUI, CLI)."""

import logging
from importlib.metadata import version, PackageNotFoundError

from revtree.api import (
    build_dependent_tree,
    get_package_info,
    list_known_packages,
    load_index,
)
from revtree.core import (
    DependentNode,
    PackageIndex,
    build_index,
    get_dependent_tree,
    populate_dependents,
)
from revtree.logging_config import LOGGER_NAMESPACE

__all__ = [
    "build_dependent_tree",
    "build_index",
    "get_dependent_tree",
    "get_package_info",
    "list_known_packages",
    "load_index",
    "populate_dependents",
    "DependentNode",
    "PackageIndex",
    "__version__",
]

# Silent unless the application configures logging
logging.getLogger(LOGGER_NAMESPACE).addHandler(logging.NullHandler())

try:
    __version__ = version("revtree")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed as package
