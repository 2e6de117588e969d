"""Lock graph model, loaders and version resolution."""

from .io import (
    LOCK_FILENAME,
    PACKAGE_FILENAME,
    build_loader_graph,
    lock_from_mapping,
    parse_lock_graph,
    parse_package,
    read_lock_graph,
    read_package,
)
from .model import MAX_LOCK_DEPTH, LockNode
from .resolve import WILDCARD_TAGS, VersionIndex, max_satisfying, parse_range

__all__ = [
    "LOCK_FILENAME",
    "MAX_LOCK_DEPTH",
    "PACKAGE_FILENAME",
    "LockNode",
    "VersionIndex",
    "WILDCARD_TAGS",
    "build_loader_graph",
    "lock_from_mapping",
    "max_satisfying",
    "parse_lock_graph",
    "parse_package",
    "parse_range",
    "read_lock_graph",
    "read_package",
]
