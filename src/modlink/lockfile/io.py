"""Lock graph and package descriptor parsers."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from modlink.errors import LockfileError
from modlink.lockfile.model import MAX_LOCK_DEPTH, LockNode
from modlink.models import PackageInfo

LOCK_FILENAME = "cortex-shrinkwrap.json"
PACKAGE_FILENAME = "cortex.json"


def parse_lock_graph(raw: str) -> LockNode:
    payload = _load_json(raw, what="lock graph")
    return lock_from_mapping(payload)


def read_lock_graph(path: str | Path) -> LockNode:
    lock_path = Path(path)
    try:
        raw = lock_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LockfileError(
            "Lock graph does not exist.",
            hint=f"Install dependencies so that {LOCK_FILENAME} is generated.",
            context={"path": str(lock_path)},
        ) from exc
    return parse_lock_graph(raw)


def lock_from_mapping(payload: Any, *, name: str | None = None) -> LockNode:
    """Build a :class:`LockNode` tree from the decoded shrinkwrap payload.

    Child entries are keyed by package name and carry no ``name`` field of their
    own, so the key is passed down as *name*.
    """
    return _node_from_mapping(payload, name=name, depth=0)


def parse_package(raw: str) -> PackageInfo:
    payload = _load_json(raw, what="package descriptor")
    if not isinstance(payload, dict):
        raise LockfileError("Invalid package descriptor payload type.")
    name = _required_str(payload, "name", what="package descriptor")
    version = payload.get("version", "")
    if not isinstance(version, str):
        raise LockfileError("Invalid package descriptor `version` value.")
    return PackageInfo(name=name, version=version)


def read_package(path: str | Path) -> PackageInfo:
    package_path = Path(path)
    try:
        raw = package_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LockfileError(
            "Package descriptor does not exist.",
            context={"path": str(package_path)},
        ) from exc
    return parse_package(raw)


def build_loader_graph(lock: LockNode) -> dict[str, dict[str, str]]:
    """Derive the client loader graph: ``{"name@version": {dep: dep_version}}``."""
    graph: dict[str, dict[str, str]] = {}
    stack = [lock]
    while stack:
        node = stack.pop()
        if node.id in graph:
            continue
        graph[node.id] = {dep.name: dep.version for dep in node.iter_dependencies()}
        stack.extend(node.iter_dependencies())
    return dict(sorted(graph.items()))


def _node_from_mapping(payload: Any, *, name: str | None, depth: int) -> LockNode:
    if depth > MAX_LOCK_DEPTH:
        raise LockfileError(
            "Lock graph is nested too deeply.",
            hint="Regenerate the lock graph; it is probably malformed.",
            context={"package": name or "", "max_depth": str(MAX_LOCK_DEPTH)},
        )
    if not isinstance(payload, Mapping):
        raise LockfileError("Invalid lock graph node.", context={"package": name or ""})

    node_name = payload.get("name", name)
    if not isinstance(node_name, str) or not node_name:
        raise LockfileError("Lock graph node has no package name.")
    version = payload.get("version")
    if not isinstance(version, str) or not version:
        raise LockfileError(
            "Invalid lock graph `version` value.",
            context={"package": node_name},
        )

    dependencies_raw = payload.get("dependencies") or {}
    if not isinstance(dependencies_raw, Mapping):
        raise LockfileError(
            "Invalid lock graph `dependencies` value.",
            context={"package": node_name},
        )
    dependencies = {
        str(dep_name): _node_from_mapping(dep_payload, name=str(dep_name), depth=depth + 1)
        for dep_name, dep_payload in dependencies_raw.items()
    }
    return LockNode(
        name=node_name,
        version=version,
        dependencies=dependencies,
        engines=_parse_engines(payload.get("engines"), package=node_name),
    )


def _parse_engines(value: Any, *, package: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise LockfileError("Invalid lock graph `engines` value.", context={"package": package})
    engines: dict[str, str] = {}
    for engine_name, spec in value.items():
        version = spec.get("version") if isinstance(spec, Mapping) else spec
        if not isinstance(version, str) or not version:
            raise LockfileError(
                "Invalid engine entry in lock graph.",
                context={"package": package, "engine": str(engine_name)},
            )
        engines[str(engine_name)] = version
    return engines


def _load_json(raw: str, *, what: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LockfileError(f"Invalid {what} JSON.", hint=str(exc)) from exc


def _required_str(payload: dict[str, Any], key: str, *, what: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise LockfileError(f"Invalid {what} `{key}` value.")
    return value
