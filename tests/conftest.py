"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from modlink import CompilerOptions, LockNode, PackageInfo, TemplateCompiler
from modlink.lockfile import lock_from_mapping

LOCK_PAYLOAD: dict[str, Any] = {
    "name": "foo",
    "version": "0.2.0",
    "dependencies": {
        "bar": {
            "version": "1.0.0",
            "dependencies": {"baz": {"version": "2.1.0"}},
        },
        "baz": {"version": "2.0.0"},
        "lib": {"version": "1.0.0"},
        "neuron": {"version": "4.2.1"},
    },
    "engines": {"neuron": {"version": "4.2.1"}},
}

TEMPLATE_PATH = "views/index.html"


@pytest.fixture
def pkg() -> PackageInfo:
    return PackageInfo(name="foo", version="0.2.0")


@pytest.fixture
def lock() -> LockNode:
    return lock_from_mapping(LOCK_PAYLOAD)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with cortex.json, the shrinkwrap lock and one template."""
    (tmp_path / "cortex.json").write_text(
        json.dumps({"name": "foo", "version": "0.2.0"}), encoding="utf-8"
    )
    (tmp_path / "cortex-shrinkwrap.json").write_text(json.dumps(LOCK_PAYLOAD), encoding="utf-8")
    template = tmp_path / TEMPLATE_PATH
    template.parent.mkdir(parents=True)
    template.write_text("{{ facade() }}\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def make_compiler(
    project: Path, pkg: PackageInfo, lock: LockNode
) -> Callable[..., TemplateCompiler]:
    """Build a compiler for ``views/index.html`` with option overrides."""

    def _make(*, environ: dict[str, str] | None = None, **overrides: Any) -> TemplateCompiler:
        values: dict[str, Any] = {
            "pkg": pkg,
            "lock": lock,
            "cwd": project,
            "path": TEMPLATE_PATH,
            "mod_root": "/mod",
        }
        values.update(overrides)
        return TemplateCompiler(options=CompilerOptions(**values), environ=environ or {})

    return _make


@pytest.fixture
def write_manifest() -> Callable[..., Path]:
    """Write ``<root>/<name>/<version>/md5.json``."""

    def _write(root: Path, name: str, version: str, files: dict[str, str]) -> Path:
        path = root / name / version / "md5.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(files), encoding="utf-8")
        return path

    return _write
