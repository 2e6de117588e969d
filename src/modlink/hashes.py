"""Content-hash manifests and cache-busting path rewriting."""

from __future__ import annotations

import json
import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

from modlink.lockfile.resolve import WILDCARD_TAGS, VersionIndex
from modlink.models import PackageInfo, PackageRef
from modlink.observability import StructuredLogger

MANIFEST_FILENAME = "md5.json"

HashManifest = dict[str, dict[str, str]]


def load_hash_manifest(
    *,
    built_root: str | Path,
    facades: Iterable[str],
    versions: VersionIndex,
    logger: StructuredLogger,
    pkg: PackageInfo | None = None,
    wildcard_tags: Iterable[str] = WILDCARD_TAGS,
) -> HashManifest:
    """Read ``<built_root>/<name>/<version>/md5.json`` for every facade.

    The current project (*pkg*) always uses its own version; every other
    facade range must resolve against *versions*, and resolution errors
    propagate. A missing or unreadable manifest only skips hashing for
    that package.
    """
    manifest: HashManifest = {}
    for facade in facades:
        ref = PackageRef.parse(facade)
        if pkg is not None and ref.name == pkg.name:
            version = pkg.version
        else:
            version = versions.resolve(ref.name, ref.spec, wildcard_tags=wildcard_tags)
        package_id = f"{ref.name}@{version}"
        if package_id in manifest:
            continue
        entries = _read_manifest(
            Path(built_root) / ref.name / version / MANIFEST_FILENAME,
            package=package_id,
            logger=logger,
        )
        if entries is not None:
            manifest[package_id] = entries
    return manifest


def flatten_manifest(manifest: Mapping[str, Mapping[str, str]], *, mod_root: str) -> dict[str, str]:
    """Project ``{"a@0.1.0": {"a.js": h}}`` onto ``{"<mod_root>/a/0.1.0/a.js": h}``."""
    file_hash: dict[str, str] = {}
    for package_id, files in manifest.items():
        name, _, version = package_id.rpartition("@")
        for filename, digest in files.items():
            path = posixpath.normpath(posixpath.join(mod_root, name, version, filename))
            file_hash[path] = digest
    return file_hash


def append_hash(path: str, digest: str) -> str:
    stem, ext = posixpath.splitext(path)
    return f"{stem}_{digest}{ext}"


@dataclass(frozen=True, slots=True)
class HashRewriter:
    file_hash: Mapping[str, str] = field(default_factory=dict)
    enabled: bool = False

    @classmethod
    def from_manifest(
        cls,
        manifest: Mapping[str, Mapping[str, str]],
        *,
        mod_root: str,
        enabled: bool,
    ) -> Self:
        return cls(file_hash=flatten_manifest(manifest, mod_root=mod_root), enabled=enabled)

    def rewrite(self, absolute_path: str) -> str:
        if not self.enabled:
            return absolute_path
        digest = self.file_hash.get(absolute_path)
        if not digest:
            return absolute_path
        return append_hash(absolute_path, digest)


def _read_manifest(
    path: Path,
    *,
    package: str,
    logger: StructuredLogger,
) -> dict[str, str] | None:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.log(
            operation="hash_manifest_missing",
            package=package,
            message="No hash manifest found; hashing skipped.",
            level="debug",
            extra={"path": str(path)},
        )
        return None
    except OSError as exc:
        _log_unusable(logger, package=package, path=path, reason=str(exc))
        return None

    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        _log_unusable(logger, package=package, path=path, reason=str(exc))
        return None
    if not isinstance(payload, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in payload.items()
    ):
        _log_unusable(logger, package=package, path=path, reason="expected filename -> hash")
        return None

    logger.log(
        operation="hash_manifest_loaded",
        package=package,
        message="Loaded hash manifest.",
        extra={"path": str(path), "files": len(payload)},
    )
    return dict(payload)


def _log_unusable(logger: StructuredLogger, *, package: str, path: Path, reason: str) -> None:
    logger.log(
        operation="hash_manifest_invalid",
        package=package,
        message="Hash manifest is unusable; hashing skipped.",
        level="warning",
        extra={"path": str(path), "reason": reason},
    )


__all__ = [
    "HashManifest",
    "HashRewriter",
    "MANIFEST_FILENAME",
    "append_hash",
    "flatten_manifest",
    "load_hash_manifest",
]
