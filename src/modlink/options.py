"""Compiler configuration and validation helpers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

from modlink.errors import MissingRequiredOption
from modlink.lockfile.model import LockNode
from modlink.lockfile.resolve import WILDCARD_TAGS
from modlink.models import PackageInfo

ENABLE_HASH_ENV = "MODLINK_ENABLE_HASH"
DEST_ENV = "MODLINK_DEST"
DEFAULT_DEST = "neurons"

REQUIRED_OPTIONS: tuple[str, ...] = ("pkg", "lock", "cwd", "path", "mod_root")

DEFAULT_EXTENSIONS: Mapping[str, str] = {"js": ".js", "css": ".css"}


@dataclass(frozen=True, slots=True)
class EnvSettings:
    """Process-wide toggles read from the environment."""

    enable_hash: bool = False
    dest: str = DEFAULT_DEST

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> Self:
        env = os.environ if environ is None else environ
        return cls(
            enable_hash=bool(env.get(ENABLE_HASH_ENV)),
            dest=env.get(DEST_ENV) or DEFAULT_DEST,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CompilerOptions:
    """Construction inputs for a template compiler.

    ``pkg``, ``lock``, ``cwd``, ``path`` and ``mod_root`` are required; the
    remaining fields tune hosts, hashing and link rewriting.
    """

    pkg: PackageInfo | None = None
    lock: LockNode | None = None
    cwd: str | Path | None = None
    path: str | Path | None = None
    mod_root: str | None = None
    graph: Mapping[str, Any] | None = None
    facades: tuple[str, ...] = ()
    href_root: str | None = None
    hosts: tuple[str, ...] = ()
    extension_map: Mapping[str, str] = field(default_factory=dict)
    hash_host: bool = True
    template_dir: str | Path | None = None
    html_root: str = ""
    built_root: str | Path | None = None
    enable_hash: bool | None = None
    wildcard_tags: tuple[str, ...] = WILDCARD_TAGS

    def extensions(self) -> dict[str, str]:
        merged = dict(DEFAULT_EXTENSIONS)
        for key, ext in self.extension_map.items():
            merged[key.lstrip(".")] = ext
        return merged


def ensure_required_options(options: CompilerOptions) -> None:
    for key in REQUIRED_OPTIONS:
        if not getattr(options, key):
            raise MissingRequiredOption(
                f"`options.{key}` must be specified.",
                context={"option": key},
            )


__all__ = [
    "CompilerOptions",
    "DEFAULT_DEST",
    "DEFAULT_EXTENSIONS",
    "DEST_ENV",
    "ENABLE_HASH_ENV",
    "EnvSettings",
    "REQUIRED_OPTIONS",
    "ensure_required_options",
]
