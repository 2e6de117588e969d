"""Deployed module tree layout and path construction.

Built modules are organized as::

    <mod_root>/
      |-- <name>/
            |-- <version>/
                  |-- <deployed template dir>/
                        |-- <template basename>

so a template reaches ``<mod_root>`` by climbing out of its deployed directory
and then two more levels (``<version>`` and ``<name>``). Both the climbing path
(``relative_cwd``) and the absolute deployed directory (``page_root``) are
computed once per compiler.
"""

from __future__ import annotations

import os
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self, cast

from modlink import jail
from modlink.models import PackageInfo
from modlink.options import DEFAULT_EXTENSIONS, CompilerOptions, ensure_required_options


@dataclass(frozen=True, slots=True)
class ModuleLayout:
    pkg: PackageInfo
    cwd: Path
    path: Path
    mod_root: str
    deployed_dir: str
    relative_cwd: str
    page_root: str
    use_hosts: bool = False
    extensions: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_EXTENSIONS))

    @classmethod
    def from_options(cls, options: CompilerOptions) -> Self:
        ensure_required_options(options)
        pkg = cast(PackageInfo, options.pkg)
        cwd = Path(os.path.abspath(cast(str | Path, options.cwd)))
        path = Path(os.path.abspath(cwd / cast(str | Path, options.path)))
        # Older deployments passed the package's own directory as the root.
        mod_root = (options.mod_root or "").replace(f"/{pkg.name}/{pkg.version}", "")
        mod_root = jail.to_url_path(mod_root).rstrip("/") or "/"
        deployed_dir = _deployed_dir(
            cwd=cwd,
            path=path,
            template_dir=options.template_dir,
            html_root=options.html_root,
        )
        up = posixpath.relpath(".", deployed_dir) if deployed_dir != "." else "."
        version_root = posixpath.join(mod_root, pkg.name, pkg.version)
        return cls(
            pkg=pkg,
            cwd=cwd,
            path=path,
            mod_root=mod_root,
            deployed_dir=deployed_dir,
            relative_cwd=posixpath.normpath(posixpath.join("..", "..", up)),
            page_root=posixpath.normpath(posixpath.join(version_root, deployed_dir)),
            use_hosts=bool(options.hosts),
            extensions=options.extensions(),
        )

    @property
    def template_dir(self) -> Path:
        """Directory of the template on the local filesystem."""
        return self.path.parent

    def module_path(self, name: str, version: str, sub_path: str = "") -> str:
        sub_path = jail.to_url_path(sub_path) or name + self.extensions["js"]
        sub_path = jail.check(sub_path.lstrip("/"))
        base = self.mod_root if self.use_hosts else self.relative_cwd
        joined = posixpath.join(base, name, version, sub_path)
        return posixpath.normpath(joined)

    def static_path(self, title: str) -> str:
        if is_absolute(title):
            return title
        directory, basename = posixpath.split(jail.to_url_path(title))
        stem, ext = posixpath.splitext(basename)
        changed_ext = self.extensions.get(ext.lstrip("."), ext)
        return f"{directory or '.'}/{stem}{changed_ext}"

    def to_absolute(self, path: str) -> str:
        if is_absolute(path):
            return path
        return posixpath.normpath(posixpath.join(self.page_root, jail.to_url_path(path)))


def is_absolute(title: str) -> bool:
    return title.startswith("/")


def _deployed_dir(
    *,
    cwd: Path,
    path: Path,
    template_dir: str | Path | None,
    html_root: str,
) -> str:
    if template_dir:
        base = Path(os.path.abspath(cwd / template_dir))
    elif html_root:
        return jail.check(jail.to_url_path(html_root).strip("/") or ".")
    else:
        base = cwd
    relative = Path(os.path.relpath(path.parent, base)).as_posix()
    return jail.check(relative)


__all__ = ["ModuleLayout", "is_absolute"]
