"""Directive resolution: one handler per template directive kind."""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from modlink import jail
from modlink.compiler import BootstrapEmission, emit_facade_entry
from modlink.errors import MissingDirectiveArgument, ModlinkError
from modlink.hashes import HashManifest, HashRewriter
from modlink.hosts import HostSharder
from modlink.layout import ModuleLayout
from modlink.lockfile.resolve import WILDCARD_TAGS, VersionIndex, parse_range
from modlink.models import PackageInfo, PackageRef, ResolvedAsset
from modlink.observability import StructuredLogger

COMBO_PREFIX = "/concat/"
TIMESTR_FORMAT = "%Y-%m-%d %H:%M:%S"

Directive = Callable[..., str]


@dataclass(slots=True)
class DirectiveResolver:
    """Resolves directive arguments into deployable URLs for one template.

    Holds only read-only collaborators; per-render state lives in
    :class:`DirectiveSession`.
    """

    pkg: PackageInfo
    layout: ModuleLayout
    versions: VersionIndex
    rewriter: HashRewriter = field(default_factory=HashRewriter)
    sharder: HostSharder = field(default_factory=HostSharder)
    manifest: HashManifest = field(default_factory=dict)
    graph: Mapping[str, Any] = field(default_factory=dict)
    engines: Mapping[str, str] = field(default_factory=dict)
    href_root: str | None = None
    hash_host: bool = True
    wildcard_tags: tuple[str, ...] = WILDCARD_TAGS
    now: Callable[[], datetime] = datetime.now
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def resolve_path(self, path: str, *, hashed: bool = False) -> str:
        absolute_path = self.rewriter.rewrite(self.layout.to_absolute(path))
        if self.sharder.enabled:
            return self.sharder.shard(absolute_path, hashed=hashed)
        return jail.to_url_path(path)

    def resolve_module(self, title: str) -> ResolvedAsset:
        ref = PackageRef.parse(title)
        version = self.versions.resolve(ref.name, ref.spec, wildcard_tags=self.wildcard_tags)
        return ResolvedAsset(
            name=ref.name,
            version=version,
            file_path=self.layout.module_path(ref.name, version, ref.path),
        )

    def facade_entry(self, title: str | None = None) -> str:
        """Resolve a facade argument to ``name@version[/path]``.

        The current project always resolves to its own version, and explicit
        versions are trusted without a lock graph lookup.
        """
        if not title:
            return self.pkg.id

        ref = PackageRef.parse(title)
        ext = self.layout.extensions["js"] if ref.path else ""
        if ref.name == self.pkg.name:
            ref = ref.with_version(self.pkg.version)
        if ref.version:
            return ref.format() + ext

        range_ = ref.range or "*"
        parse_range(range_, wildcard_tags=self.wildcard_tags, name=ref.name)
        version = self.versions.resolve(ref.name, range_, wildcard_tags=self.wildcard_tags)
        return ref.with_version(version).format() + ext

    def bootstrap(self) -> BootstrapEmission:
        js_ext = self.layout.extensions["js"]
        sources = tuple(
            self.resolve_path(posixpath.join(self.layout.relative_cwd, name, version, name + js_ext))
            for name, version in self.engines.items()
        )
        config: dict[str, Any] = {
            "graph": dict(self.graph),
            "path": self.resolve_path(self.layout.relative_cwd, hashed=self.hash_host),
        }
        if self.manifest and self.rewriter.enabled:
            config["hash"] = self.manifest
        return BootstrapEmission(engine_sources=sources, config=config)

    def modfile(self, title: str | None = None) -> str:
        if not title:
            raise MissingDirectiveArgument("Directive `modfile` requires a module reference.")
        return self.resolve_path(self.resolve_module(title).file_path)

    def static(self, title: str | None = None) -> str:
        if not title:
            raise MissingDirectiveArgument("Directive `static` requires a file reference.")
        return self.resolve_path(self.layout.static_path(title))

    def combo(self, title: str | None = None) -> str:
        if not title:
            return ""
        paths: list[str] = []
        for entry in title.split(","):
            entry = entry.strip()
            if not entry:
                continue
            if entry.startswith("."):
                jail.ensure_within_project(self.layout.cwd, self.layout.template_dir, entry)
                path = self.layout.to_absolute(self.layout.static_path(entry))
            else:
                path = self.resolve_module(entry).file_path
            paths.append(self.rewriter.rewrite(path))
        combined = COMBO_PREFIX + ",".join(path.replace("/", "~") for path in paths)
        return self.resolve_path(combined)

    def href(self, title: str | None = None) -> str:
        if not title:
            raise MissingDirectiveArgument("Invalid argument for directive `href`.")
        if not self.href_root:
            return title
        # 'b/b.html' names another project: '<href_root>/b/b.html'
        if not jail.is_relative(title):
            return f"{self.href_root}/{title}"
        link_relative = jail.ensure_within_project(
            self.layout.cwd, self.layout.template_dir, title
        )
        return "/".join([self.href_root, self.pkg.name, link_relative])

    def version(self, title: str | None = None) -> str:
        return self.pkg.version or ""

    def timestamp(self, title: str | None = None) -> str:
        return str(int(self.now().timestamp() * 1000))

    def timestr(self, title: str | None = None) -> str:
        return self.now().strftime(TIMESTR_FORMAT)


@dataclass(slots=True)
class DirectiveSession:
    """Helper table and bootstrap flag for a single template render."""

    resolver: DirectiveResolver
    extra_helpers: Mapping[str, Directive] = field(default_factory=dict)
    facade_emitted: bool = False

    def facade(self, title: str | None = None) -> str:
        entry = self.resolver.facade_entry(title)
        output = ""
        if not self.facade_emitted:
            output += self.resolver.bootstrap().render()
            self.facade_emitted = True
            self.resolver.logger.log(
                operation="bootstrap_emitted",
                directive="facade",
                package=self.resolver.pkg.id,
                message="Emitted loader bootstrap.",
            )
        return output + emit_facade_entry(entry)

    def helpers(self) -> dict[str, Directive]:
        table: dict[str, Directive] = {
            "facade": self.facade,
            "href": self.resolver.href,
            "static": self.resolver.static,
            "modfile": self.resolver.modfile,
            "combo": self.resolver.combo,
            "version": self.resolver.version,
            "timestamp": self.resolver.timestamp,
            "timestr": self.resolver.timestr,
        }
        table.update(self.extra_helpers)
        return {name: self._bind(name, handler) for name, handler in table.items()}

    def _bind(self, directive: str, handler: Directive) -> Directive:
        logger = self.resolver.logger

        def helper(title: str | None = None, *args: Any, **kwargs: Any) -> str:
            try:
                return handler(title, *args, **kwargs)
            except ModlinkError as exc:
                exc.context.setdefault("directive", directive)
                if title is not None:
                    exc.context.setdefault("argument", str(title))
                logger.log(
                    operation="directive_failed",
                    directive=directive,
                    package=self.resolver.pkg.id,
                    message=exc.args[0] if exc.args else exc.code,
                    level="error",
                    extra={"code": exc.code, "argument": title},
                )
                raise

        helper.__name__ = directive
        return helper


__all__ = ["COMBO_PREFIX", "Directive", "DirectiveResolver", "DirectiveSession", "TIMESTR_FORMAT"]
