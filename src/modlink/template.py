"""Template compiler binding directive helpers to jinja2 templates."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Self, cast

from jinja2 import Environment, StrictUndefined, Template

from .directives import Directive, DirectiveResolver, DirectiveSession
from .errors import MissingRequiredOption
from .hashes import HashManifest, HashRewriter, load_hash_manifest
from .hosts import HostSharder
from .layout import ModuleLayout
from .lockfile import (
    LOCK_FILENAME,
    PACKAGE_FILENAME,
    LockNode,
    VersionIndex,
    build_loader_graph,
    read_lock_graph,
    read_package,
)
from .observability import StructuredLogger
from .options import CompilerOptions, EnvSettings, ensure_required_options


@dataclass(slots=True)
class TemplateCompiler:
    """Compiles templates whose directives resolve against one project.

    Construction is the only step doing I/O (hash manifests); compiled
    templates can be rendered any number of times, each render with a fresh
    :class:`DirectiveSession`.
    """

    options: CompilerOptions
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    environ: Mapping[str, str] | None = None
    now: Callable[[], datetime] = datetime.now
    _layout: ModuleLayout = field(init=False, repr=False)
    _versions: VersionIndex | None = field(init=False, default=None, repr=False)
    _manifest: HashManifest = field(init=False, repr=False)
    _resolver: DirectiveResolver = field(init=False, repr=False)
    _helpers: dict[str, Directive] = field(init=False, repr=False)
    _env: Environment = field(init=False, repr=False)

    def __post_init__(self) -> None:
        ensure_required_options(self.options)
        options = self.options
        settings = EnvSettings.from_environ(self.environ)
        self._layout = ModuleLayout.from_options(options)
        pkg = self._layout.pkg
        lock = self.lock

        enable_hash = settings.enable_hash if options.enable_hash is None else options.enable_hash
        built_root = (
            Path(options.built_root) if options.built_root else self._layout.cwd / settings.dest
        )
        self._manifest = load_hash_manifest(
            built_root=built_root,
            facades=options.facades or (pkg.name,),
            versions=self.versions,
            logger=self.logger,
            pkg=pkg,
            wildcard_tags=options.wildcard_tags,
        )
        self._flag_unindexed_engines(lock)

        self._resolver = DirectiveResolver(
            pkg=pkg,
            layout=self._layout,
            versions=self.versions,
            rewriter=HashRewriter.from_manifest(
                self._manifest,
                mod_root=self._layout.mod_root,
                enabled=enable_hash,
            ),
            sharder=HostSharder(hosts=tuple(options.hosts)),
            manifest=self._manifest,
            graph=options.graph if options.graph is not None else build_loader_graph(lock),
            engines=dict(lock.engines),
            href_root=options.href_root.rstrip("/") if options.href_root else None,
            hash_host=options.hash_host,
            wildcard_tags=options.wildcard_tags,
            now=self.now,
            logger=self.logger,
        )
        self._helpers = {}
        self._env = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    @classmethod
    def for_project(
        cls,
        cwd: str | Path,
        *,
        path: str | Path,
        mod_root: str,
        logger: StructuredLogger | None = None,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> Self:
        """Build a compiler from ``cortex.json`` and the shrinkwrap lock in *cwd*."""
        root = Path(cwd)
        options = CompilerOptions(
            pkg=read_package(root / PACKAGE_FILENAME),
            lock=read_lock_graph(root / LOCK_FILENAME),
            cwd=root,
            path=path,
            mod_root=mod_root,
        )
        if overrides:
            options = replace(options, **overrides)
        return cls(options=options, logger=logger or StructuredLogger(), environ=environ)

    @property
    def lock(self) -> LockNode:
        return cast(LockNode, self.options.lock)

    @property
    def layout(self) -> ModuleLayout:
        return self._layout

    @property
    def resolver(self) -> DirectiveResolver:
        return self._resolver

    @property
    def versions(self) -> VersionIndex:
        if self._versions is None:
            self._versions = VersionIndex.build(self.lock)
            self.logger.log(
                operation="version_index_built",
                package=self.lock.id,
                message="Indexed installed versions from the lock graph.",
                extra={"packages": len(self._versions)},
            )
        return self._versions

    @property
    def manifest(self) -> HashManifest:
        return self._manifest

    def register(self, name: str, handler: Directive) -> Self:
        """Add a custom directive to every session of this compiler."""
        if not name:
            raise MissingRequiredOption("register() requires a directive name.")
        self._helpers[name] = handler
        return self

    def session(self) -> DirectiveSession:
        return DirectiveSession(resolver=self._resolver, extra_helpers=dict(self._helpers))

    def compile(self, source: str) -> CompiledTemplate:
        return CompiledTemplate(template=self._env.from_string(source), compiler=self)

    def compile_file(self, path: str | Path | None = None) -> CompiledTemplate:
        source_path = Path(path) if path is not None else self._layout.path
        return self.compile(source_path.read_text(encoding="utf-8"))

    def _flag_unindexed_engines(self, lock: LockNode) -> None:
        for name, version in lock.engines.items():
            installed = self.versions.get(name)
            if installed and version not in installed:
                self.logger.log(
                    operation="engine_version_unindexed",
                    package=f"{name}@{version}",
                    message="Engine version is not present in the lock graph.",
                    level="warning",
                    extra={"installed": sorted(installed)},
                )


@dataclass(frozen=True, slots=True)
class CompiledTemplate:
    template: Template
    compiler: TemplateCompiler

    def render(self, context: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        session = self.compiler.session()
        values: dict[str, Any] = dict(context or {})
        values.update(kwargs)
        values.update(session.helpers())
        return self.template.render(values)

    def __call__(self, context: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        return self.render(context, **kwargs)


__all__ = ["CompiledTemplate", "TemplateCompiler"]
