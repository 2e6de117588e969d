"""Version index and range resolution against the lock graph."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Self

import semantic_version

from modlink.errors import LockfileError, ModuleNotFound, NoSatisfyingVersion, RangeInvalid
from modlink.lockfile.model import MAX_LOCK_DEPTH, LockNode

WILDCARD_TAGS: tuple[str, ...] = ("*", "", "latest")


@dataclass(frozen=True, slots=True)
class VersionIndex:
    """Installed versions of every package in a lock graph, keyed by name."""

    versions: Mapping[str, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, lock: LockNode) -> Self:
        collected: dict[str, set[str]] = {}
        seen: set[int] = set()
        stack: list[tuple[LockNode, int]] = [(lock, 0)]
        while stack:
            node, depth = stack.pop()
            if id(node) in seen:
                continue
            if depth > MAX_LOCK_DEPTH:
                raise LockfileError(
                    "Lock graph is nested too deeply.",
                    context={"package": node.id, "max_depth": str(MAX_LOCK_DEPTH)},
                )
            seen.add(id(node))
            collected.setdefault(node.name, set()).add(node.version)
            stack.extend((dep, depth + 1) for dep in node.iter_dependencies())
        return cls(versions={name: frozenset(found) for name, found in collected.items()})

    def __contains__(self, name: object) -> bool:
        return name in self.versions

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.versions))

    def __len__(self) -> int:
        return len(self.versions)

    def get(self, name: str) -> frozenset[str]:
        return self.versions.get(name, frozenset())

    def resolve(
        self,
        name: str,
        range_or_tag: str | None = None,
        *,
        wildcard_tags: Iterable[str] = WILDCARD_TAGS,
    ) -> str:
        """Return the highest installed version of *name* satisfying the range."""
        installed = self.versions.get(name)
        if not installed:
            raise ModuleNotFound(
                f'Module "{name}" not found, please install it first.',
                context={"module": name},
            )
        spec = parse_range(range_or_tag, wildcard_tags=wildcard_tags, name=name)
        version = max_satisfying(installed, spec)
        if version is None:
            raise NoSatisfyingVersion(
                f"No installed version of {name} satisfies {range_or_tag or '*'}.",
                hint="Install a matching version or relax the range.",
                context={
                    "module": f"{name}@{range_or_tag or '*'}",
                    "installed": ", ".join(sorted(installed)),
                },
            )
        return version


def parse_range(
    range_or_tag: str | None,
    *,
    wildcard_tags: Iterable[str] = WILDCARD_TAGS,
    name: str = "",
) -> semantic_version.NpmSpec | None:
    """Parse an npm-style range; ``None`` stands for "any version"."""
    text = (range_or_tag or "").strip()
    if not text or text in tuple(wildcard_tags):
        return None
    try:
        return semantic_version.NpmSpec(text)
    except ValueError as exc:
        module = f"{name}@{text}" if name else text
        raise RangeInvalid(
            f'Invalid version range "{module}".',
            hint="Use a semantic version range such as ^1.2.0, or an explicit version.",
            context={"module": module},
        ) from exc


def max_satisfying(
    versions: Iterable[str],
    spec: semantic_version.NpmSpec | None,
) -> str | None:
    parsed: dict[semantic_version.Version, str] = {}
    for raw in versions:
        try:
            parsed[semantic_version.Version(raw)] = raw
        except ValueError:
            continue
    if spec is None:
        candidates = [version for version in parsed if not version.prerelease]
        best = max(candidates) if candidates else None
    else:
        best = spec.select(parsed)
    if best is None:
        return None
    return parsed[best]


__all__ = ["VersionIndex", "WILDCARD_TAGS", "max_satisfying", "parse_range"]
