"""Lock graph typed model."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

# Realistic lock graphs are a few dozen levels deep at most.
MAX_LOCK_DEPTH = 256


@dataclass(frozen=True, slots=True)
class LockNode:
    """One resolved package in the lock graph; the root is the current project."""

    name: str
    version: str
    dependencies: Mapping[str, LockNode] = field(default_factory=dict)
    engines: Mapping[str, str] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"{self.name}@{self.version}"

    def iter_dependencies(self) -> Iterator[LockNode]:
        for _, node in sorted(self.dependencies.items()):
            yield node
