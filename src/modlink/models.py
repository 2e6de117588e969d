"""Core typed dataclasses for package identity and module references."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Self

import semantic_version

from modlink.errors import ModuleNotFound


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """Name and version of the project whose templates are being compiled."""

    name: str
    version: str

    @property
    def id(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True, slots=True)
class PackageRef:
    """Parsed form of a directive argument such as ``foo@^1.2.0/lib/x.js``.

    ``path`` keeps its leading slash and is empty when the reference names the
    package only. At most one of ``version`` and ``range`` is set: a token after
    ``@`` that is an exact semantic version is a version, anything else a range.
    """

    name: str
    version: str | None = None
    range: str | None = None
    path: str = ""

    @classmethod
    def parse(cls, text: str) -> Self:
        slash = text.find("/")
        if slash == -1:
            head, path = text, ""
        else:
            head, path = text[:slash], text[slash:]
        name, _, spec = head.partition("@")
        name = name.strip()
        spec = spec.strip()
        if not name:
            raise ModuleNotFound(
                "Module reference has no package name.",
                context={"reference": text},
            )
        if not spec:
            return cls(name=name, path=path)
        if _is_exact_version(spec):
            return cls(name=name, version=spec, path=path)
        return cls(name=name, range=spec, path=path)

    @property
    def spec(self) -> str | None:
        return self.version or self.range

    def with_version(self, version: str) -> Self:
        return replace(self, version=version, range=None)

    def with_range(self, range_: str) -> Self:
        return replace(self, version=None, range=range_)

    def format(self) -> str:
        spec = self.spec
        head = f"{self.name}@{spec}" if spec else self.name
        return head + self.path

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True, slots=True)
class ResolvedAsset:
    name: str
    version: str
    file_path: str

    @property
    def id(self) -> str:
        return f"{self.name}@{self.version}"


def _is_exact_version(value: str) -> bool:
    return bool(semantic_version.validate(value))


__all__ = ["PackageInfo", "PackageRef", "ResolvedAsset"]
