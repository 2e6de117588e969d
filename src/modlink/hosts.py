"""CDN host selection for deployed asset paths."""

from __future__ import annotations

import re
from dataclasses import dataclass

HOST_POOL_PLACEHOLDER = "{n}"

_FIRST_DIGIT = re.compile(r"\d")


@dataclass(frozen=True, slots=True)
class HostSharder:
    hosts: tuple[str, ...] = ()

    @property
    def enabled(self) -> bool:
        return bool(self.hosts)

    def pick_host(self, absolute_path: str, *, hashed: bool = False) -> str:
        """Pick a host for *absolute_path*.

        Hashed selection is keyed on the path length, and the first digit of the
        host's first label becomes ``{n}`` so the client loader can substitute a
        host from its own pool.
        """
        if not hashed:
            return self.hosts[0]
        host = self.hosts[len(absolute_path) % len(self.hosts)]
        label, dot, rest = host.partition(".")
        return _FIRST_DIGIT.sub(HOST_POOL_PLACEHOLDER, label, count=1) + dot + rest

    def shard(self, absolute_path: str, *, hashed: bool = False) -> str:
        if not self.hosts:
            return absolute_path
        return "//" + self.pick_host(absolute_path, hashed=hashed) + absolute_path


__all__ = ["HOST_POOL_PLACEHOLDER", "HostSharder"]
