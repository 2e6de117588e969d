"""Bootstrap script emission for the client-side module loader."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

LOADER_CONFIG_CALL = "neuron.config"
FACADE_CALL = "facade"


@dataclass(frozen=True, slots=True)
class BootstrapEmission:
    engine_sources: tuple[str, ...]
    config: Mapping[str, Any]

    def render(self) -> str:
        return emit_engine_scripts(self.engine_sources) + emit_loader_config(self.config)


def emit_engine_scripts(sources: Iterable[str]) -> str:
    return "".join(f'<script src="{src}"></script>' for src in sources)


def emit_loader_config(config: Mapping[str, Any]) -> str:
    return f"<script>{LOADER_CONFIG_CALL}({_compact_json(config)});</script>"


def emit_facade_entry(entry: str) -> str:
    return f"<script>{FACADE_CALL}({{entry:{_compact_json(entry)}}});</script>"


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
