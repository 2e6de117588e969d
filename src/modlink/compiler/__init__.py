"""Emitters for the markup substituted into compiled templates."""

from .emit_bootstrap import (
    FACADE_CALL,
    LOADER_CONFIG_CALL,
    BootstrapEmission,
    emit_engine_scripts,
    emit_facade_entry,
    emit_loader_config,
)

__all__ = [
    "BootstrapEmission",
    "FACADE_CALL",
    "LOADER_CONFIG_CALL",
    "emit_engine_scripts",
    "emit_facade_entry",
    "emit_loader_config",
]
