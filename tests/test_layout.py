import importlib

CORE_MODULES = [
    "modlink.cli",
    "modlink.compiler",
    "modlink.directives",
    "modlink.errors",
    "modlink.hashes",
    "modlink.hosts",
    "modlink.jail",
    "modlink.layout",
    "modlink.lockfile",
    "modlink.models",
    "modlink.observability",
    "modlink.options",
    "modlink.template",
]


def test_core_package_layout_modules_importable() -> None:
    for module_name in CORE_MODULES:
        module = importlib.import_module(module_name)
        assert module is not None
