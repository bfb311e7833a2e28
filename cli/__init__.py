"""CLI package for interacting with the sensor series aggregator."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application lives in ``cli.app``; re-exporting it here would shadow
# the module, and tests patch ``cli.app.ApiClient`` by module path.

__all__ = []
