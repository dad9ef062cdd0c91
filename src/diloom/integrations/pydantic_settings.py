from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping
from typing import Any

from diloom._internal.type_checks import is_runtime_class


def _load_settings_base() -> type[Any] | None:
    try:
        module = importlib.import_module("pydantic_settings")
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


SETTINGS_BASE: type[Any] | None = _load_settings_base()


def is_pydantic_settings_subclass(candidate: object) -> bool:
    """Return whether a class is a ``pydantic_settings.BaseSettings`` model.

    If pydantic-settings is not installed, this function returns ``False`` for
    every candidate.

    The container uses this check to auto-register unbound settings models as
    shared bindings, so environment variables and dotenv files are read once
    per container.

    Args:
        candidate: Object to test.

    Returns:
        ``True`` when ``candidate`` is a concrete settings subclass.

    """
    if SETTINGS_BASE is None or not is_runtime_class(candidate):
        return False
    if candidate is SETTINGS_BASE:
        return False
    try:
        return issubclass(candidate, SETTINGS_BASE)
    except TypeError:
        return False


def settings_factory(settings_type: type[Any]) -> Callable[[Any, Mapping[str, Any]], Any]:
    """Build a factory that instantiates ``settings_type`` from its own sources.

    Explicit parameters passed to ``make`` become init overrides, which pydantic
    settings rank above environment values.
    """

    def _factory(_container: Any, parameters: Mapping[str, Any]) -> Any:
        return settings_type(**parameters)

    return _factory


__all__ = [
    "SETTINGS_BASE",
    "is_pydantic_settings_subclass",
    "settings_factory",
]
