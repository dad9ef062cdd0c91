from __future__ import annotations

import inspect
from collections.abc import Callable
from inspect import Parameter
from typing import Any

_POSITIONAL_KINDS = {Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD}


def supported_positional_count(callable_obj: Callable[..., Any], offered: int) -> int:
    """Return how many of ``offered`` leading positional arguments a callable accepts."""
    try:
        signature = inspect.signature(callable_obj)
    except (TypeError, ValueError):
        return offered

    accepted = 0
    for parameter in signature.parameters.values():
        if parameter.kind is Parameter.VAR_POSITIONAL:
            return offered
        if parameter.kind in _POSITIONAL_KINDS:
            accepted += 1
    return min(accepted, offered)


def call_with_supported_args(callable_obj: Callable[..., Any], *args: Any) -> Any:
    """Call a user hook with as many leading positional arguments as it declares.

    Factories receive ``(container, parameters)``, extenders and resolving
    callbacks receive ``(instance, container)``, rebound callbacks receive
    ``(container, instance)``. Hooks may declare fewer parameters, for example
    ``lambda: Clock()`` as a factory.
    """
    count = supported_positional_count(callable_obj, len(args))
    return callable_obj(*args[:count])


__all__ = ["call_with_supported_args", "supported_positional_count"]
