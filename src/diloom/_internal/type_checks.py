from __future__ import annotations

import types
from typing import Any, TypeGuard


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_factory(candidate: object) -> bool:
    """Return true when candidate is a factory strategy rather than a concrete name.

    Classes are callable too, but a class names a concrete to build, so only
    non-class callables count as factories.

    Args:
        candidate: Concrete value passed to a binding or contextual binding.

    """
    return callable(candidate) and not isinstance(candidate, type)


__all__ = ["is_factory", "is_runtime_class"]
