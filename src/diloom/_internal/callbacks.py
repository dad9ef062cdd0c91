from __future__ import annotations

from collections.abc import Callable
from typing import Any

from diloom._internal.invocation import call_with_supported_args
from diloom._internal.type_checks import is_runtime_class

ResolvingCallback = Callable[..., Any]
"""Observer invoked as ``callback(instance, container)``."""

ReboundCallback = Callable[..., Any]
"""Observer invoked as ``callback(container, instance)``."""


class CallbacksHub:
    """Hold resolving, after-resolving and rebound observers.

    Per-type observers match an identifier exactly, or polymorphically when
    their key is a class the resolved instance is an instance of.
    """

    def __init__(self) -> None:
        self.global_resolving: list[ResolvingCallback] = []
        self.resolving: dict[Any, list[ResolvingCallback]] = {}
        self.global_after_resolving: list[ResolvingCallback] = []
        self.after_resolving: dict[Any, list[ResolvingCallback]] = {}
        self.rebound: dict[Any, list[ReboundCallback]] = {}

    def add_resolving(self, abstract: Any | None, callback: ResolvingCallback) -> None:
        if abstract is None:
            self.global_resolving.append(callback)
        else:
            self.resolving.setdefault(abstract, []).append(callback)

    def add_after_resolving(self, abstract: Any | None, callback: ResolvingCallback) -> None:
        if abstract is None:
            self.global_after_resolving.append(callback)
        else:
            self.after_resolving.setdefault(abstract, []).append(callback)

    def add_rebound(self, abstract: Any, callback: ReboundCallback) -> None:
        self.rebound.setdefault(abstract, []).append(callback)

    def get_rebound(self, abstract: Any) -> list[ReboundCallback]:
        return list(self.rebound.get(abstract, ()))

    def fire_resolving(self, abstract: Any, instance: Any, container: Any) -> None:
        """Fire resolving observers, then after-resolving observers.

        Within each phase global observers run before per-type observers, and
        each group runs in registration order.
        """
        self._fire(instance, container, self.global_resolving)
        self._fire(instance, container, self._callbacks_for_type(abstract, instance, self.resolving))
        self._fire(instance, container, self.global_after_resolving)
        self._fire(
            instance,
            container,
            self._callbacks_for_type(abstract, instance, self.after_resolving),
        )

    def _callbacks_for_type(
        self,
        abstract: Any,
        instance: Any,
        callbacks_per_type: dict[Any, list[ResolvingCallback]],
    ) -> list[ResolvingCallback]:
        results: list[ResolvingCallback] = []
        for key, callbacks in callbacks_per_type.items():
            if key == abstract or _is_instance_of(instance, key):
                results.extend(callbacks)
        return results

    def _fire(self, instance: Any, container: Any, callbacks: list[ResolvingCallback]) -> None:
        for callback in callbacks:
            call_with_supported_args(callback, instance, container)


def _is_instance_of(instance: Any, key: Any) -> bool:
    if not is_runtime_class(key):
        return False
    try:
        return isinstance(instance, key)
    except TypeError:
        # Protocols without @runtime_checkable only match by identifier.
        return False


__all__ = ["CallbacksHub", "ReboundCallback", "ResolvingCallback"]
