from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from inspect import Parameter
from typing import TYPE_CHECKING, Any

from diloom._internal.type_checks import is_runtime_class
from diloom.exceptions import DILoomInvalidCallError, describe_key

if TYPE_CHECKING:
    from diloom.container import Container


def method_binding_key(method: str | tuple[Any, str], load: Callable[[Any], Any]) -> str:
    """Normalize ``"pkg.mod:Class@method"`` or ``(Class, "method")`` to a binding key.

    Keys are ``"<module>:<qualname>@<method>"`` so same-named classes from
    different modules never share method bindings. The class part of a string
    is loaded with ``load`` and rebuilt from the loaded class.

    Raises:
        DILoomInvalidCallError: If a string has no ``@method`` part.

    """
    if isinstance(method, str):
        if "@" not in method:
            msg = f"Expected a 'pkg.mod:Class@method' reference, got {method!r}."
            raise DILoomInvalidCallError(msg)
        class_name, method_name = method.rsplit("@", 1)
        owner = load(class_name)
    else:
        owner, method_name = method
    return f"{owner.__module__}:{owner.__qualname__}@{method_name}"


class BoundMethod:
    """Call a callable or class method with container-resolved arguments.

    Arguments are resolved the same way constructor arguments are: explicit
    parameters by name, then classes through the container, then defaults.
    """

    def __init__(self, container: Container) -> None:
        self._container = container

    def call(
        self,
        callback: Any,
        parameters: Mapping[str, Any] | None = None,
        default_method: str | None = None,
    ) -> Any:
        parameters = dict(parameters or {})

        if isinstance(callback, str) and "@" in callback:
            class_name, method_name = callback.rsplit("@", 1)
            return self.call((class_name, method_name), parameters)

        if isinstance(callback, str) or is_runtime_class(callback):
            if default_method is None:
                msg = f"Method not provided for [{describe_key(callback)}]."
                raise DILoomInvalidCallError(msg)
            return self.call((callback, default_method), parameters)

        if isinstance(callback, tuple):
            return self._call_class_method(callback, parameters)

        if inspect.ismethod(callback):
            method_ref = (type(callback.__self__), callback.__name__)
            if self._container.has_method_binding(method_ref):
                return self._container.call_method_binding(method_ref, callback.__self__)

        if not callable(callback):
            msg = f"Cannot call [{callback!r}]; expected a callable or a class method reference."
            raise DILoomInvalidCallError(msg)

        return self._call_with_dependencies(callback, parameters)

    def _call_class_method(self, target: tuple[Any, ...], parameters: dict[str, Any]) -> Any:
        if len(target) != 2:  # noqa: PLR2004
            msg = f"Expected a (class_or_instance, method_name) pair, got {target!r}."
            raise DILoomInvalidCallError(msg)

        owner, method_name = target
        instance = self._container.make(owner) if isinstance(owner, str) or is_runtime_class(owner) else owner

        method_ref = (type(instance), method_name)
        if self._container.has_method_binding(method_ref):
            return self._container.call_method_binding(method_ref, instance)

        method = getattr(instance, method_name, None)
        if method is None or not callable(method):
            msg = f"Method [{method_name}] does not exist on [{describe_key(type(instance))}]."
            raise DILoomInvalidCallError(msg)
        return self._call_with_dependencies(method, parameters)

    def _call_with_dependencies(
        self,
        callback: Callable[..., Any],
        parameters: dict[str, Any],
    ) -> Any:
        descriptors = self._container.reflector.callable_parameters(callback)
        args, kwargs = self._container.resolve_arguments(
            descriptors,
            parameters,
            declaring=callback,
        )

        consumed = {descriptor.name for descriptor in descriptors}
        leftovers = {name: value for name, value in parameters.items() if name not in consumed}
        if leftovers and _accepts_var_keyword(callback):
            kwargs.update(leftovers)
        return callback(*args, **kwargs)


def _accepts_var_keyword(callback: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        return False
    return any(parameter.kind is Parameter.VAR_KEYWORD for parameter in signature.parameters.values())


__all__ = ["BoundMethod", "method_binding_key"]
