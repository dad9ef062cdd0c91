from __future__ import annotations

import inspect
import pkgutil
import types
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from inspect import Parameter
from typing import Annotated, Any, Protocol, Union, get_args, get_origin, get_type_hints

from diloom._internal.type_checks import is_runtime_class
from diloom.exceptions import DILoomBindingResolutionError

MISSING: Any = object()
_SKIPPED_PARAMETER_KINDS = {Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD}


@dataclass(frozen=True, slots=True)
class ParameterDescriptor:
    """Describe one constructor or callable parameter."""

    name: str
    declared_type: type[Any] | None
    """Class or interface the parameter expects, or ``None`` for primitives."""
    default: Any = MISSING
    keyword_only: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


class Reflector(Protocol):
    """Introspection capability used by the container to build concretes."""

    def load(self, concrete: Any) -> Any:
        """Return the runtime object named by ``concrete``."""
        ...

    def is_instantiable(self, concrete_type: Any) -> bool:
        """Return whether ``concrete_type`` can be constructed."""
        ...

    def has_constructor(self, concrete_type: type[Any]) -> bool:
        """Return whether ``concrete_type`` defines its own constructor."""
        ...

    def constructor_parameters(self, concrete_type: type[Any]) -> tuple[ParameterDescriptor, ...]:
        """Return ordered constructor parameter descriptors."""
        ...

    def callable_parameters(self, callable_obj: Callable[..., Any]) -> tuple[ParameterDescriptor, ...]:
        """Return ordered parameter descriptors for a plain callable."""
        ...

    def instantiate(
        self,
        concrete_type: type[Any],
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
    ) -> Any:
        """Invoke the constructor of ``concrete_type``."""
        ...


class InspectReflector:
    """Reflector backed by ``inspect.signature`` and ``typing.get_type_hints``.

    Descriptors are cached per class; callables are inspected on every call
    because bound methods are created fresh on attribute access.
    """

    def __init__(self) -> None:
        self._constructor_cache: dict[type[Any], tuple[ParameterDescriptor, ...]] = {}

    def load(self, concrete: Any) -> Any:
        """Load string concretes such as ``"pkg.mod:Class"`` or ``"pkg.mod.Class"``.

        Non-string concretes are returned unchanged. Names without a module part
        are never imported.

        Raises:
            DILoomBindingResolutionError: If the name cannot be imported.

        """
        if not isinstance(concrete, str):
            return concrete

        if "." not in concrete and ":" not in concrete:
            msg = f"Target class [{concrete}] does not exist."
            raise DILoomBindingResolutionError(msg)
        try:
            return pkgutil.resolve_name(concrete)
        except (ImportError, AttributeError, ValueError) as error:
            msg = f"Target class [{concrete}] does not exist."
            raise DILoomBindingResolutionError(msg) from error

    def is_instantiable(self, concrete_type: Any) -> bool:
        if not is_runtime_class(concrete_type):
            return False
        if inspect.isabstract(concrete_type):
            return False
        return not getattr(concrete_type, "_is_protocol", False)

    def has_constructor(self, concrete_type: type[Any]) -> bool:
        return concrete_type.__init__ is not object.__init__ or concrete_type.__new__ is not object.__new__

    def constructor_parameters(self, concrete_type: type[Any]) -> tuple[ParameterDescriptor, ...]:
        cached = self._constructor_cache.get(concrete_type)
        if cached is not None:
            return cached

        try:
            signature = inspect.signature(concrete_type)
        except (TypeError, ValueError):
            signature = inspect.Signature()
        annotations = self._resolved_type_hints(concrete_type.__init__)
        if concrete_type.__init__ is object.__init__:
            annotations = self._resolved_type_hints(concrete_type.__new__)

        descriptors = self._describe(signature=signature, annotations=annotations)
        self._constructor_cache[concrete_type] = descriptors
        return descriptors

    def callable_parameters(self, callable_obj: Callable[..., Any]) -> tuple[ParameterDescriptor, ...]:
        signature = inspect.signature(callable_obj)
        annotations = self._resolved_type_hints(callable_obj)
        return self._describe(signature=signature, annotations=annotations)

    def instantiate(
        self,
        concrete_type: type[Any],
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
    ) -> Any:
        return concrete_type(*args, **kwargs)

    def _describe(
        self,
        *,
        signature: inspect.Signature,
        annotations: dict[str, Any],
    ) -> tuple[ParameterDescriptor, ...]:
        descriptors: list[ParameterDescriptor] = []
        for parameter in signature.parameters.values():
            if parameter.kind in _SKIPPED_PARAMETER_KINDS:
                continue
            annotation = annotations.get(parameter.name, parameter.annotation)
            descriptors.append(
                ParameterDescriptor(
                    name=parameter.name,
                    declared_type=declared_class(annotation),
                    default=MISSING if parameter.default is Parameter.empty else parameter.default,
                    keyword_only=parameter.kind is Parameter.KEYWORD_ONLY,
                ),
            )
        return tuple(descriptors)

    def _resolved_type_hints(self, target: Any) -> dict[str, Any]:
        try:
            return get_type_hints(target, include_extras=True)
        except (AttributeError, NameError, TypeError):
            return {}


def declared_class(annotation: Any) -> type[Any] | None:
    """Return the class an annotation asks for, or ``None`` for primitives.

    ``Annotated[X, ...]`` and ``X | None`` unwrap to ``X``. Builtins such as
    ``str`` and ``int``, string forward references, and unions of several
    classes count as primitives.
    """
    if annotation is Parameter.empty or isinstance(annotation, str):
        return None

    origin = get_origin(annotation)
    if origin is Annotated:
        return declared_class(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) != 1:
            return None
        return declared_class(members[0])

    if not is_runtime_class(annotation):
        return None
    if annotation.__module__ == "builtins":
        return None
    return annotation


__all__ = [
    "MISSING",
    "InspectReflector",
    "ParameterDescriptor",
    "Reflector",
    "declared_class",
]
