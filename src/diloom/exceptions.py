from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def describe_key(key: Any) -> str:
    """Return a readable name for a dependency key or concrete."""
    if isinstance(key, str):
        return key
    qualname = getattr(key, "__qualname__", None)
    if isinstance(qualname, str):
        return qualname
    return repr(key)


class DILoomError(Exception):
    """Represent a base class for all DILoom-specific failures.

    Catch this type when you want to handle any DILoom error path without
    matching each concrete exception class individually.
    """


class DILoomInvalidRegistrationError(DILoomError):
    """Signal invalid registration or observer configuration.

    Raised by ``Container.on_resolving`` and ``Container.on_after_resolving``
    when the single-argument (global) form receives a non-callable.
    """


class DILoomBindingResolutionError(DILoomError):
    """Signal that a dependency could not be constructed.

    Raised by ``Container.make`` and everything built on top of it when a
    concrete cannot be loaded, instantiated, or fully wired.

    Constructor parameters that declare a default absorb this error and fall
    back to the default value. Every other failure propagates to the caller.
    """


class DILoomNotInstantiableError(DILoomBindingResolutionError):
    """Signal that a concrete is an abstract class, protocol, or non-class.

    The message includes the build stack so the chain of consumers that led to
    the request is visible.

    Typical fix is binding the abstraction to an implementation, for example
    ``container.bind(PaymentGateway, StripeGateway)``.
    """

    def __init__(self, concrete: Any, build_stack: Sequence[Any]) -> None:
        self.concrete = concrete
        self.build_stack = tuple(build_stack)
        if self.build_stack:
            previous = ", ".join(describe_key(item) for item in self.build_stack)
            msg = f"Target [{describe_key(concrete)}] is not instantiable while building [{previous}]."
        else:
            msg = f"Target [{describe_key(concrete)}] is not instantiable."
        super().__init__(msg)


class DILoomUnresolvablePrimitiveError(DILoomBindingResolutionError):
    """Signal that a primitive constructor parameter has no value source.

    A primitive parameter is satisfied by an explicit parameter, a contextual
    ``"$name"`` binding, or its default value.

    Typical fixes include passing ``parameters={"name": ...}`` to ``make`` or
    declaring ``container.when(Consumer).needs("$name").give(value)``.
    """

    def __init__(self, parameter_name: str, declaring_type: Any) -> None:
        self.parameter_name = parameter_name
        self.declaring_type = declaring_type
        msg = (
            f"Unresolvable dependency resolving [${parameter_name}] "
            f"in class [{describe_key(declaring_type)}]."
        )
        super().__init__(msg)


class DILoomCircularDependencyError(DILoomError):
    """Signal that a concrete depends on itself through its constructor chain.

    Raised by the builder when a concrete is requested while it is already on
    the build stack. Optional parameters never absorb this error.
    """

    def __init__(self, concrete: Any, build_stack: Sequence[Any]) -> None:
        self.concrete = concrete
        self.build_stack = tuple(build_stack)
        chain = " -> ".join(describe_key(item) for item in (*self.build_stack, concrete))
        super().__init__(f"Circular dependency detected: {chain}")


class DILoomNotFoundError(DILoomError, LookupError):
    """Signal a plain lookup for an identifier that has no binding.

    Raised by ``Container.get`` only. ``Container.make`` still attempts
    reflective construction for unbound identifiers.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"No entry was found for [{describe_key(key)}] identifier.")


class DILoomAliasCycleError(DILoomError):
    """Signal an alias that resolves back to itself.

    Raised by ``Container.alias`` when a registration would close a cycle and by
    alias lookups that revisit a name.
    """

    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = tuple(chain)
        if len(self.chain) <= 2:  # noqa: PLR2004
            msg = f"[{describe_key(self.chain[0])}] is aliased to itself."
        else:
            cycle = " -> ".join(describe_key(item) for item in self.chain)
            msg = f"Alias cycle detected: {cycle}"
        super().__init__(msg)


class DILoomInvalidCallError(DILoomError):
    """Signal an invalid target passed to ``Container.call``.

    Typical fixes include passing ``"Class@method"``, a ``(Class, "method")``
    tuple, or a ``default_method``.
    """
