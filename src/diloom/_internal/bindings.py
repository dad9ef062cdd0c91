from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from diloom._internal.reflection import MISSING
from diloom.exceptions import DILoomAliasCycleError

UserDependency: TypeAlias = Any
"""An identifier registered or requested by the user's code (a class or a string key)."""

FactoryStrategy: TypeAlias = Callable[..., Any]
"""A callable invoked as ``factory(container, parameters)`` to produce an instance."""

Extender: TypeAlias = Callable[..., Any]
"""A decorator invoked as ``extender(instance, container)`` returning the final instance."""


@dataclass(frozen=True, slots=True)
class Binding:
    """Describe how a single identifier is produced.

    Bindings are replaced wholesale on re-binding and never mutated in place.
    """

    concrete: FactoryStrategy
    """Factory strategy; bare concretes are wrapped into one at bind time."""
    shared: bool = False
    """Whether the first resolved instance is cached and reused."""


class BindingsRegistry:
    """Store bindings, aliases, contextual overrides, tags, extenders and instances.

    The registry only keeps state. Rebound notification and resolution live on
    the container, which owns the registry.
    """

    def __init__(self) -> None:
        self.bindings: dict[UserDependency, Binding] = {}
        self.instances: dict[UserDependency, Any] = {}
        self.resolved: set[UserDependency] = set()
        self.aliases: dict[UserDependency, UserDependency] = {}
        self.abstract_aliases: dict[UserDependency, list[UserDependency]] = {}
        self.contextual: dict[Any, dict[UserDependency, Any]] = {}
        self.tags: dict[str, list[UserDependency]] = {}
        self.extenders: dict[UserDependency, list[Extender]] = {}
        self.method_bindings: dict[str, Callable[..., Any]] = {}

    # region Aliases
    def is_alias(self, name: UserDependency) -> bool:
        return name in self.aliases

    def get_alias(self, abstract: UserDependency) -> UserDependency:
        """Follow the alias chain to the canonical identifier.

        Raises:
            DILoomAliasCycleError: If the chain revisits a name.

        """
        chain = [abstract]
        current = abstract
        while current in self.aliases:
            current = self.aliases[current]
            if current in chain:
                chain.append(current)
                raise DILoomAliasCycleError(chain)
            chain.append(current)
        return current

    def add_alias(self, abstract: UserDependency, alias: UserDependency) -> None:
        """Record ``alias`` as another name for ``abstract``.

        The registration is rolled back when it would close a cycle.
        """
        if alias == abstract:
            raise DILoomAliasCycleError([alias, abstract])

        previous = self.aliases.get(alias)
        self.aliases[alias] = abstract
        try:
            self.get_alias(alias)
        except DILoomAliasCycleError:
            if previous is None:
                del self.aliases[alias]
            else:
                self.aliases[alias] = previous
            raise

        self.abstract_aliases.setdefault(abstract, []).append(alias)

    def remove_abstract_alias(self, searched: UserDependency) -> None:
        """Drop ``searched`` from the reverse alias index when it is an alias."""
        if searched not in self.aliases:
            return

        for abstract, aliases in self.abstract_aliases.items():
            self.abstract_aliases[abstract] = [alias for alias in aliases if alias != searched]

    # endregion Aliases

    # region Contextual Bindings
    def add_contextual(self, consumer: Any, needle: UserDependency, implementation: Any) -> None:
        self.contextual.setdefault(consumer, {})[self.get_alias(needle)] = implementation

    def find_contextual(self, consumer: Any, needle: UserDependency) -> Any:
        """Return the contextual implementation for ``needle`` under ``consumer``.

        The needle itself is checked first, then every alias registered for it.
        Returns ``MISSING`` when no override applies, so ``None`` stays a valid
        contextual value.
        """
        if consumer is None:
            return MISSING
        overrides = self.contextual.get(consumer)
        if not overrides:
            return MISSING

        if needle in overrides:
            return overrides[needle]
        for alias in self.abstract_aliases.get(needle, ()):
            if alias in overrides:
                return overrides[alias]
        return MISSING

    # endregion Contextual Bindings

    def add_tags(self, abstracts: list[UserDependency], tags: list[str]) -> None:
        for tag in tags:
            self.tags.setdefault(tag, []).extend(abstracts)

    def get_extenders(self, abstract: UserDependency) -> list[Extender]:
        return list(self.extenders.get(self.get_alias(abstract), ()))

    def drop_stale_instances(self, abstract: UserDependency) -> None:
        self.instances.pop(abstract, None)
        self.aliases.pop(abstract, None)

    def is_shared(self, abstract: UserDependency) -> bool:
        if abstract in self.instances:
            return True
        binding = self.bindings.get(abstract)
        return binding is not None and binding.shared

    def flush(self) -> None:
        """Reset bindings, aliases, instances and resolved flags.

        Extenders, contextual bindings, tags and method bindings survive.
        """
        self.aliases.clear()
        self.resolved.clear()
        self.bindings.clear()
        self.instances.clear()
        self.abstract_aliases.clear()


__all__ = [
    "Binding",
    "BindingsRegistry",
    "Extender",
    "FactoryStrategy",
    "UserDependency",
]
