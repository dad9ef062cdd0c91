from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing_extensions import Self

    from diloom.container import Container


class ContextualBindingBuilder:
    """Fluent builder behind ``container.when(Consumer).needs(Dep).give(impl)``.

    ``needs`` accepts a class, a string identifier, or ``"$name"`` for a
    primitive constructor parameter. ``give`` accepts a class or identifier to
    resolve, a factory called with the container, or a literal value for
    primitive needles.
    """

    def __init__(self, container: Container, *consumers: Any) -> None:
        self._container = container
        self._consumers = consumers
        self._needs: Any = None

    def needs(self, abstract: Any) -> Self:
        self._needs = abstract
        return self

    def give(self, implementation: Any) -> None:
        """Register ``implementation`` for every consumer passed to ``when``.

        Raises:
            ValueError: If ``needs`` was not called first.

        """
        if self._needs is None:
            msg = "Call needs() before give() when declaring a contextual binding."
            raise ValueError(msg)

        for consumer in self._consumers:
            self._container.add_contextual_binding(consumer, self._needs, implementation)

    def give_tagged(self, tag: str) -> None:
        """Give the list of instances tagged with ``tag``, resolved at build time."""
        self.give(lambda container: container.resolve_tag(tag))


__all__ = ["ContextualBindingBuilder"]
