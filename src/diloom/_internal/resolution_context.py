from __future__ import annotations

from collections.abc import Generator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any

from diloom.exceptions import DILoomCircularDependencyError

_EMPTY_PARAMETERS: Mapping[str, Any] = MappingProxyType({})


class ResolutionContext:
    """Track the build stack and parameter-override stack of one container.

    Every push is paired with a pop through a context manager, so both stacks
    return to their previous depth on success and on failure.
    """

    def __init__(self) -> None:
        self._build_stack: list[Any] = []
        self._with: list[Mapping[str, Any]] = []

    @property
    def build_stack(self) -> tuple[Any, ...]:
        return tuple(self._build_stack)

    @property
    def consumer(self) -> Any | None:
        """Return the innermost concrete under construction, if any."""
        return self._build_stack[-1] if self._build_stack else None

    @property
    def last_parameters(self) -> Mapping[str, Any]:
        return self._with[-1] if self._with else _EMPTY_PARAMETERS

    @property
    def parameters_depth(self) -> int:
        return len(self._with)

    @contextmanager
    def building(self, concrete: Any) -> Generator[None, None, None]:
        """Mark ``concrete`` as the current consumer while its dependencies resolve.

        Raises:
            DILoomCircularDependencyError: If ``concrete`` is already being built.

        """
        if concrete in self._build_stack:
            raise DILoomCircularDependencyError(concrete, self._build_stack)

        self._build_stack.append(concrete)
        try:
            yield
        finally:
            self._build_stack.pop()

    @contextmanager
    def with_parameters(self, parameters: Mapping[str, Any]) -> Generator[None, None, None]:
        self._with.append(parameters)
        try:
            yield
        finally:
            self._with.pop()


__all__ = ["ResolutionContext"]
