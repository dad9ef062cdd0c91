from __future__ import annotations

from collections.abc import Iterator

import pytest

from diloom.container import Container


@pytest.fixture()
def diloom_container() -> Container:
    """Create a per-test container.

    The fixture is function-scoped, so registrations are isolated between tests
    unless users override fixture scope explicitly.

    Returns:
        A new ``Container`` instance.

    """
    return Container()


@pytest.fixture()
def diloom_global_container(diloom_container: Container) -> Iterator[Container]:
    """Install ``diloom_container`` as the global container for one test.

    The previous global container is restored on teardown, including when the
    test fails.

    Yields:
        The container returned by ``Container.get_global_instance()`` during
        the test.

    """
    previous = Container.set_global_instance(diloom_container)
    try:
        yield diloom_container
    finally:
        Container.set_global_instance(previous)


__all__ = ["diloom_container", "diloom_global_container"]
