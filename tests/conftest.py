"""Shared pytest fixtures for diloom tests."""

from collections.abc import Iterator

import pytest

from diloom.container import Container


@pytest.fixture()
def container() -> Container:
    """Default container; settings auto-registration is off."""
    return Container()


@pytest.fixture()
def settings_container() -> Container:
    """Container that auto-registers pydantic-settings models as shared."""
    return Container(autoregister_settings=True)


@pytest.fixture(autouse=True)
def _reset_global_container() -> Iterator[None]:
    previous = Container.set_global_instance(None)
    yield
    Container.set_global_instance(previous)
