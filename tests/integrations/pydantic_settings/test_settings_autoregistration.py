"""Tests for automatic registration of pydantic-settings models."""

import pytest

pydantic_settings = pytest.importorskip("pydantic_settings")

from diloom.container import Container  # noqa: E402
from diloom.integrations.pydantic_settings import is_pydantic_settings_subclass  # noqa: E402


class AppSettings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(env_prefix="DILOOM_TEST_")

    name: str = "demo"


class PlainSettings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(env_prefix="DILOOM_PLAIN_")

    name: str = "plain"

    def __init__(self) -> None:
        super().__init__()


class Worker:
    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings


def test_settings_model_detection() -> None:
    assert is_pydantic_settings_subclass(AppSettings)
    assert not is_pydantic_settings_subclass(pydantic_settings.BaseSettings)
    assert not is_pydantic_settings_subclass(Worker)
    assert not is_pydantic_settings_subclass("AppSettings")


def test_settings_are_shared(settings_container: Container) -> None:
    first = settings_container.make(AppSettings)

    assert first is settings_container.make(AppSettings)
    assert settings_container.make(Worker).settings is first
    assert settings_container.is_shared(AppSettings)


def test_settings_read_environment(settings_container: Container, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DILOOM_TEST_NAME", "from-env")

    assert settings_container.make(AppSettings).name == "from-env"


def test_parameters_override_settings_without_caching(settings_container: Container) -> None:
    overridden = settings_container.make(AppSettings, {"name": "override"})

    assert overridden.name == "override"
    assert settings_container.make(AppSettings).name == "demo"


def test_explicit_binding_wins(settings_container: Container) -> None:
    custom = AppSettings(name="custom")
    settings_container.instance(AppSettings, custom)

    assert settings_container.make(AppSettings) is custom


def test_autoregistration_is_off_by_default(container: Container) -> None:
    first = container.make(PlainSettings)

    assert first is not container.make(PlainSettings)
    assert first.name == "plain"
    assert not container.bound(PlainSettings)
    assert container.get_bindings() == {}


def test_explicit_binding_keeps_user_lifetime(container: Container) -> None:
    container.bind(AppSettings, lambda c, parameters: AppSettings(**parameters))

    assert container.make(AppSettings) is not container.make(AppSettings)
    assert not container.is_shared(AppSettings)


def test_autoregistration_writes_a_shared_binding(settings_container: Container) -> None:
    assert not settings_container.bound(AppSettings)

    settings_container.make(AppSettings)

    assert settings_container.bound(AppSettings)
    assert AppSettings in settings_container.get_bindings()
