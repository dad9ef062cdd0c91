"""Tests for custom exception hierarchy."""

from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from diloom.container import Container
from diloom.exceptions import (
    DILoomAliasCycleError,
    DILoomBindingResolutionError,
    DILoomCircularDependencyError,
    DILoomError,
    DILoomInvalidCallError,
    DILoomInvalidRegistrationError,
    DILoomNotFoundError,
    DILoomNotInstantiableError,
    DILoomUnresolvablePrimitiveError,
)


class PaymentGateway(ABC):
    @abstractmethod
    def charge(self, amount: int) -> str: ...


class Checkout:
    def __init__(self, gateway: PaymentGateway) -> None:
        self.gateway = gateway


class Storefront:
    def __init__(self, checkout: Checkout) -> None:
        self.checkout = checkout


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class Cache(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None: ...


class Repository:
    def __init__(self, cache: Cache | None = None) -> None:
        self.cache = cache


class Mailer:
    def __init__(self, host: str) -> None:
        self.host = host


class Newsletter:
    def __init__(self, mailer: Mailer) -> None:
        self.mailer = mailer


class ChickenService:
    def __init__(self, egg: "EggService") -> None:
        self.egg = egg


class EggService:
    def __init__(self, chicken: ChickenService) -> None:
        self.chicken = chicken


class SelfReferencing:
    def __init__(self, other: "SelfReferencing") -> None:
        self.other = other


class OptionalCycle:
    def __init__(self, other: "OptionalCycle | None" = None) -> None:
        self.other = other


class TestDILoomErrorHierarchy:
    @pytest.mark.parametrize(
        "error_type",
        [
            DILoomAliasCycleError,
            DILoomBindingResolutionError,
            DILoomCircularDependencyError,
            DILoomInvalidCallError,
            DILoomInvalidRegistrationError,
            DILoomNotFoundError,
            DILoomNotInstantiableError,
            DILoomUnresolvablePrimitiveError,
        ],
    )
    def test_all_errors_derive_from_base(self, error_type: type[Exception]) -> None:
        assert issubclass(error_type, DILoomError)

    def test_resolution_errors_share_binding_resolution_base(self) -> None:
        assert issubclass(DILoomNotInstantiableError, DILoomBindingResolutionError)
        assert issubclass(DILoomUnresolvablePrimitiveError, DILoomBindingResolutionError)
        assert not issubclass(DILoomCircularDependencyError, DILoomBindingResolutionError)


class TestDILoomNotInstantiableError:
    def test_message_names_target_and_consumer(self, container: Container) -> None:
        with pytest.raises(DILoomNotInstantiableError) as exc_info:
            container.make(Checkout)

        message = str(exc_info.value)
        assert "PaymentGateway" in message
        assert "Checkout" in message
        assert message == "Target [PaymentGateway] is not instantiable while building [Checkout]."
        assert exc_info.value.concrete is PaymentGateway
        assert exc_info.value.build_stack == (Checkout,)

    def test_message_lists_whole_build_stack(self, container: Container) -> None:
        with pytest.raises(DILoomNotInstantiableError) as exc_info:
            container.make(Storefront)

        assert str(exc_info.value) == (
            "Target [PaymentGateway] is not instantiable while building [Storefront, Checkout]."
        )

    def test_top_level_request_has_short_message(self, container: Container) -> None:
        with pytest.raises(DILoomNotInstantiableError) as exc_info:
            container.make(PaymentGateway)

        assert str(exc_info.value) == "Target [PaymentGateway] is not instantiable."

    def test_protocol_is_not_instantiable(self, container: Container) -> None:
        with pytest.raises(DILoomNotInstantiableError):
            container.make(Notifier)

    def test_unknown_string_identifier(self, container: Container) -> None:
        with pytest.raises(DILoomBindingResolutionError, match=r"Target class \[mailer\] does not exist"):
            container.make("mailer")

    def test_optional_dependency_falls_back_to_default(self, container: Container) -> None:
        repository = container.make(Repository)

        assert repository.cache is None

    def test_stacks_are_clean_after_failure(self, container: Container) -> None:
        with pytest.raises(DILoomNotInstantiableError):
            container.make(Storefront)

        assert container.build_stack == ()

        container.bind(PaymentGateway, lambda: object())
        assert isinstance(container.make(Storefront).checkout, Checkout)

    def test_parameter_stack_is_clean_after_failure(self, container: Container) -> None:
        with pytest.raises(DILoomNotInstantiableError):
            container.make(Storefront, {"unused": 1})

        assert container.parameters_depth == 0
        assert container.build_stack == ()

    def test_parameter_stack_tracks_nested_resolutions(self, container: Container) -> None:
        observed: list[tuple[int, tuple[object, ...]]] = []

        def make_gateway(c: Container) -> object:
            observed.append((c.parameters_depth, c.build_stack))
            return object()

        container.bind(PaymentGateway, make_gateway)
        container.make(Checkout, {"unused": 1})

        assert observed == [(2, (Checkout,))]
        assert container.parameters_depth == 0

    def test_optional_fallback_restores_parameter_stack(self, container: Container) -> None:
        depths: list[int] = []
        container.on_resolving(Repository, lambda repository, c: depths.append(c.parameters_depth))

        repository = container.make(Repository, {"unused": 1})

        assert repository.cache is None
        assert depths == [1]
        assert container.parameters_depth == 0
        assert container.build_stack == ()


class TestDILoomUnresolvablePrimitiveError:
    def test_missing_primitive_raises(self, container: Container) -> None:
        with pytest.raises(DILoomUnresolvablePrimitiveError) as exc_info:
            container.make(Mailer)

        assert str(exc_info.value) == "Unresolvable dependency resolving [$host] in class [Mailer]."
        assert exc_info.value.parameter_name == "host"
        assert exc_info.value.declaring_type is Mailer

    def test_missing_nested_primitive_propagates(self, container: Container) -> None:
        with pytest.raises(DILoomUnresolvablePrimitiveError):
            container.make(Newsletter)

        assert container.build_stack == ()

    def test_parameter_override_satisfies_primitive(self, container: Container) -> None:
        assert container.make(Mailer, {"host": "smtp.local"}).host == "smtp.local"


class TestDILoomCircularDependencyError:
    def test_two_class_cycle(self, container: Container) -> None:
        with pytest.raises(DILoomCircularDependencyError) as exc_info:
            container.make(ChickenService)

        assert str(exc_info.value) == (
            "Circular dependency detected: ChickenService -> EggService -> ChickenService"
        )
        assert container.build_stack == ()

    def test_self_reference(self, container: Container) -> None:
        with pytest.raises(DILoomCircularDependencyError):
            container.make(SelfReferencing)

    def test_optional_parameter_does_not_absorb_cycle(self, container: Container) -> None:
        with pytest.raises(DILoomCircularDependencyError):
            container.make(OptionalCycle)


class TestDILoomAliasCycleError:
    def test_self_alias_is_rejected(self, container: Container) -> None:
        with pytest.raises(DILoomAliasCycleError, match=r"\[logger\] is aliased to itself"):
            container.alias("logger", "logger")

    def test_longer_cycle_is_rejected_and_rolled_back(self, container: Container) -> None:
        container.alias("a", "b")
        container.alias("b", "c")

        with pytest.raises(DILoomAliasCycleError, match="Alias cycle detected"):
            container.alias("c", "a")

        assert not container.is_alias("a")
        assert container.get_alias("c") == "a"


class TestDILoomInvalidRegistrationError:
    def test_global_resolving_callback_must_be_callable(self, container: Container) -> None:
        with pytest.raises(DILoomInvalidRegistrationError):
            container.on_resolving("not-callable")

    def test_global_after_resolving_callback_must_be_callable(self, container: Container) -> None:
        with pytest.raises(DILoomInvalidRegistrationError):
            container.on_after_resolving(Checkout)


class TestDILoomNotFoundError:
    def test_has_key_and_message(self, container: Container) -> None:
        with pytest.raises(DILoomNotFoundError) as exc_info:
            container.get(Checkout)

        assert exc_info.value.key is Checkout
        assert str(exc_info.value) == "No entry was found for [Checkout] identifier."
