"""Tests for calling functions and methods with injected arguments."""

from typing import Any

import pytest

from diloom.container import Container
from diloom.exceptions import DILoomBindingResolutionError, DILoomInvalidCallError


class Mailer:
    def __init__(self) -> None:
        self.sent: list[str] = []

    def send(self, recipient: str) -> str:
        self.sent.append(recipient)
        return recipient


class Greeter:
    def greet(self, mailer: Mailer, name: str = "world") -> str:
        return f"hello {name} via {type(mailer).__name__}"

    def handle(self) -> str:
        return "handled"


def send_report(mailer: Mailer, recipient: str) -> str:
    return mailer.send(recipient)


def collect(mailer: Mailer, **extra: Any) -> dict[str, Any]:
    return {"mailer": mailer, **extra}


def test_call_function_injects_class_parameters(container: Container) -> None:
    container.singleton(Mailer)

    result = container.call(send_report, {"recipient": "ops@example.com"})

    assert result == "ops@example.com"
    assert container.make(Mailer).sent == ["ops@example.com"]


def test_call_forwards_leftover_parameters_to_var_keyword(container: Container) -> None:
    result = container.call(collect, {"trace_id": "abc"})

    assert isinstance(result["mailer"], Mailer)
    assert result["trace_id"] == "abc"


def test_call_drops_leftover_parameters_without_var_keyword(container: Container) -> None:
    result = container.call(send_report, {"recipient": "a@example.com", "unused": 1})

    assert result == "a@example.com"


def test_call_bound_method(container: Container) -> None:
    greeter = Greeter()

    assert container.call(greeter.greet, {"name": "Ada"}) == "hello Ada via Mailer"


def test_call_class_method_tuple_builds_owner(container: Container) -> None:
    assert container.call((Greeter, "greet")) == "hello world via Mailer"


def test_call_instance_method_tuple(container: Container) -> None:
    assert container.call((Greeter(), "handle")) == "handled"


def test_call_class_with_default_method(container: Container) -> None:
    assert container.call(Greeter, default_method="handle") == "handled"


def test_call_class_without_method_raises(container: Container) -> None:
    with pytest.raises(DILoomInvalidCallError, match="Method not provided"):
        container.call(Greeter)


def test_call_missing_method_raises(container: Container) -> None:
    with pytest.raises(DILoomInvalidCallError, match="does not exist"):
        container.call((Greeter, "missing"))


def test_call_non_callable_raises(container: Container) -> None:
    with pytest.raises(DILoomInvalidCallError):
        container.call(42)


def test_wrap_defers_call(container: Container) -> None:
    calls: list[str] = []

    def job(mailer: Mailer) -> None:
        calls.append(type(mailer).__name__)

    wrapped = container.wrap(job)
    assert calls == []

    wrapped()

    assert calls == ["Mailer"]


def test_method_binding_overrides_reflective_call(container: Container) -> None:
    container.bind_method((Greeter, "handle"), lambda greeter, c: "bound")

    assert container.has_method_binding((Greeter, "handle"))
    assert container.call((Greeter, "handle")) == "bound"
    assert container.call(Greeter().handle) == "bound"
    assert container.call(Greeter, default_method="handle") == "bound"


def test_method_binding_with_string_reference(container: Container) -> None:
    reference = f"{__name__}:Greeter@handle"
    container.bind_method(reference, lambda greeter: "bound")

    assert container.has_method_binding((Greeter, "handle"))
    assert container.call(reference) == "bound"
    assert container.call((Greeter, "handle")) == "bound"


def test_call_string_reference_without_method_binding(container: Container) -> None:
    assert container.call(f"{__name__}:Greeter@handle") == "handled"
    assert container.call(f"{__name__}:Greeter@greet", {"name": "Ada"}) == "hello Ada via Mailer"


def test_method_binding_is_scoped_to_the_class_module(container: Container) -> None:
    other_greeter = type("Greeter", (), {"__module__": "billing.greeters", "handle": lambda self: "other"})
    container.bind_method((Greeter, "handle"), lambda greeter: "bound")

    assert other_greeter.__qualname__ == Greeter.__qualname__
    assert not container.has_method_binding((other_greeter, "handle"))
    assert container.call((other_greeter, "handle")) == "other"
    assert container.call((Greeter, "handle")) == "bound"


def test_method_binding_string_needs_loadable_class(container: Container) -> None:
    with pytest.raises(DILoomBindingResolutionError, match=r"Target class \[Greeter\] does not exist"):
        container.bind_method("Greeter@handle", lambda greeter: "bound")


def test_method_binding_string_needs_method_part(container: Container) -> None:
    with pytest.raises(DILoomInvalidCallError):
        container.bind_method(f"{__name__}:Greeter", lambda greeter: "bound")


def test_method_binding_with_tuple_key(container: Container) -> None:
    received: list[Any] = []

    def handler(greeter: Greeter, c: Container) -> str:
        received.append((greeter, c))
        return "tuple"

    container.bind_method((Greeter, "handle"), handler)

    assert container.call((Greeter, "handle")) == "tuple"
    assert isinstance(received[0][0], Greeter)
    assert received[0][1] is container


def test_call_method_binding_directly(container: Container) -> None:
    container.bind_method((Greeter, "handle"), lambda greeter: "direct")

    assert container.call_method_binding(f"{__name__}:Greeter@handle", Greeter()) == "direct"
