from diloom._internal.reflection import InspectReflector, ParameterDescriptor, Reflector
from diloom.container import Container
from diloom.contextual import ContextualBindingBuilder
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

__all__ = [
    "Container",
    "ContextualBindingBuilder",
    "DILoomAliasCycleError",
    "DILoomBindingResolutionError",
    "DILoomCircularDependencyError",
    "DILoomError",
    "DILoomInvalidCallError",
    "DILoomInvalidRegistrationError",
    "DILoomNotFoundError",
    "DILoomNotInstantiableError",
    "DILoomUnresolvablePrimitiveError",
    "InspectReflector",
    "ParameterDescriptor",
    "Reflector",
]
