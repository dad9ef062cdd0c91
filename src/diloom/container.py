from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, ClassVar, TypeVar, overload

from diloom._internal.bindings import Binding, BindingsRegistry, Extender, FactoryStrategy
from diloom._internal.bound_method import BoundMethod, method_binding_key
from diloom._internal.callbacks import CallbacksHub, ReboundCallback, ResolvingCallback
from diloom._internal.invocation import call_with_supported_args
from diloom._internal.reflection import MISSING, InspectReflector, ParameterDescriptor, Reflector
from diloom._internal.resolution_context import ResolutionContext
from diloom._internal.type_checks import is_factory, is_runtime_class
from diloom.contextual import ContextualBindingBuilder
from diloom.exceptions import (
    DILoomBindingResolutionError,
    DILoomInvalidRegistrationError,
    DILoomNotFoundError,
    DILoomNotInstantiableError,
    DILoomUnresolvablePrimitiveError,
    describe_key,
)
from diloom.integrations.pydantic_settings import is_pydantic_settings_subclass, settings_factory

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Register bindings and build fully wired object graphs on demand.

    Identifiers are usually classes, protocols, or string keys. A binding maps
    an identifier to a factory callable or to a concrete class; unbound
    concrete classes are built reflectively from their constructor signatures.

    Resolution consults, in order: aliases, contextual overrides for the class
    currently being built, the shared instance cache, and finally the binding.
    Extenders decorate every fresh build, resolving observers run after it, and
    rebound observers run whenever an already resolved binding is replaced.

    The container keeps no locks. Use one container per thread or guard it
    externally when resolving concurrently.
    """

    _global_instance: ClassVar[Container | None] = None

    def __init__(
        self,
        *,
        reflector: Reflector | None = None,
        autoregister_settings: bool = False,
    ) -> None:
        """Initialize an empty container.

        Args:
            reflector: Introspection strategy used to enumerate constructor
                parameters and instantiate classes. Defaults to
                ``InspectReflector``.
            autoregister_settings: Opt in to registering unbound ``pydantic_settings``
                models as shared bindings the first time they are resolved.

        Examples:
            .. code-block:: python

                container = Container()
                container.singleton(Logger, ConsoleLogger)

                logger = container.make(Logger)

        """
        self._reflector: Reflector = reflector if reflector is not None else InspectReflector()
        self._autoregister_settings = autoregister_settings

        self._registry = BindingsRegistry()
        self._callbacks = CallbacksHub()
        self._context = ResolutionContext()
        self._bound_method = BoundMethod(self)

    @property
    def reflector(self) -> Reflector:
        return self._reflector

    @property
    def build_stack(self) -> tuple[Any, ...]:
        """Concretes currently under construction, outermost first."""
        return self._context.build_stack

    @property
    def parameters_depth(self) -> int:
        """Number of explicit-parameter frames pushed by resolutions in progress."""
        return self._context.parameters_depth

    # region Global Instance
    @classmethod
    def get_global_instance(cls) -> Container:
        """Return the process-wide container, creating it on first access."""
        if Container._global_instance is None:
            Container._global_instance = cls()
        return Container._global_instance

    @classmethod
    def set_global_instance(cls, container: Container | None) -> Container | None:
        """Replace the process-wide container; ``None`` clears it.

        Returns:
            The previous global container, or ``None`` when none was set, so
            callers can restore it later.

        """
        previous = Container._global_instance
        Container._global_instance = container
        return previous

    # endregion Global Instance

    # region Registration Methods
    def bind(
        self,
        abstract: Any,
        concrete: Any = None,
        *,
        shared: bool = False,
    ) -> None:
        """Register a binding for ``abstract``.

        A bare concrete (a class, or an identifier string) is wrapped into a
        factory that builds it reflectively when it equals ``abstract`` and
        resolves it through the container otherwise. Any other callable is a
        factory invoked as ``factory(container, parameters)``.

        Re-binding drops a cached instance and an alias entry for ``abstract``.
        If ``abstract`` was already resolved, the new binding is resolved right
        away and rebound observers receive it.

        Args:
            abstract: Identifier to bind.
            concrete: Factory, concrete class, or identifier. ``None`` binds
                ``abstract`` to itself.
            shared: Cache the first resolved instance and reuse it.

        Examples:
            .. code-block:: python

                container.bind(Mailer, SmtpMailer)
                container.bind("clock", lambda container: SystemClock())
                container.bind(ReportService)

        """
        self._registry.drop_stale_instances(abstract)

        if concrete is None:
            concrete = abstract
        if not is_factory(concrete):
            concrete = self._get_closure(abstract, concrete)

        self._registry.bindings[abstract] = Binding(concrete=concrete, shared=shared)
        logger.debug("Bound %s (shared=%s)", describe_key(abstract), shared)

        if self.resolved(abstract):
            self._rebound(abstract)

    def bind_if_unbound(
        self,
        abstract: Any,
        concrete: Any = None,
        *,
        shared: bool = False,
    ) -> None:
        """Register a binding only when ``abstract`` is not bound yet."""
        if not self.bound(abstract):
            self.bind(abstract, concrete, shared=shared)

    def singleton(self, abstract: Any, concrete: Any = None) -> None:
        """Register a shared binding. See ``bind``."""
        self.bind(abstract, concrete, shared=True)

    def singleton_if_unbound(self, abstract: Any, concrete: Any = None) -> None:
        if not self.bound(abstract):
            self.singleton(abstract, concrete)

    def instance(self, abstract: Any, instance: T) -> T:
        """Register an existing object as the shared instance for ``abstract``.

        ``abstract`` stops being an alias if it was one. When ``abstract`` was
        already bound, rebound observers receive ``instance``.

        Returns:
            The registered instance.

        """
        self._registry.remove_abstract_alias(abstract)
        is_bound = self.bound(abstract)
        self._registry.aliases.pop(abstract, None)

        self._registry.instances[abstract] = instance

        if is_bound:
            self._rebound(abstract)
        return instance

    def alias(self, abstract: Any, alias: Any) -> None:
        """Make ``alias`` resolve to ``abstract``.

        Raises:
            DILoomAliasCycleError: If ``alias`` equals ``abstract`` or the
                registration would close a longer cycle.

        """
        self._registry.add_alias(abstract, alias)
        logger.debug("Aliased %s to %s", describe_key(alias), describe_key(abstract))

    def is_alias(self, name: Any) -> bool:
        return self._registry.is_alias(name)

    def get_alias(self, abstract: Any) -> Any:
        """Return the canonical identifier behind an alias chain."""
        return self._registry.get_alias(abstract)

    def extend(self, abstract: Any, extender: Extender) -> None:
        """Decorate instances of ``abstract`` with ``extender(instance, container)``.

        A cached instance is decorated immediately. Otherwise the extender runs
        on every later build, in registration order. In both cases rebound
        observers are notified when ``abstract`` was already resolved.

        Examples:
            .. code-block:: python

                container.extend(HttpClient, lambda client, container: RetryingClient(client))

        """
        abstract = self.get_alias(abstract)

        if abstract in self._registry.instances:
            self._registry.instances[abstract] = call_with_supported_args(
                extender,
                self._registry.instances[abstract],
                self,
            )
            self._rebound(abstract)
            return

        self._registry.extenders.setdefault(abstract, []).append(extender)
        if self.resolved(abstract):
            self._rebound(abstract)

    def forget_extenders(self, abstract: Any) -> None:
        self._registry.extenders.pop(self.get_alias(abstract), None)

    def tag(self, abstracts: Any, *tags: str | Sequence[str]) -> None:
        """Attach one or more tags to one identifier or a list of identifiers.

        Examples:
            .. code-block:: python

                container.tag([CpuReport, MemoryReport], "reports")
                container.tag(DiskReport, "reports", "io")

        """
        abstract_list = list(abstracts) if isinstance(abstracts, (list, tuple)) else [abstracts]
        tag_list: list[str] = []
        for tag in tags:
            if isinstance(tag, str):
                tag_list.append(tag)
            else:
                tag_list.extend(tag)
        self._registry.add_tags(abstract_list, tag_list)

    def resolve_tag(self, tag: str) -> list[Any]:
        """Resolve every identifier tagged with ``tag``, in tagging order."""
        return [self.make(abstract) for abstract in self._registry.tags.get(tag, ())]

    tagged = resolve_tag

    def when(self, *consumers: Any) -> ContextualBindingBuilder:
        """Start a contextual binding for one or more consumer classes.

        Examples:
            .. code-block:: python

                container.when(Checkout).needs(PaymentGateway).give(StripeGateway)
                container.when(ReportService).needs("$title").give("Quarterly")

        """
        return ContextualBindingBuilder(self, *(self.get_alias(consumer) for consumer in consumers))

    def add_contextual_binding(self, consumer: Any, needle: Any, implementation: Any) -> None:
        """Use ``implementation`` for ``needle`` while ``consumer`` is being built."""
        self._registry.add_contextual(consumer, needle, implementation)

    def rebinding(self, abstract: Any, callback: ReboundCallback) -> Any | None:
        """Register ``callback(container, instance)`` for future rebinds of ``abstract``.

        Returns:
            The current resolution of ``abstract`` when it is already bound,
            otherwise ``None``.

        """
        abstract = self.get_alias(abstract)
        self._callbacks.add_rebound(abstract, callback)

        if self.bound(abstract):
            return self.make(abstract)
        return None

    def refresh(self, abstract: Any, target: Any, method: str) -> Any | None:
        """Call ``target.method(instance)`` whenever ``abstract`` is rebound."""
        return self.rebinding(
            abstract,
            lambda _container, instance: getattr(target, method)(instance),
        )

    def on_resolving(self, abstract: Any, callback: ResolvingCallback | None = None) -> None:
        """Register a resolving observer.

        ``on_resolving(callback)`` observes every resolution.
        ``on_resolving(abstract, callback)`` observes ``abstract`` and, when
        ``abstract`` is a class, every instance of it.

        Raises:
            DILoomInvalidRegistrationError: If the global form gets a
                non-callable.

        """
        if callback is None:
            self._callbacks.add_resolving(None, self._require_global_callback(abstract))
        else:
            self._callbacks.add_resolving(self.get_alias(abstract), callback)

    def on_after_resolving(self, abstract: Any, callback: ResolvingCallback | None = None) -> None:
        """Register an after-resolving observer. See ``on_resolving``."""
        if callback is None:
            self._callbacks.add_after_resolving(None, self._require_global_callback(abstract))
        else:
            self._callbacks.add_after_resolving(self.get_alias(abstract), callback)

    def bind_method(self, method: str | tuple[Any, str], callback: Callable[..., Any]) -> None:
        """Override how ``call`` invokes a class method.

        ``callback(instance, container)`` replaces reflective invocation of the
        method. The class part of ``"pkg.mod:Class@method"`` is loaded through
        the reflector, so bindings follow the class rather than its name.

        Raises:
            DILoomBindingResolutionError: If the class part cannot be loaded.

        Examples:
            .. code-block:: python

                container.bind_method((ReportService, "render"), lambda service: service.render_cached())
                container.bind_method("app.reports:ReportService@render", render_cached)

        """
        self._registry.method_bindings[self._method_binding_key(method)] = callback

    def has_method_binding(self, method: str | tuple[Any, str]) -> bool:
        return self._method_binding_key(method) in self._registry.method_bindings

    def call_method_binding(self, method: str | tuple[Any, str], instance: Any) -> Any:
        callback = self._registry.method_bindings[self._method_binding_key(method)]
        return call_with_supported_args(callback, instance, self)

    def _method_binding_key(self, method: str | tuple[Any, str]) -> str:
        return method_binding_key(method, self._reflector.load)

    def _get_closure(self, abstract: Any, concrete: Any) -> FactoryStrategy:
        def _factory(container: Container, parameters: Mapping[str, Any]) -> Any:
            if abstract == concrete:
                return container.build(concrete)
            return container.make(concrete, parameters)

        return _factory

    def _require_global_callback(self, callback: Any) -> ResolvingCallback:
        if not is_factory(callback):
            msg = (
                "A global resolving callback must be a callable; pass "
                f"(abstract, callback) to observe [{describe_key(callback)}]."
            )
            raise DILoomInvalidRegistrationError(msg)
        return callback

    # endregion Registration Methods

    # region Introspection
    def bound(self, abstract: Any) -> bool:
        """Return whether ``abstract`` has a binding, an instance, or is an alias."""
        return (
            abstract in self._registry.bindings
            or abstract in self._registry.instances
            or self.is_alias(abstract)
        )

    has = bound

    def resolved(self, abstract: Any) -> bool:
        """Return whether ``abstract`` was ever resolved or holds an instance."""
        if self.is_alias(abstract):
            abstract = self.get_alias(abstract)
        return abstract in self._registry.resolved or abstract in self._registry.instances

    def is_shared(self, abstract: Any) -> bool:
        return self._registry.is_shared(abstract)

    def get_bindings(self) -> dict[Any, Binding]:
        return dict(self._registry.bindings)

    def __contains__(self, abstract: object) -> bool:
        return self.bound(abstract)

    def __getitem__(self, abstract: Any) -> Any:
        return self.make(abstract)

    # endregion Introspection

    # region Resolution
    @overload
    def make(self, abstract: type[T], parameters: Mapping[str, Any] | None = None) -> T: ...

    @overload
    def make(self, abstract: Any, parameters: Mapping[str, Any] | None = None) -> Any: ...

    def make(self, abstract: Any, parameters: Mapping[str, Any] | None = None) -> Any:
        """Resolve ``abstract`` into a fully wired instance.

        Explicit ``parameters`` override constructor arguments by name and force
        a fresh build that is never cached.

        Args:
            abstract: Identifier, alias, or concrete class to resolve.
            parameters: Constructor arguments keyed by parameter name.

        Returns:
            The resolved instance.

        Raises:
            DILoomNotInstantiableError: If an abstraction without binding is
                reached. The message names the chain of consumers.
            DILoomUnresolvablePrimitiveError: If a primitive parameter has no
                override, contextual value, or default.
            DILoomCircularDependencyError: If a class depends on itself.
            DILoomAliasCycleError: If an alias chain loops.

        Examples:
            .. code-block:: python

                service = container.make(ReportService)
                quarterly = container.make(ReportService, {"title": "Q1"})

        """
        return self._resolve(abstract, dict(parameters) if parameters else {})

    make_with = make

    def get(self, abstract: Any) -> Any:
        """Resolve an identifier that must be bound.

        Raises:
            DILoomNotFoundError: If ``abstract`` has no binding, instance, or
                alias.

        """
        if self.has(abstract):
            return self._resolve(abstract, {})
        raise DILoomNotFoundError(abstract)

    def factory(self, abstract: Any) -> Callable[[], Any]:
        """Return a zero-argument callable that resolves ``abstract`` on demand."""
        return lambda: self.make(abstract)

    def call(
        self,
        callback: Any,
        parameters: Mapping[str, Any] | None = None,
        default_method: str | None = None,
    ) -> Any:
        """Call a function or method, injecting its parameters.

        Args:
            callback: A callable, ``(class_or_instance, "method")``,
                ``"pkg.mod:Class@method"``, or a class (or class name) combined with
                ``default_method``.
            parameters: Explicit arguments keyed by parameter name.
            default_method: Method to call when ``callback`` names a class only.

        Raises:
            DILoomInvalidCallError: If ``callback`` is not a supported target.

        Examples:
            .. code-block:: python

                container.call(send_report, {"recipient": "ops@example.com"})
                container.call((ReportService, "render"))

        """
        return self._bound_method.call(callback, parameters, default_method)

    def wrap(self, callback: Any, parameters: Mapping[str, Any] | None = None) -> Callable[[], Any]:
        """Return a zero-argument callable that runs ``call(callback, parameters)``."""
        return lambda: self.call(callback, parameters)

    def _resolve(self, abstract: Any, parameters: Mapping[str, Any]) -> Any:
        abstract = self.get_alias(abstract)
        if self._autoregister_settings:
            self._autoregister_settings_type(abstract)

        needs_contextual_build = bool(parameters) or self._get_contextual_concrete(abstract) is not MISSING

        if abstract in self._registry.instances and not needs_contextual_build:
            return self._registry.instances[abstract]

        with self._context.with_parameters(parameters):
            concrete = self._get_concrete(abstract)

            if self._is_buildable(concrete, abstract):
                instance = self.build(concrete)
            else:
                instance = self._resolve(concrete, parameters)

            for extender in self._registry.get_extenders(abstract):
                instance = call_with_supported_args(extender, instance, self)

            if self.is_shared(abstract) and not needs_contextual_build:
                self._registry.instances[abstract] = instance

            self._callbacks.fire_resolving(abstract, instance, self)
            self._registry.resolved.add(abstract)

        return instance

    def _get_concrete(self, abstract: Any) -> Any:
        concrete = self._get_contextual_concrete(abstract)
        if concrete is not MISSING:
            if is_factory(concrete) or isinstance(concrete, str) or is_runtime_class(concrete):
                return concrete
            # Ready-made objects given for a class needle.
            return lambda: concrete

        binding = self._registry.bindings.get(abstract)
        if binding is not None:
            return binding.concrete
        return abstract

    def _get_contextual_concrete(self, abstract: Any) -> Any:
        return self._registry.find_contextual(self._context.consumer, abstract)

    def _is_buildable(self, concrete: Any, abstract: Any) -> bool:
        return is_factory(concrete) or concrete == abstract

    def _rebound(self, abstract: Any) -> None:
        instance = self.make(abstract)
        callbacks = self._callbacks.get_rebound(abstract)
        logger.debug(
            "Rebound %s; notifying %d callback(s)",
            describe_key(abstract),
            len(callbacks),
        )
        for callback in callbacks:
            call_with_supported_args(callback, self, instance)

    def _autoregister_settings_type(self, abstract: Any) -> None:
        if abstract in self._registry.bindings or abstract in self._registry.instances:
            return
        if not is_pydantic_settings_subclass(abstract):
            return

        logger.debug("Auto-registering settings model %s as shared", describe_key(abstract))
        self.singleton(abstract, settings_factory(abstract))

    # endregion Resolution

    # region Building
    def build(self, concrete: Any) -> Any:
        """Instantiate ``concrete`` without consulting bindings for it.

        Factories are called with ``(container, parameters)`` using the
        innermost explicit parameters. Classes are constructed reflectively,
        resolving each constructor parameter through the container.

        Raises:
            DILoomNotInstantiableError: If ``concrete`` is abstract, a
                protocol, or not a class.
            DILoomCircularDependencyError: If ``concrete`` is already being
                built further up the stack.

        """
        if is_factory(concrete):
            return call_with_supported_args(concrete, self, self._context.last_parameters)

        concrete_type = self._reflector.load(concrete)
        if not self._reflector.is_instantiable(concrete_type):
            raise DILoomNotInstantiableError(concrete, self._context.build_stack)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        with self._context.building(concrete):
            if self._reflector.has_constructor(concrete_type):
                args, kwargs = self.resolve_arguments(
                    self._reflector.constructor_parameters(concrete_type),
                    self._context.last_parameters,
                    declaring=concrete_type,
                )

        return self._reflector.instantiate(concrete_type, args, kwargs)

    def resolve_arguments(
        self,
        descriptors: Iterable[ParameterDescriptor],
        parameters: Mapping[str, Any],
        *,
        declaring: Any,
    ) -> tuple[list[Any], dict[str, Any]]:
        """Resolve argument values for ``descriptors`` in declaration order.

        Explicit ``parameters`` win by name. Primitive parameters use a
        contextual ``"$name"`` value, then their default. Class parameters are
        resolved through the container, falling back to the default when they
        declare one and resolution fails.

        Returns:
            Positional arguments and keyword-only arguments.

        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for descriptor in descriptors:
            if descriptor.name in parameters:
                value = parameters[descriptor.name]
            elif descriptor.declared_type is None:
                value = self._resolve_primitive(descriptor, declaring)
            else:
                value = self._resolve_class(descriptor)

            if descriptor.keyword_only:
                kwargs[descriptor.name] = value
            else:
                args.append(value)

        return args, kwargs

    def _resolve_primitive(self, descriptor: ParameterDescriptor, declaring: Any) -> Any:
        concrete = self._get_contextual_concrete(f"${descriptor.name}")
        if concrete is not MISSING:
            return call_with_supported_args(concrete, self) if is_factory(concrete) else concrete

        if descriptor.has_default:
            return descriptor.default
        raise DILoomUnresolvablePrimitiveError(descriptor.name, declaring)

    def _resolve_class(self, descriptor: ParameterDescriptor) -> Any:
        try:
            return self.make(descriptor.declared_type)
        except DILoomBindingResolutionError:
            if descriptor.has_default:
                return descriptor.default
            raise

    # endregion Building

    # region Reset
    def forget_instance(self, abstract: Any) -> None:
        self._registry.instances.pop(abstract, None)

    def forget_instances(self) -> None:
        self._registry.instances.clear()

    def flush(self) -> None:
        """Drop bindings, aliases, instances and resolved flags.

        Extenders, observers, contextual bindings, tags and method bindings are
        kept.
        """
        self._registry.flush()

    # endregion Reset


__all__ = ["Container"]
