from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Literal, TypeVar, get_origin, get_type_hints, overload

from graphwire._internal.providers import (
    Provider,
    ProviderDependency,
    ProviderSignatureExtractor,
    UserDependency,
)
from graphwire._internal.startable import Startable
from graphwire._internal.type_checks import is_assignable, is_protocol
from graphwire.exceptions import (
    GraphWireAmbiguousDependencyError,
    GraphWireCircularDependencyError,
    GraphWireConstructionError,
    GraphWireDependencyNotRegisteredError,
    GraphWireDuplicateProviderError,
    GraphWireError,
    GraphWireInvalidRegistrationError,
)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])
TargetT = TypeVar("TargetT")

logger = logging.getLogger(__name__)
_USE_DEFAULT: Any = object()


@dataclass(frozen=True, slots=True)
class ConstructedInstance:
    """Record one built instance in creation order."""

    value: Any
    """The instance returned by the constructor."""
    provider: Provider
    """The provider that built it."""
    is_startable: bool
    """Whether the instance exposes ``start``/``stop``, checked once at construction."""


class Container:
    """Register constructors and resolve a lazily built singleton graph.

    Dependency keys are runtime classes or ``typing.Protocol`` classes. Each
    constructor is registered once with ``provide``; its produced key comes
    from the return annotation (or the class itself), and its parameters are
    resolved from the graph in declaration order.

    Every instance is a singleton for the container lifetime. Instances are
    built on first use, never at registration, and recorded in creation order
    so ``App`` can start them in that order and stop them in reverse.

    Registration and resolution share one reentrant lock: a whole recursive
    construction chain runs under it, so only one ``provide`` or ``resolve``
    is in flight at a time.
    """

    def __init__(self, *, strict_capabilities: bool = False) -> None:
        """Initialize an empty container.

        Args:
            strict_capabilities: Raise ``GraphWireAmbiguousDependencyError``
                when more than one provider satisfies a requested protocol.
                By default the first registered match wins.

        Examples:
            .. code-block:: python

                container = Container()

                strict_container = Container(strict_capabilities=True)

        """
        self._strict_capabilities = strict_capabilities
        self._signature_extractor = ProviderSignatureExtractor()

        self._providers: list[Provider] = []
        self._providers_by_key: dict[UserDependency, Provider] = {}
        self._instances_by_key: dict[UserDependency, Any] = {}
        self._instances_by_provider: dict[Provider, Any] = {}
        self._in_progress: dict[UserDependency, Provider] = {}
        self._constructed: list[ConstructedInstance] = []
        self._lock = threading.RLock()

    # region Registration Methods
    @overload
    def provide(
        self,
        constructor: Callable[..., Any],
        *,
        provides: Any | Literal["infer"] = "infer",
    ) -> Provider: ...

    @overload
    def provide(
        self,
        constructor: Literal["from_decorator"] = "from_decorator",
        *,
        provides: Any | Literal["infer"] = "infer",
    ) -> Callable[[F], F]: ...

    def provide(
        self,
        constructor: Callable[..., Any] | Literal["from_decorator"] = "from_decorator",
        *,
        provides: Any | Literal["infer"] = "infer",
    ) -> Provider | Callable[[F], F]:
        """Register a constructor.

        A constructor returns one value (annotated ``-> T``) or a value and an
        error (annotated ``-> tuple[T, Exception | None]``). Classes are
        accepted too; their produced key is the class itself. Any other shape
        is rejected immediately.

        Args:
            constructor: Function, class, or callable object, or
                ``"from_decorator"`` for decorator form.
            provides: Dependency key produced by the constructor. ``"infer"``
                uses the return annotation.

        Returns:
            The registered ``Provider`` in direct form, to attach arguments
            with ``arg``/``args``. A decorator returning the function
            unchanged in decorator form.

        Raises:
            GraphWireInvalidRegistrationError: If the constructor shape or its
                annotations are invalid.
            GraphWireDuplicateProviderError: If another provider already
                produces the same key.

        Examples:
            .. code-block:: python

                container.provide(new_db_client).arg("postgres://localhost/app")


                @container.provide()
                def new_repo(db: DBClient) -> Repo:
                    return SqlRepo(db)

        """
        if isinstance(constructor, str) and constructor == "from_decorator":

            def decorator(func: F) -> F:
                self.provide(func, provides=provides)
                return func

            return decorator

        explicit_provides = None if _is_infer(provides) else provides
        provider = self._signature_extractor.extract(constructor, provides=explicit_provides)

        with self._lock:
            existing = self._providers_by_key.get(provider.provides)
            if existing is not None:
                msg = (
                    f"Duplicate provider for {provider.provides!r}: '{provider.name}' "
                    f"conflicts with '{existing.name}'."
                )
                raise GraphWireDuplicateProviderError(msg)

            self._providers.append(provider)
            self._providers_by_key[provider.provides] = provider

        logger.debug("Registered provider '%s' for %r", provider.name, provider.provides)
        return provider

    # endregion Registration Methods

    # region Resolution Methods
    @overload
    def resolve(self, key: type[T]) -> T: ...

    @overload
    def resolve(self, key: Any) -> Any: ...

    def resolve(self, key: Any) -> Any:
        """Resolve ``key`` to its singleton instance, building it on first use.

        Protocol keys are matched by capability: the first registered provider
        whose produced type structurally satisfies the protocol wins. Other
        keys are matched by type: an identical produced key first, then the
        first registered provider whose produced type is a subclass.

        Args:
            key: Class or protocol to resolve.

        Returns:
            The cached or newly built instance.

        Raises:
            GraphWireDependencyNotRegisteredError: If no provider matches the
                key or one of its transitive dependencies.
            GraphWireCircularDependencyError: If the key is requested while
                its own construction is in progress.
            GraphWireConstructionError: If a constructor fails.

        Examples:
            .. code-block:: python

                service = container.resolve(Service)

        """
        with self._lock:
            return self._resolve_key(key)

    def resolve_into(self, target: TargetT) -> TargetT:
        """Resolve every public annotated attribute of ``target`` in place.

        Fields are read with ``typing.get_type_hints`` on the target's class.
        Names starting with an underscore, ``ClassVar`` entries, fields of a
        frozen dataclass and read-only properties are skipped before anything
        is resolved for them. Each field resolves independently; the first
        failure stops the walk and leaves later fields untouched.

        Args:
            target: Object whose attributes are assigned.

        Returns:
            The same ``target``, for convenience.

        Raises:
            GraphWireInvalidRegistrationError: If the field annotations of the
                target's class cannot be evaluated, or a resolved value
                cannot be assigned to its field.
            GraphWireDependencyNotRegisteredError: If a field cannot be
                resolved; the message names the field.

        Examples:
            .. code-block:: python

                @dataclass
                class Handlers:
                    users: UserService = field(init=False)
                    orders: OrderService = field(init=False)


                handlers = container.resolve_into(Handlers())

        """
        target_type = type(target)
        try:
            fields = get_type_hints(target_type)
        except (AttributeError, NameError, TypeError) as error:
            msg = f"Unable to read field annotations of {target_type.__qualname__}."
            raise GraphWireInvalidRegistrationError(msg) from error

        with self._lock:
            for field_name, field_type in fields.items():
                if field_name.startswith("_") or _is_class_var(field_type):
                    continue
                if not _is_settable_field(target_type, field_name):
                    continue
                try:
                    value = self.resolve(field_type)
                except GraphWireError as error:
                    msg = f"failed to resolve field '{field_name}': {error}"
                    raise type(error)(msg) from error
                try:
                    setattr(target, field_name, value)
                except (AttributeError, TypeError) as error:
                    msg = (
                        f"Cannot assign field '{field_name}' of "
                        f"{target_type.__qualname__}: {error}"
                    )
                    raise GraphWireInvalidRegistrationError(msg) from error

        return target

    # endregion Resolution Methods

    # region Introspection
    @property
    def providers(self) -> tuple[Provider, ...]:
        """Registered providers in registration order."""
        with self._lock:
            return tuple(self._providers)

    @property
    def instances(self) -> tuple[Any, ...]:
        """Built instances in creation order."""
        with self._lock:
            return tuple(constructed.value for constructed in self._constructed)

    @property
    def startables(self) -> tuple[ConstructedInstance, ...]:
        """Built instances exposing ``start``/``stop``, in creation order."""
        with self._lock:
            return tuple(constructed for constructed in self._constructed if constructed.is_startable)

    # endregion Introspection

    def _resolve_key(self, key: Any) -> Any:
        if is_protocol(key):
            return self._resolve_capability(key)
        return self._resolve_type(key)

    def _resolve_capability(self, key: Any) -> Any:
        if key in self._instances_by_key:
            return self._instances_by_key[key]

        provider = self._find_capability_provider(key)
        if provider is None:
            msg = f"No provider found for protocol {key!r}."
            raise GraphWireDependencyNotRegisteredError(msg)

        instance = self._instance_for(provider)
        self._instances_by_key[key] = instance
        return instance

    def _resolve_type(self, key: Any) -> Any:
        if key in self._instances_by_key:
            return self._instances_by_key[key]

        provider = self._find_type_provider(key)
        if provider is None:
            msg = f"No provider or argument found for type {key!r}."
            raise GraphWireDependencyNotRegisteredError(msg)

        instance = self._instance_for(provider)
        self._instances_by_key[key] = instance
        return instance

    def _find_capability_provider(self, key: Any) -> Provider | None:
        matches = (provider for provider in self._providers if is_assignable(provider.provides, key))
        first = next(matches, None)
        if first is None or not self._strict_capabilities:
            return first

        second = next(matches, None)
        if second is not None:
            msg = (
                f"Protocol {key!r} is satisfied by several providers: "
                f"'{first.name}' and '{second.name}'."
            )
            raise GraphWireAmbiguousDependencyError(msg)
        return first

    def _find_type_provider(self, key: Any) -> Provider | None:
        exact = self._providers_by_key.get(key)
        if exact is not None:
            return exact
        return next(
            (provider for provider in self._providers if is_assignable(provider.provides, key)),
            None,
        )

    def _has_match(self, key: Any) -> bool:
        return key in self._instances_by_key or self._find_type_provider(key) is not None

    def _instance_for(self, provider: Provider) -> Any:
        if provider in self._instances_by_provider:
            return self._instances_by_provider[provider]
        return self._build(provider)

    def _build(self, provider: Provider) -> Any:
        if provider.provides in self._in_progress:
            chain = " -> ".join(
                [*(in_progress.name for in_progress in self._in_progress.values()), provider.name],
            )
            msg = f"Circular dependency detected: {provider.name} ({chain})."
            raise GraphWireCircularDependencyError(msg)

        self._in_progress[provider.provides] = provider
        try:
            arguments: dict[str, Any] = {}
            for dependency in provider.dependencies:
                argument = self._argument_for(provider, dependency)
                if argument is not _USE_DEFAULT:
                    arguments[dependency.parameter.name] = argument
            value, error = provider.invoke(arguments)
        finally:
            del self._in_progress[provider.provides]

        if error is not None:
            if isinstance(error, GraphWireError):
                raise error
            msg = f"Constructor '{provider.name}' failed: {error}"
            raise GraphWireConstructionError(msg) from error

        provider.mark_built()
        self._instances_by_provider[provider] = value
        self._constructed.append(
            ConstructedInstance(
                value=value,
                provider=provider,
                is_startable=isinstance(value, Startable),
            ),
        )
        logger.debug("Built '%s' (#%d)", provider.name, len(self._constructed))
        return value

    def _argument_for(self, provider: Provider, dependency: ProviderDependency) -> Any:
        found, override = provider.find_override(dependency.provides)
        if found:
            return override

        if dependency.has_default and not self._has_match(dependency.provides):
            return _USE_DEFAULT

        try:
            return self._resolve_key(dependency.provides)
        except (GraphWireDependencyNotRegisteredError, GraphWireCircularDependencyError) as error:
            msg = f"{error} [constructor: {provider.name}]"
            raise type(error)(msg) from error


def _is_infer(provides: Any) -> bool:
    return isinstance(provides, str) and provides == "infer"


def _is_class_var(annotation: Any) -> bool:
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _is_settable_field(target_type: type[Any], name: str) -> bool:
    params = getattr(target_type, "__dataclass_params__", None)
    if params is not None and params.frozen:
        return False
    attribute = inspect.getattr_static(target_type, name, None)
    if isinstance(attribute, property):
        return attribute.fset is not None
    return True


__all__ = ["ConstructedInstance", "Container"]
