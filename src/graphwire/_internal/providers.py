from __future__ import annotations

import inspect
import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from inspect import Parameter
from typing import Annotated, Any, TypeAlias, Union, get_args, get_origin, get_type_hints

from typing_extensions import Self

from graphwire.exceptions import GraphWireInvalidRegistrationError

UserDependency: TypeAlias = Any
"""A dependency key registered by, or requested from, the user's code."""

Constructor: TypeAlias = Callable[..., Any]
"""A function, class, or other callable that builds one dependency."""

_MISSING_ANNOTATION: Any = object()
_TWO_VALUE_SHAPE_LENGTH = 2
_SKIPPED_PARAMETER_KINDS = (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)


@dataclass(slots=True)
class ProviderDependency:
    """Represent a dependency key bound to a constructor parameter."""

    provides: UserDependency
    parameter: Parameter

    @property
    def has_default(self) -> bool:
        return self.parameter.default is not Parameter.empty


@dataclass(kw_only=True, eq=False)
class Provider:
    """Describe one registered constructor and how to call it.

    A provider is created by ``Container.provide`` and is immutable afterwards,
    except that overrides may be attached with ``arg``/``args`` until the
    provider has been built for the first time.
    """

    constructor: Constructor
    """The wrapped user constructor."""
    provides: UserDependency
    """The dependency key produced by the constructor."""
    dependencies: list[ProviderDependency] = field(default_factory=list)
    """Constructor parameters in declaration order, with their dependency keys."""
    returns_error: bool = False
    """True when the constructor returns a ``(value, error)`` pair."""
    name: str
    """Human-readable constructor name used in error messages and logs."""
    overrides: dict[UserDependency, Any] = field(default_factory=dict)
    """Explicit argument values keyed by their own runtime type."""

    _built: bool = field(default=False, init=False, repr=False)

    def arg(self, value: Any) -> Self:
        """Bind ``value`` to every parameter annotated with ``type(value)``.

        Overrides take precedence over graph resolution. This is how plain
        values such as strings, numbers, or settings objects enter the graph
        without a dedicated provider.

        Args:
            value: Concrete value to pass to the constructor.

        Returns:
            This provider, to allow chaining.

        Raises:
            GraphWireInvalidRegistrationError: If the provider was already built.

        Examples:
            .. code-block:: python

                container.provide(new_db_client).arg("postgres://localhost/app")

        """
        if self._built:
            msg = (
                f"Cannot attach argument of type '{type(value).__qualname__}' to provider "
                f"'{self.name}': it has already been built."
            )
            raise GraphWireInvalidRegistrationError(msg)
        self.overrides[type(value)] = value
        return self

    def args(self, *values: Any) -> Self:
        """Bind several values at once, each keyed by its own type.

        Args:
            *values: Concrete values to pass to the constructor.

        Returns:
            This provider, to allow chaining.

        """
        for value in values:
            self.arg(value)
        return self

    def find_override(self, key: UserDependency) -> tuple[bool, Any]:
        if key in self.overrides:
            return True, self.overrides[key]
        return False, None

    @property
    def is_built(self) -> bool:
        return self._built

    def mark_built(self) -> None:
        self._built = True

    def invoke(self, arguments: Mapping[str, Any]) -> tuple[Any, Exception | None]:
        """Call the constructor and normalize its outcome to ``(value, error)``.

        An exception raised by the constructor is returned as the error half,
        the same way a two-value constructor reports one.

        Args:
            arguments: Argument values keyed by parameter name. Parameters
                missing from the mapping keep their defaults.

        """
        positional: list[Any] = []
        keywords: dict[str, Any] = {}
        for dependency in self.dependencies:
            parameter = dependency.parameter
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                # keep later positional-only values in their slots
                positional.append(arguments.get(parameter.name, parameter.default))
            elif parameter.name in arguments:
                keywords[parameter.name] = arguments[parameter.name]

        try:
            result = self.constructor(*positional, **keywords)
        except Exception as error:  # noqa: BLE001
            return None, error

        if not self.returns_error:
            return result, None
        return self._split_result(result)

    def _split_result(self, result: Any) -> tuple[Any, Exception | None]:
        if not isinstance(result, tuple) or len(result) != _TWO_VALUE_SHAPE_LENGTH:
            msg = (
                f"Provider '{self.name}' is declared to return a (value, error) pair "
                f"but returned {type(result).__qualname__}."
            )
            return None, TypeError(msg)

        value, error = result
        if error is None:
            return value, None
        if not isinstance(error, Exception):
            msg = (
                f"Provider '{self.name}' returned {type(error).__qualname__} as its error "
                "value; expected an exception or None."
            )
            return None, TypeError(msg)
        return None, error


@dataclass(slots=True)
class ProviderSignatureExtractor:
    """Build ``Provider`` metadata from a constructor's signature and type hints."""

    def extract(
        self,
        constructor: Any,
        *,
        provides: UserDependency | None = None,
    ) -> Provider:
        """Inspect ``constructor`` and return a provider for it.

        Args:
            constructor: Function, class, or callable object to wrap.
            provides: Explicit dependency key. ``None`` infers it from the
                return annotation, or uses the class itself for classes.

        Raises:
            GraphWireInvalidRegistrationError: If the constructor shape is not
                supported or a required parameter cannot be inferred.

        """
        name = self._provider_name(constructor)
        if not callable(constructor):
            msg = f"Constructor must be callable, got {type(constructor).__qualname__}."
            raise GraphWireInvalidRegistrationError(msg)
        if inspect.iscoroutinefunction(constructor) or inspect.isasyncgenfunction(constructor):
            msg = (
                f"Constructor '{name}' is asynchronous. Resolution is synchronous; "
                "build the value in a sync constructor and start it through App."
            )
            raise GraphWireInvalidRegistrationError(msg)

        annotations, annotation_error = self._resolved_type_hints(constructor)
        produced, returns_error = self._extract_shape(
            constructor=constructor,
            name=name,
            annotations=annotations,
            annotation_error=annotation_error,
            explicit_provides=provides,
        )
        dependencies = self._extract_dependencies(
            constructor=constructor,
            name=name,
            annotations=annotations,
            annotation_error=annotation_error,
        )

        return Provider(
            constructor=constructor,
            provides=produced,
            dependencies=dependencies,
            returns_error=returns_error,
            name=name,
        )

    def unwrap_annotated(self, annotation: Any) -> Any:
        """Recursively unwrap Annotated[T, ...] into T.

        Args:
            annotation: Annotation value to inspect or normalize.

        """
        if get_origin(annotation) is not Annotated:
            return annotation
        return self.unwrap_annotated(get_args(annotation)[0])

    def _extract_shape(
        self,
        *,
        constructor: Any,
        name: str,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
        explicit_provides: UserDependency | None,
    ) -> tuple[UserDependency, bool]:
        if inspect.isclass(constructor):
            return (constructor if explicit_provides is None else explicit_provides), False

        return_annotation = annotations.get("return", _MISSING_ANNOTATION)
        if return_annotation is _MISSING_ANNOTATION:
            return_annotation = self._raw_return_annotation(constructor)

        if return_annotation is _MISSING_ANNOTATION:
            if explicit_provides is not None:
                return explicit_provides, False
            msg = (
                f"Unable to infer the produced type of constructor '{name}'. "
                "Add a return type annotation or pass provides= explicitly."
            )
            self._raise_invalid_registration_error(msg=msg, annotation_error=annotation_error)

        produced, returns_error = self._split_return_annotation(
            self.unwrap_annotated(return_annotation),
            name=name,
        )
        return (produced if explicit_provides is None else explicit_provides), returns_error

    def _split_return_annotation(self, annotation: Any, *, name: str) -> tuple[Any, bool]:
        if annotation is None or annotation is type(None):
            msg = f"Constructor '{name}' is annotated to return None; it must produce a value."
            raise GraphWireInvalidRegistrationError(msg)

        if get_origin(annotation) is not tuple:
            return annotation, False

        annotation_args = get_args(annotation)
        if len(annotation_args) == _TWO_VALUE_SHAPE_LENGTH and annotation_args[1] is Ellipsis:
            return annotation, False
        if len(annotation_args) == _TWO_VALUE_SHAPE_LENGTH and self._is_error_like(
            annotation_args[1],
        ):
            return self.unwrap_annotated(annotation_args[0]), True

        msg = (
            f"Constructor '{name}' must return one value (`T`) or a value and an error "
            f"(`tuple[T, Exception | None]`), got `{annotation!r}`."
        )
        raise GraphWireInvalidRegistrationError(msg)

    def _is_error_like(self, annotation: Any) -> bool:
        annotation = self.unwrap_annotated(annotation)
        if get_origin(annotation) in (Union, types.UnionType):
            members = [arg for arg in get_args(annotation) if arg is not type(None)]
        else:
            members = [annotation]
        return bool(members) and all(
            inspect.isclass(member) and issubclass(member, Exception) for member in members
        )

    def _extract_dependencies(
        self,
        *,
        constructor: Any,
        name: str,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
    ) -> list[ProviderDependency]:
        try:
            parameters = tuple(inspect.signature(constructor).parameters.values())
        except (TypeError, ValueError) as error:
            msg = f"Unable to read the signature of constructor '{name}'."
            raise GraphWireInvalidRegistrationError(msg) from error

        dependencies: list[ProviderDependency] = []
        for parameter in parameters:
            if parameter.kind in _SKIPPED_PARAMETER_KINDS:
                continue
            provides = self._resolve_parameter_annotation(
                parameter=parameter,
                annotations=annotations,
                annotation_error=annotation_error,
                provider_name=name,
            )
            if provides is _MISSING_ANNOTATION:
                continue
            dependencies.append(
                ProviderDependency(provides=self.unwrap_annotated(provides), parameter=parameter),
            )
        return dependencies

    def _resolve_parameter_annotation(
        self,
        *,
        parameter: Parameter,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
        provider_name: str,
    ) -> Any:
        annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
        if annotation is not _MISSING_ANNOTATION:
            return annotation

        raw_annotation = parameter.annotation
        if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
            return raw_annotation

        if parameter.default is not Parameter.empty:
            return _MISSING_ANNOTATION

        msg = (
            f"Unable to infer dependency for required parameter '{parameter.name}' "
            f"in constructor '{provider_name}'. Add a type annotation or a default."
        )
        self._raise_invalid_registration_error(msg=msg, annotation_error=annotation_error)
        return _MISSING_ANNOTATION  # pragma: no cover

    def _resolved_type_hints(self, constructor: Any) -> tuple[dict[str, Any], Exception | None]:
        annotations: dict[str, Any] = {}
        annotation_error: Exception | None = None

        if inspect.isclass(constructor):
            # class-body annotations never type __init__ parameters
            targets: tuple[Any, ...] = (constructor.__init__,)
        elif inspect.isfunction(constructor) or inspect.ismethod(constructor):
            targets = (constructor,)
        else:
            targets = (type(constructor).__call__,)

        for target in targets:
            try:
                target_hints = get_type_hints(target, include_extras=True)
            except (AttributeError, NameError, TypeError) as error:
                if annotation_error is None:
                    annotation_error = error
                continue
            for hint_name, hint in target_hints.items():
                annotations.setdefault(hint_name, hint)

        if inspect.isclass(constructor):
            annotations.pop("return", None)
        return annotations, annotation_error

    def _raw_return_annotation(self, constructor: Any) -> Any:
        try:
            raw_return_annotation = inspect.signature(constructor).return_annotation
        except (TypeError, ValueError):
            return _MISSING_ANNOTATION
        if raw_return_annotation is inspect.Signature.empty or isinstance(
            raw_return_annotation,
            str,
        ):
            return _MISSING_ANNOTATION
        return raw_return_annotation

    def _raise_invalid_registration_error(
        self,
        *,
        msg: str,
        annotation_error: Exception | None,
    ) -> None:
        if annotation_error is None:
            raise GraphWireInvalidRegistrationError(msg)
        full_msg = f"{msg} Original annotation error: {annotation_error}"
        raise GraphWireInvalidRegistrationError(full_msg) from annotation_error

    def _provider_name(self, constructor: Any) -> str:
        qualname = getattr(constructor, "__qualname__", None)
        if qualname is None:
            return repr(constructor)
        module = getattr(constructor, "__module__", None)
        return f"{module}.{qualname}" if module else qualname


__all__ = [
    "Constructor",
    "Provider",
    "ProviderDependency",
    "ProviderSignatureExtractor",
    "UserDependency",
]
