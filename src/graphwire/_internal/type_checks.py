from __future__ import annotations

import inspect
import types
import typing
from typing import Any, Protocol, TypeGuard

_PROTOCOL_SKIPPED_BASES = frozenset({"object", "Protocol", "Generic"})
_PROTOCOL_SKIPPED_ATTRS = frozenset(
    {
        "__abstractmethods__",
        "__annotations__",
        "__annotate__",
        "__annotate_func__",
        "__annotations_cache__",
        "__dict__",
        "__doc__",
        "__init__",
        "__module__",
        "__new__",
        "__slots__",
        "__subclasshook__",
        "__weakref__",
        "__class_getitem__",
        "__firstlineno__",
        "__static_attributes__",
        "__qualname__",
        "__orig_bases__",
        "__parameters__",
        "__protocol_attrs__",
        "__non_callable_proto_members__",
        "__type_params__",
        "_is_protocol",
        "_is_runtime_protocol",
        "_abc_impl",
    },
)


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_protocol(candidate: object) -> bool:
    """Return true when candidate is a ``typing.Protocol`` class.

    Args:
        candidate: Value being checked.

    """
    if not is_runtime_class(candidate):
        return False
    if hasattr(typing, "is_protocol"):
        return typing.is_protocol(candidate)
    return candidate is not Protocol and bool(getattr(candidate, "_is_protocol", False))


def protocol_members(proto: type[Any]) -> frozenset[str]:
    """Collect the member names a class must expose to satisfy ``proto``.

    Args:
        proto: Protocol class to inspect.

    """
    declared = getattr(proto, "__protocol_attrs__", None)
    if declared is not None:
        return frozenset(declared)

    members: set[str] = set()
    for base in proto.__mro__:
        if base.__name__ in _PROTOCOL_SKIPPED_BASES:
            continue
        if not getattr(base, "_is_protocol", False):
            continue
        names = [*base.__dict__, *inspect.get_annotations(base)]
        members.update(
            name
            for name in names
            if name not in _PROTOCOL_SKIPPED_ATTRS and not name.startswith("_abc_")
        )
    return frozenset(members)


def conforms_to(candidate: type[Any], proto: type[Any]) -> bool:
    """Check structural conformance of ``candidate`` against ``proto``.

    A class conforms when it subclasses the protocol nominally, or when every
    protocol member is present as a class attribute or a declared annotation.
    Signatures are not compared.

    Args:
        candidate: Class whose members are checked.
        proto: Protocol class describing the required members.

    """
    if proto in getattr(candidate, "__mro__", ()):
        return True

    declared_annotations: set[str] = set()
    for base in getattr(candidate, "__mro__", ()):
        declared_annotations.update(inspect.get_annotations(base))

    return all(
        hasattr(candidate, member) or member in declared_annotations
        for member in protocol_members(proto)
    )


def is_assignable(candidate: type[Any], target: type[Any]) -> bool:
    """Check whether instances of ``candidate`` can be used where ``target`` is expected.

    Identity always matches. Protocol targets match structurally; other class
    targets match by subclassing.

    Args:
        candidate: Produced type of a provider.
        target: Requested dependency key.

    """
    if candidate is target:
        return True
    if not is_runtime_class(candidate) or not is_runtime_class(target):
        return False
    if is_protocol(target):
        return conforms_to(candidate, target)
    return issubclass(candidate, target)


__all__ = ["conforms_to", "is_assignable", "is_protocol", "is_runtime_class", "protocol_members"]
