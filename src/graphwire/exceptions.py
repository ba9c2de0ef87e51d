class GraphWireError(Exception):
    """Represent a base class for all graphwire-specific failures.

    Catch this type when you want to handle any graphwire error path without
    matching each concrete exception class individually.
    """


class GraphWireInvalidRegistrationError(GraphWireError):
    """Signal an invalid constructor or override configuration.

    Raised by ``Container.provide`` when the constructor is not a callable
    returning exactly one value or a ``(value, error)`` pair, when a required
    parameter has no usable annotation, and by ``Provider.arg`` when an
    override is attached after the provider has already been built.

    This is a programming mistake discovered at process start; the process
    should not proceed.
    """


class GraphWireDuplicateProviderError(GraphWireInvalidRegistrationError):
    """Signal a second provider for an already provided dependency key.

    Every dependency key has exactly one provider. Registration order does not
    matter: whichever provider comes second is rejected.
    """


class GraphWireDependencyNotRegisteredError(GraphWireError):
    """Signal that no provider matches the requested dependency key.

    Raised by ``resolve`` and ``resolve_into``. When the key was requested
    while building another provider, the message carries the chain of
    ``[constructor: ...]`` context added on the way up.

    Typical fixes include registering a constructor that returns the key, or
    attaching an override with ``Provider.arg`` for plain values.
    """


class GraphWireAmbiguousDependencyError(GraphWireDependencyNotRegisteredError):
    """Signal that several providers satisfy a requested protocol.

    Only raised by containers created with ``strict_capabilities=True``. The
    default policy resolves a protocol to the first registered match.
    """


class GraphWireCircularDependencyError(GraphWireError):
    """Signal a dependency key requested while its own construction runs.

    Detection is lazy: only the edges traversed by the current resolution are
    checked, so a cycle in an unused part of the graph is never reported.
    """


class GraphWireConstructionError(GraphWireError):
    """Signal that a constructor raised or returned an error.

    The original exception is kept as ``__cause__``; the message names the
    provider that failed.
    """


class GraphWireLifecycleError(GraphWireError):
    """Signal that a managed instance failed to start or stop.

    Raised by ``App.start``, ``App.stop`` and ``App.run``. The exception
    raised by the service itself is kept as ``__cause__``.
    """


class GraphWireDeadlineError(GraphWireLifecycleError, TimeoutError):
    """Signal that a bounded start ran out of time.

    Start deadlines abort the remaining starts. Stop deadlines are only logged
    and never raised, so this error is not seen from ``App.stop``.
    """
