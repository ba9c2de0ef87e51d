from graphwire._internal.container import ConstructedInstance, Container
from graphwire._internal.lifecycle import DEFAULT_START_TIMEOUT, DEFAULT_STOP_TIMEOUT, App
from graphwire._internal.providers import Provider, ProviderDependency
from graphwire._internal.startable import Startable
from graphwire.exceptions import (
    GraphWireAmbiguousDependencyError,
    GraphWireCircularDependencyError,
    GraphWireConstructionError,
    GraphWireDeadlineError,
    GraphWireDependencyNotRegisteredError,
    GraphWireDuplicateProviderError,
    GraphWireError,
    GraphWireInvalidRegistrationError,
    GraphWireLifecycleError,
)

__all__ = [
    "DEFAULT_START_TIMEOUT",
    "DEFAULT_STOP_TIMEOUT",
    "App",
    "ConstructedInstance",
    "Container",
    "GraphWireAmbiguousDependencyError",
    "GraphWireCircularDependencyError",
    "GraphWireConstructionError",
    "GraphWireDeadlineError",
    "GraphWireDependencyNotRegisteredError",
    "GraphWireDuplicateProviderError",
    "GraphWireError",
    "GraphWireInvalidRegistrationError",
    "GraphWireLifecycleError",
    "Provider",
    "ProviderDependency",
    "Startable",
]
