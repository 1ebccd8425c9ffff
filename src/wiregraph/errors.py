"""Exceptions raised while discovering providers and building dependency graphs."""

from typing import Sequence

__all__ = [
    "DependencyError",
    "DiscoveryError",
    "MissingProviderMarker",
    "MissingBuilderMarker",
    "ProviderDeclarationError",
    "GraphError",
    "NoStartNode",
    "CycleDetected",
]


class DependencyError(Exception):
    """Base class for every failure reported by wiregraph."""

    pass


class DiscoveryError(DependencyError):
    """Raised when providers cannot be discovered in a program."""

    pass


class MissingProviderMarker(DiscoveryError):
    def __init__(self):
        super().__init__(
            "Did not locate any valid providers. Please import and use the Provider marker class"
        )


class MissingBuilderMarker(DiscoveryError):
    def __init__(self):
        super().__init__(
            "Did not locate any valid builders. Please import and use the Builder marker class"
        )


class ProviderDeclarationError(DiscoveryError):
    """Raised when a confirmed provider declaration cannot be described.

    Attributes:
        provider: Name of the offending provider declaration.
    """

    def __init__(self, provider: str, reason: str):
        super().__init__(f"Provider {provider} {reason}")
        self.provider = provider


class GraphError(DependencyError):
    """Raised when discovered providers cannot be ordered into a graph."""

    pass


class NoStartNode(GraphError):
    """No provider is satisfiable before any dependency has been resolved.

    Attributes:
        nodes: Names of the providers that were considered, in input order.
    """

    def __init__(self, nodes: Sequence[str]):
        if nodes:
            message = f"Could not find start nodes: every provider in {list(nodes)} has an internal dependency"
        else:
            message = "Could not find start nodes: no providers were given"
        super().__init__(message)
        self.nodes = tuple(nodes)


class CycleDetected(GraphError):
    """Providers remained with unresolved internal dependencies after sorting.

    Attributes:
        unresolved: Pairs of provider name and the dependency types it was still waiting on.
    """

    def __init__(self, unresolved: Sequence[tuple[str, Sequence[str]]]):
        self.unresolved = tuple((name, tuple(types)) for name, types in unresolved)
        details = ", ".join(f"{name} waiting on {list(types)}" for name, types in self.unresolved)
        super().__init__(f"Cycle identified: {details}")
