"""Domain models used throughout the framework."""

from dataclasses import dataclass, field
from typing import NewType

__all__ = ["TypeId", "ProviderDescriptor", "BuilderDescriptor", "DependencyNode"]


TypeId = NewType("TypeId", str)
"""Opaque identity of a type in the analysed program, in practice its fully-qualified name.

Two identifiers denote the same type iff they are equal; no structural or subtype
comparison is ever made.
"""


@dataclass(frozen=True)
class ProviderDescriptor:
    """A provider declaration extracted from the analysed program.

    Attributes:
        name: The provider's declared name. Used for diagnostics only, never as a key.
        type: Rendering of the provider's declared function type.
        parameter_types: The provider's declared inputs, in declaration order.
        return_type: The type this provider constructs.
    """

    name: str
    type: str
    parameter_types: tuple[TypeId, ...]
    return_type: TypeId


@dataclass(frozen=True)
class BuilderDescriptor:
    """An entry point requesting a fully wired value.

    Attributes:
        name: The builder's declared name.
        type: The builder's own type identity.
    """

    name: str
    type: TypeId


@dataclass
class DependencyNode:
    """
    A provider descriptor augmented with the edges used by the topological sort.

    ``provided_dependency_types`` holds the parameter types some provider in the same graph
    returns; it shrinks as the sort resolves them. ``runtime_dependency_types`` holds the
    parameter types that must be supplied from outside the graph.
    """

    descriptor: ProviderDescriptor
    provided_dependency_types: list[TypeId] = field(default_factory=list)
    runtime_dependency_types: list[TypeId] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def parameter_types(self) -> tuple[TypeId, ...]:
        return self.descriptor.parameter_types

    @property
    def value(self) -> TypeId:
        """The type this node produces once it has been resolved."""
        return self.descriptor.return_type

    def has_no_incoming_edges(self) -> bool:
        return len(self.provided_dependency_types) == 0

    def has_incoming_edge_on(self, incoming: "DependencyNode") -> bool:
        return incoming.value in self.provided_dependency_types

    def remove_incoming_edge_on(self, incoming: "DependencyNode"):
        """Remove a single occurrence of ``incoming``'s type from the provided dependencies."""
        self.provided_dependency_types.remove(incoming.value)
