"""Helpers for categorising the dependencies of a set of providers.

Each provider parameter is either satisfied by another provider in the same set (a
provided dependency, which becomes an edge of the dependency graph) or has to be
supplied from outside the graph at run time (a runtime dependency). The ProviderSet
class represents a categorised collection of providers ready for graph analysis.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable

from wiregraph.domain import DependencyNode, ProviderDescriptor, TypeId

__all__ = ["ProviderSet", "make_provider_set", "categorize_dependencies_by_type"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSet:
    """
    Represents a categorised set of providers.

    Attributes:
        nodes: One freshly categorised DependencyNode per descriptor, in input order.
        provided_types: Every type returned by some provider in the set.
        required_from_scope: Every parameter type no provider in the set returns.
    """

    nodes: list[DependencyNode]
    provided_types: FrozenSet[TypeId]
    required_from_scope: FrozenSet[TypeId]


def make_provider_set(descriptors: Iterable[ProviderDescriptor]) -> ProviderSet:
    """
    Constructs a ProviderSet from provider descriptors.

    Args:
        descriptors: The providers discovered in a program.

    Returns:
        A ProviderSet holding categorised nodes and the type universes they were categorised against.
    """
    descriptors = list(descriptors)
    nodes = categorize_dependencies_by_type(descriptors)
    return ProviderSet(
        nodes,
        _provided_types(descriptors),
        frozenset(
            dependency for node in nodes for dependency in node.runtime_dependency_types
        ),
    )


def categorize_dependencies_by_type(
    descriptors: Iterable[ProviderDescriptor],
) -> list[DependencyNode]:
    """Wrap each descriptor in a new DependencyNode with its parameters categorised.

    A parameter type returned by any of the descriptors is a provided dependency,
    anything else is a runtime dependency. Relative order and duplicates are kept, so
    the two lists together always hold exactly the descriptor's parameter types.

    Nodes are created afresh on every call; the descriptors are never modified.

    Example:
        >>> foo = ProviderDescriptor("foo", "(baz: Baz) -> Foo", ("Baz",), "Foo")
        >>> bar = ProviderDescriptor("bar", "(foo: Foo) -> Bar", ("Foo",), "Bar")
        >>> [n.runtime_dependency_types for n in categorize_dependencies_by_type([foo, bar])]
        [['Baz'], []]
    """
    descriptors = list(descriptors)
    provided_types = _provided_types(descriptors)

    nodes = []
    for descriptor in descriptors:
        node = DependencyNode(descriptor)
        for dependency in descriptor.parameter_types:
            if dependency in provided_types:
                node.provided_dependency_types.append(dependency)
            else:
                node.runtime_dependency_types.append(dependency)
        logger.debug(
            "Categorised %s: provided %s, runtime %s",
            node.name,
            node.provided_dependency_types,
            node.runtime_dependency_types,
        )
        nodes.append(node)
    return nodes


def _provided_types(descriptors: list[ProviderDescriptor]) -> FrozenSet[TypeId]:
    return frozenset(descriptor.return_type for descriptor in descriptors)
