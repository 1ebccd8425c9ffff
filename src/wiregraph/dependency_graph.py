"""Topological ordering of providers into a validated dependency graph.

This module provides the core ordering logic of wiregraph. Providers are categorised
(see :mod:`wiregraph.provider_set`) and then sorted with Kahn's algorithm, so that
every provider is listed after all the providers whose output it consumes. When no
such order exists the sort reports why: either no provider could be started at all,
or some providers were left waiting on each other.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable

from wiregraph.domain import DependencyNode, ProviderDescriptor, TypeId
from wiregraph.errors import CycleDetected, NoStartNode
from wiregraph.provider_set import make_provider_set

__all__ = ["DependencyGraph", "build_graph", "topo_sort"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyGraph:
    """Providers in an order in which they can be constructed."""

    nodes: tuple[DependencyNode, ...]
    """Fully drained nodes; each comes after every node it depended on internally."""

    @property
    def build_order(self) -> list[str]:
        """Provider names in construction order."""
        return [node.name for node in self.nodes]

    @property
    def required_from_scope(self) -> FrozenSet[TypeId]:
        """Types that must be supplied from outside the graph."""
        return frozenset(
            dependency for node in self.nodes for dependency in node.runtime_dependency_types
        )

    @staticmethod
    def build_with_nodes(nodes: list[DependencyNode]) -> "DependencyGraph":
        """Sort already categorised nodes into a graph.

        The nodes are drained in place and must not be shared with another build.

        Raises:
            NoStartNode: If no node is ready before any edge has been removed.
            CycleDetected: If nodes still have unresolved dependencies once sorting stops.
        """
        return DependencyGraph(tuple(topo_sort(nodes)))


def build_graph(descriptors: Iterable[ProviderDescriptor]) -> DependencyGraph:
    """Categorise the given providers and sort them into a :class:`DependencyGraph`.

    Args:
        descriptors: Providers discovered in a program.

    Returns:
        The validated graph.

    Raises:
        NoStartNode: If every provider has an internal dependency, or there are no providers.
        CycleDetected: If a cycle or an unresolvable chain prevents ordering every provider.

    Example:
        >>> graph = build_graph(discover_providers(program))
        >>> print(graph.build_order)
    """
    provider_set = make_provider_set(descriptors)
    return DependencyGraph.build_with_nodes(provider_set.nodes)


def topo_sort(nodes: list[DependencyNode]) -> list[DependencyNode]:
    """
    Perform a topological sort of the given nodes.

    Ready nodes are kept on a stack, so when several nodes are ready at once the most
    recently readied one is emitted first. Resolving a node removes a single occurrence
    of its type from each dependent; a node depending twice on the same provided type
    therefore never drains and is reported as part of a cycle.

    Returns:
        The nodes in an order where all dependencies of each node come before it.

    Raises:
        NoStartNode: If no node is ready to begin with.
        CycleDetected: If any node still has incoming edges once no more nodes are ready.
    """
    ready = [node for node in nodes if node.has_no_incoming_edges()]
    if len(ready) == 0:
        raise NoStartNode([node.name for node in nodes])

    ordered = []
    while len(ready) > 0:
        next_node = ready.pop()
        logger.debug("Resolved provider %s of %s", next_node.name, next_node.value)
        ordered.append(next_node)

        for dependee in nodes:
            if dependee.has_incoming_edge_on(next_node):
                dependee.remove_incoming_edge_on(next_node)
                if dependee.has_no_incoming_edges():
                    ready.append(dependee)

    unresolved = [
        (node.name, list(node.provided_dependency_types))
        for node in nodes
        if not node.has_no_incoming_edges()
    ]
    if unresolved:
        raise CycleDetected(unresolved)

    return ordered
