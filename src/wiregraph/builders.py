"""High level entry points for constructing dependency graphs."""

from wiregraph.dependency_graph import DependencyGraph
from wiregraph.discovery import ProviderDiscovery
from wiregraph.errors import GraphError
from wiregraph.protocol import DiscoveryProtocol
from wiregraph.provider_set import make_provider_set

__all__ = ["make_graph"]


def make_graph(program: DiscoveryProtocol, require_complete: bool = False) -> DependencyGraph:
    """Discover the providers declared in ``program`` and sort them into a graph.

    Args:
        program: The program to analyse, seen through its frontend.
        require_complete: If True, every provider dependency must be satisfied by another
            provider in the program. If False (default), dependencies no provider returns
            are left to be supplied at run time and reported in
            :attr:`DependencyGraph.required_from_scope`.

    Returns:
        The validated :class:`DependencyGraph`.

    Raises:
        DiscoveryError: If the program lacks a marker class or declares a malformed provider.
        GraphError: If the providers cannot be ordered, or ``require_complete`` is set and
            some dependencies are left to the runtime.

    Example:
        >>> graph = make_graph(PythonProgram.from_directory("src/app"))
        >>> print(graph.build_order)
    """
    discovery = ProviderDiscovery(program).run()
    provider_set = make_provider_set(discovery.providers)

    if require_complete and len(provider_set.required_from_scope) > 0:
        raise GraphError(
            f"Missing dependencies {sorted(provider_set.required_from_scope)} - "
            "to allow dependencies to be supplied at run time, "
            "call make_graph with require_complete set to False."
        )

    return DependencyGraph.build_with_nodes(provider_set.nodes)
