"""Static validation of dependency-injection wiring.

wiregraph finds the provider declarations of a program, the classes that construct a
value of one type from values of other types, and checks that they can be wired
together. Each provider input is either produced by another provider (an internal
edge) or has to be supplied at run time. Providers are then put in construction
order, or the reason no such order exists is reported.

Nothing is ever instantiated: the program is only analysed.

Basic Usage:
    >>> from wiregraph import PythonProgram, make_graph
    >>>
    >>> graph = make_graph(PythonProgram.from_directory("src/app"))
    >>> graph.build_order
    ['SettingsProvider', 'DatabaseProvider', 'UserServiceProvider']
    >>> graph.required_from_scope
    frozenset({'app.requests.Request'})

The framework consists of several core modules:
    - protocol: The contract a source-language frontend implements
    - discovery: Finding and confirming providers and builders through a frontend
    - provider_set: Splitting provider inputs into provided and runtime dependencies
    - dependency_graph: Topological ordering of providers
    - builders: High-level graph construction function
    - python_source: A frontend for Python source code
    - domain: Core domain models (ProviderDescriptor, DependencyNode)
    - errors: Framework-specific exceptions
"""

from wiregraph.builders import make_graph
from wiregraph.dependency_graph import DependencyGraph, build_graph
from wiregraph.discovery import discover_providers
from wiregraph.domain import BuilderDescriptor, DependencyNode, ProviderDescriptor, TypeId
from wiregraph.python_source import PythonProgram

__all__ = [
    "make_graph",
    "build_graph",
    "discover_providers",
    "DependencyGraph",
    "DependencyNode",
    "ProviderDescriptor",
    "BuilderDescriptor",
    "TypeId",
    "PythonProgram",
]
