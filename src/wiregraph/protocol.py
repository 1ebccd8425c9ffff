"""The contract between wiregraph and a source-language frontend.

wiregraph never inspects declarations itself. A frontend implements
:class:`DiscoveryProtocol` once per source language, exposing a traversal of the
analysed program and a handful of classification queries. Node and type objects are
opaque to wiregraph; they are only handed back to the same frontend.

The program is walked a single time. Because a marker class may be declared after the
declarations that extend it, recognising a provider is split in two: a cheap
``as_potential_*`` check by name during the walk, and an exact ``is_*`` check by type
identity once the walk has found the marker.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from wiregraph.domain import BuilderDescriptor, ProviderDescriptor

__all__ = ["DiscoveryProtocol", "Node", "Type", "Visitor"]

Node = Any
Type = Any
Visitor = Callable[[Node], None]


class DiscoveryProtocol(ABC):
    """Traversal and classification of the declarations in one program.

    Every method must be deterministic, and must not raise for a well-formed node.
    """

    @abstractmethod
    def for_each_file(self, visit: Visitor) -> None:
        """Call ``visit`` on each top-level declaration of every non-library source file."""

    @abstractmethod
    def for_each_child(self, node: Node, visit: Visitor) -> None:
        """Call ``visit`` on each immediate child of ``node``."""

    @abstractmethod
    def as_potential_provider(self, node: Node) -> Optional[Node]:
        """Return ``node`` if it looks like a provider by name, otherwise None.

        May return false positives but never false negatives.
        """

    @abstractmethod
    def as_potential_builder(self, node: Node) -> Optional[Node]:
        """Return ``node`` if it looks like a builder by name, otherwise None."""

    @abstractmethod
    def as_provider_marker(self, node: Node) -> Optional[Type]:
        """Return the resolved type of the Provider marker if ``node`` declares it."""

    @abstractmethod
    def as_builder_marker(self, node: Node) -> Optional[Type]:
        """Return the resolved type of the Builder marker if ``node`` declares it."""

    @abstractmethod
    def is_provider(self, node: Node, provider_type: Type) -> bool:
        """True iff the supertypes of ``node`` include exactly ``provider_type``."""

    @abstractmethod
    def is_builder(self, node: Node, builder_type: Type) -> bool:
        """True iff the supertypes of ``node`` include exactly ``builder_type``."""

    @abstractmethod
    def describe_provider(self, node: Node) -> ProviderDescriptor:
        """Extract the name, parameter types and return type of a confirmed provider."""

    @abstractmethod
    def describe_builder(self, node: Node) -> BuilderDescriptor:
        """Extract the name and type of a confirmed builder."""
