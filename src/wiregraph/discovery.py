"""Discovery of provider and builder declarations through a :class:`DiscoveryProtocol`."""

import logging
from dataclasses import dataclass
from typing import Optional

from wiregraph.domain import BuilderDescriptor, ProviderDescriptor
from wiregraph.errors import MissingBuilderMarker, MissingProviderMarker
from wiregraph.protocol import DiscoveryProtocol, Node, Type

__all__ = ["Discovery", "ProviderDiscovery", "discover_providers"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Discovery:
    """Declarations confirmed in a program."""

    providers: list[ProviderDescriptor]
    """Confirmed providers, in the order the walk met them."""

    builders: list[BuilderDescriptor]
    """Confirmed builders; they are validated to exist but take no part in the graph."""

    provider_type: Type
    builder_type: Type


class ProviderDiscovery:
    """Walk a program once and confirm the providers and builders declared in it.

    Candidates are collected by name while walking; they are confirmed against the
    marker types only after the walk, when the markers have been found wherever
    they were declared.
    """

    def __init__(self, program: DiscoveryProtocol):
        self._program = program
        self._potential_providers: list[Node] = []
        self._potential_builders: list[Node] = []
        self._provider_type: Optional[Type] = None
        self._builder_type: Optional[Type] = None
        self._result: Optional[Discovery] = None

    def run(self) -> Discovery:
        """Discover the program's providers and builders.

        The program is only walked on the first call; later calls return the same result.

        Raises:
            MissingProviderMarker: If the program never declares the Provider marker.
            MissingBuilderMarker: If the program never declares the Builder marker.
        """
        if self._result is None:
            self._program.for_each_file(self._visit)
            self._result = self._confirm()
        return self._result

    def _visit(self, node: Node):
        program = self._program

        potential_provider = program.as_potential_provider(node)
        if potential_provider is not None:
            self._potential_providers.append(potential_provider)

        potential_builder = program.as_potential_builder(node)
        if potential_builder is not None:
            self._potential_builders.append(potential_builder)

        # A marker declared twice is not rejected: the last one visited wins.
        provider_type = program.as_provider_marker(node)
        if provider_type is not None:
            logger.debug("Found Provider marker %s", provider_type)
            self._provider_type = provider_type

        builder_type = program.as_builder_marker(node)
        if builder_type is not None:
            logger.debug("Found Builder marker %s", builder_type)
            self._builder_type = builder_type

        program.for_each_child(node, self._visit)

    def _confirm(self) -> Discovery:
        if self._provider_type is None:
            raise MissingProviderMarker()
        if self._builder_type is None:
            raise MissingBuilderMarker()

        program = self._program
        providers = [
            program.describe_provider(node)
            for node in self._potential_providers
            if program.is_provider(node, self._provider_type)
        ]
        builders = [
            program.describe_builder(node)
            for node in self._potential_builders
            if program.is_builder(node, self._builder_type)
        ]
        logger.debug(
            "Confirmed %d of %d potential providers and %d of %d potential builders",
            len(providers),
            len(self._potential_providers),
            len(builders),
            len(self._potential_builders),
        )
        return Discovery(providers, builders, self._provider_type, self._builder_type)


def discover_providers(program: DiscoveryProtocol) -> list[ProviderDescriptor]:
    """Return the providers declared in ``program``.

    Raises:
        MissingProviderMarker: If the program never declares the Provider marker.
        MissingBuilderMarker: If the program never declares the Builder marker.
    """
    return ProviderDiscovery(program).run().providers
