from dataclasses import dataclass, field
from typing import Optional

import pytest

from wiregraph.dependency_graph import build_graph
from wiregraph.discovery import ProviderDiscovery, discover_providers
from wiregraph.domain import BuilderDescriptor, ProviderDescriptor
from wiregraph.errors import DiscoveryError, MissingBuilderMarker, MissingProviderMarker
from wiregraph.protocol import DiscoveryProtocol


@dataclass(eq=False)
class Declaration:
    name: str
    bases: list = field(default_factory=list)
    children: list = field(default_factory=list)
    parameter_types: tuple = ()
    return_type: str = ""
    is_marker: bool = False


class InMemoryProgram(DiscoveryProtocol):
    """Declarations held in memory; a declaration's type is the declaration itself."""

    def __init__(self, *files: list):
        self.files = files
        self.visited = []

    def for_each_file(self, visit):
        for file in self.files:
            for declaration in file:
                self.visited.append(declaration)
                visit(declaration)

    def for_each_child(self, node, visit):
        for child in node.children:
            self.visited.append(child)
            visit(child)

    def as_potential_provider(self, node) -> Optional[Declaration]:
        return node if any(base.name == "Provider" for base in node.bases) else None

    def as_potential_builder(self, node) -> Optional[Declaration]:
        return node if any(base.name == "Builder" for base in node.bases) else None

    def as_provider_marker(self, node):
        return node if node.is_marker and node.name == "Provider" else None

    def as_builder_marker(self, node):
        return node if node.is_marker and node.name == "Builder" else None

    def is_provider(self, node, provider_type) -> bool:
        return any(base is provider_type for base in node.bases)

    def is_builder(self, node, builder_type) -> bool:
        return any(base is builder_type for base in node.bases)

    def describe_provider(self, node) -> ProviderDescriptor:
        return ProviderDescriptor(
            node.name, node.name, node.parameter_types, node.return_type
        )

    def describe_builder(self, node) -> BuilderDescriptor:
        return BuilderDescriptor(node.name, node.name)


@pytest.fixture
def provider_marker():
    return Declaration("Provider", is_marker=True)


@pytest.fixture
def builder_marker():
    return Declaration("Builder", is_marker=True)


def provider_of(marker, name, *parameter_types, returns, children=()):
    return Declaration(
        name, [marker], list(children), tuple(parameter_types), returns
    )


def test_providers_declared_before_the_marker_are_confirmed(provider_marker, builder_marker):
    foo = provider_of(provider_marker, "FooProvider", returns="Foo")
    bar = provider_of(provider_marker, "BarProvider", "Foo", returns="Bar")
    program = InMemoryProgram([foo, bar], [provider_marker, builder_marker])

    providers = discover_providers(program)

    assert [p.name for p in providers] == ["FooProvider", "BarProvider"]
    assert providers[1].parameter_types == ("Foo",)
    assert providers[0].parameter_types == ()


def test_candidates_extending_another_type_named_provider_are_discarded(
    provider_marker, builder_marker
):
    impostor = Declaration("Provider")
    real = provider_of(provider_marker, "RealProvider", returns="Real")
    fake = provider_of(impostor, "FakeProvider", returns="Fake")
    program = InMemoryProgram([provider_marker, builder_marker, impostor, real, fake])

    assert [p.name for p in discover_providers(program)] == ["RealProvider"]


def test_nested_declarations_are_discovered(provider_marker, builder_marker):
    inner = provider_of(provider_marker, "InnerProvider", returns="Inner")
    module = Declaration("module", children=[provider_marker, builder_marker, inner])
    program = InMemoryProgram([module])

    assert [p.name for p in discover_providers(program)] == ["InnerProvider"]


def test_every_node_is_visited_once(provider_marker, builder_marker):
    inner = provider_of(provider_marker, "InnerProvider", returns="Inner")
    outer = provider_of(provider_marker, "OuterProvider", returns="Outer", children=[inner])
    program = InMemoryProgram([provider_marker, outer], [builder_marker])

    ProviderDiscovery(program).run()

    assert len(program.visited) == 4
    assert len({id(node) for node in program.visited}) == 4


def test_missing_provider_marker_raises(builder_marker):
    program = InMemoryProgram([builder_marker])

    with pytest.raises(MissingProviderMarker, match="Provider marker"):
        discover_providers(program)


def test_missing_builder_marker_raises(provider_marker):
    program = InMemoryProgram([provider_marker])

    with pytest.raises(MissingBuilderMarker, match="Builder marker"):
        discover_providers(program)


def test_missing_provider_marker_is_reported_first():
    with pytest.raises(MissingProviderMarker):
        discover_providers(InMemoryProgram([]))

    assert issubclass(MissingProviderMarker, DiscoveryError)
    assert issubclass(MissingBuilderMarker, DiscoveryError)


def test_builders_are_confirmed_and_described(provider_marker, builder_marker):
    app = Declaration("AppBuilder", [builder_marker])
    not_a_builder = Declaration("OtherBuilder", [Declaration("Builder")])
    program = InMemoryProgram([provider_marker, builder_marker, app, not_a_builder])

    discovery = ProviderDiscovery(program).run()

    assert discovery.builders == [BuilderDescriptor("AppBuilder", "AppBuilder")]
    assert discovery.providers == []
    assert discovery.provider_type is provider_marker
    assert discovery.builder_type is builder_marker


def test_last_declared_marker_wins(builder_marker):
    first = Declaration("Provider", is_marker=True)
    second = Declaration("Provider", is_marker=True)
    program = InMemoryProgram(
        [
            first,
            builder_marker,
            provider_of(first, "FirstProvider", returns="First"),
            provider_of(second, "SecondProvider", returns="Second"),
            second,
        ]
    )

    assert [p.name for p in discover_providers(program)] == ["SecondProvider"]


def test_running_again_does_not_walk_again(provider_marker, builder_marker):
    program = InMemoryProgram([provider_marker, builder_marker])
    discovery = ProviderDiscovery(program)

    first = discovery.run()
    visited = len(program.visited)

    assert discovery.run() is first
    assert len(program.visited) == visited


def test_discovered_providers_build_a_graph(provider_marker, builder_marker):
    program = InMemoryProgram(
        [
            provider_of(provider_marker, "QuuxProvider", "Bar", "Baz", returns="Quux"),
            provider_of(provider_marker, "BazProvider", "Bar", returns="Baz"),
            provider_of(provider_marker, "BarProvider", "Foo", "Settings", returns="Bar"),
            provider_of(provider_marker, "FooProvider", returns="Foo"),
        ],
        [provider_marker, builder_marker],
    )

    graph = build_graph(discover_providers(program))

    assert graph.build_order == ["FooProvider", "BarProvider", "BazProvider", "QuuxProvider"]
    assert graph.required_from_scope == frozenset({"Settings"})
