from textwrap import dedent

import pytest

from wiregraph import PythonProgram, make_graph
from wiregraph.errors import CycleDetected, GraphError, NoStartNode

INJECT = "class Provider:\n    pass\n\n\nclass Builder:\n    pass\n"

APP = dedent(
    """
    from inject import Builder, Provider


    class Settings:
        pass


    class Database:
        pass


    class Service:
        pass


    class Request:
        pass


    class SettingsProvider(Provider):
        @staticmethod
        def provide() -> Settings:
            return Settings()


    class ServiceProvider(Provider):
        @staticmethod
        def provide(database: Database, request: Request) -> Service:
            return Service()


    class DatabaseProvider(Provider):
        @staticmethod
        def provide(settings: Settings) -> Database:
            return Database()


    class Application(Builder):
        service: Service
    """
)


def program_of(app_source: str) -> PythonProgram:
    return PythonProgram.from_sources({"inject": INJECT, "app": app_source})


def test_make_graph_orders_discovered_providers():
    graph = make_graph(program_of(APP))

    assert graph.build_order == ["SettingsProvider", "DatabaseProvider", "ServiceProvider"]
    assert graph.required_from_scope == frozenset({"app.Request"})


def test_make_graph_can_require_complete_wiring():
    with pytest.raises(GraphError, match=r"Missing dependencies \['app.Request'\]"):
        make_graph(program_of(APP), require_complete=True)


def test_make_graph_accepts_complete_wiring_when_required():
    source = APP.replace("database: Database, request: Request", "database: Database")

    graph = make_graph(program_of(source), require_complete=True)

    assert graph.required_from_scope == frozenset()


def test_make_graph_reports_cycles():
    source = APP + dedent(
        """

        class Left:
            pass


        class Right:
            pass


        class LeftProvider(Provider):
            @staticmethod
            def provide(right: Right, settings: Settings) -> Left:
                return Left()


        class RightProvider(Provider):
            @staticmethod
            def provide(left: Left) -> Right:
                return Right()
        """
    )

    with pytest.raises(CycleDetected) as error:
        make_graph(program_of(source))

    assert [name for name, _ in error.value.unresolved] == ["LeftProvider", "RightProvider"]


def test_make_graph_reports_missing_start_node():
    source = dedent(
        """
        from inject import Provider


        class Egg:
            pass


        class Chicken:
            pass


        class EggProvider(Provider):
            @staticmethod
            def provide(chicken: Chicken) -> Egg:
                return Egg()


        class ChickenProvider(Provider):
            @staticmethod
            def provide(egg: Egg) -> Chicken:
                return Chicken()
        """
    )

    with pytest.raises(NoStartNode):
        make_graph(program_of(source))
