"""A :class:`DiscoveryProtocol` for Python source code.

Python source is parsed with :mod:`ast` and never imported or executed. Types are
identified by their fully-qualified dotted name, worked out from the module-level
bindings (``class``, ``def``, assignments and imports) of the module a name is used in.

Providers are classes extending the ``Provider`` marker class, with a single method
named ``provide`` whose annotated parameters are the provider's dependencies and whose
return annotation is the type it provides::

    class Provider:
        pass

    class DatabaseProvider(Provider):
        @staticmethod
        def provide(settings: Settings) -> Database:
            return Database(settings.url)

Builders are classes extending the ``Builder`` marker class. A marker class is one
named after the marker with no members at all.
"""

import ast
import builtins
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional

from wiregraph.domain import BuilderDescriptor, ProviderDescriptor, TypeId
from wiregraph.errors import ProviderDeclarationError
from wiregraph.protocol import DiscoveryProtocol, Visitor

__all__ = ["SourceModule", "SourceNode", "PythonProgram"]

logger = logging.getLogger(__name__)

PROVIDER_MARKER = "Provider"
BUILDER_MARKER = "Builder"
PROVIDE_METHOD = "provide"

_BUILTIN_NAMES = frozenset(dir(builtins))


@dataclass(frozen=True)
class SourceModule:
    """A parsed Python module.

    Attributes:
        name: Dotted module name. A package's ``__init__`` module takes the package's name.
        tree: The parsed module.
        is_package: Whether this is a package's ``__init__`` module.
        bindings: Module-level names mapped to the fully-qualified names they refer to.
    """

    name: str
    tree: ast.Module
    is_package: bool = False
    bindings: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "bindings", _module_bindings(self, self.tree.body))

    @staticmethod
    def parse(name: str, source: str, filename: str = "<unknown>") -> "SourceModule":
        """Parse ``source`` as the module ``name``.

        A name ending in ``.__init__`` declares a package's ``__init__`` module.
        """
        is_package = name == "__init__" or name.endswith(".__init__")
        if is_package:
            name = name[: -len("__init__")].rstrip(".")
        return SourceModule(name, ast.parse(source, filename=filename), is_package)

    @property
    def package(self) -> str:
        return self.name if self.is_package else self.name.rpartition(".")[0]

    def qualify(self, name: str) -> str:
        return f"{self.name}.{name}" if self.name else name


@dataclass(frozen=True)
class SourceNode:
    """An AST node together with the module it was parsed from."""

    module: SourceModule
    node: ast.AST


class PythonProgram(DiscoveryProtocol):
    """Providers and builders declared in a set of Python modules.

    Args:
        modules: The modules making up the program.
        provider_marker: Name of the provider marker class.
        builder_marker: Name of the builder marker class.
        provide_method: Name of the method that declares a provider's signature.
    """

    def __init__(
        self,
        modules: Iterable[SourceModule],
        provider_marker: str = PROVIDER_MARKER,
        builder_marker: str = BUILDER_MARKER,
        provide_method: str = PROVIDE_METHOD,
    ):
        self.modules = sorted(modules, key=lambda module: module.name)
        self._provider_marker = provider_marker
        self._builder_marker = builder_marker
        self._provide_method = provide_method

    @classmethod
    def from_sources(cls, sources: Mapping[str, str], **kwargs) -> "PythonProgram":
        """Build a program from source text keyed by module name.

        Example:
            >>> program = PythonProgram.from_sources({
            ...     "app.inject": "class Provider: pass",
            ...     "app.__init__": "",
            ... })
        """
        return cls(
            [SourceModule.parse(name, source, f"<{name}>") for name, source in sources.items()],
            **kwargs,
        )

    @classmethod
    def from_directory(
        cls, root, exclude: Iterable[str] = (), **kwargs
    ) -> "PythonProgram":
        """Build a program from every ``.py`` file below ``root``.

        Stub files (``.pyi``) only describe libraries and are ignored. If ``root`` is
        itself a package its name prefixes every module name.

        Args:
            root: Directory to load modules from.
            exclude: Glob patterns, matched against paths relative to ``root``, of files to skip.
        """
        root = Path(root)
        base = root.parent if (root / "__init__.py").exists() else root
        exclude = list(exclude)

        modules = []
        for path in sorted(root.rglob("*.py")):
            relative = path.relative_to(root)
            if any(relative.match(pattern) for pattern in exclude):
                logger.debug("Skipping excluded file %s", path)
                continue
            name = ".".join(path.relative_to(base).with_suffix("").parts)
            modules.append(
                SourceModule.parse(name, path.read_text(encoding="utf-8"), str(path))
            )
            logger.debug("Loaded module %s from %s", modules[-1].name, path)
        return cls(modules, **kwargs)

    def for_each_file(self, visit: Visitor) -> None:
        for module in self.modules:
            for statement in module.tree.body:
                visit(SourceNode(module, statement))

    def for_each_child(self, node: SourceNode, visit: Visitor) -> None:
        for child in ast.iter_child_nodes(node.node):
            visit(SourceNode(node.module, child))

    def as_potential_provider(self, node: SourceNode) -> Optional[SourceNode]:
        return node if _extends_by_name(node, self._provider_marker) else None

    def as_potential_builder(self, node: SourceNode) -> Optional[SourceNode]:
        return node if _extends_by_name(node, self._builder_marker) else None

    def as_provider_marker(self, node: SourceNode) -> Optional[TypeId]:
        return _as_marker(node, self._provider_marker)

    def as_builder_marker(self, node: SourceNode) -> Optional[TypeId]:
        return _as_marker(node, self._builder_marker)

    def is_provider(self, node: SourceNode, provider_type: TypeId) -> bool:
        return _extends_exactly(node, provider_type)

    def is_builder(self, node: SourceNode, builder_type: TypeId) -> bool:
        return _extends_exactly(node, builder_type)

    def describe_provider(self, node: SourceNode) -> ProviderDescriptor:
        class_def = node.node
        method = next(
            (
                statement
                for statement in class_def.body
                if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef))
                and statement.name == self._provide_method
            ),
            None,
        )
        if method is None:
            raise ProviderDeclarationError(
                class_def.name, f"does not declare a {self._provide_method} method"
            )

        arguments = method.args
        if arguments.vararg or arguments.kwarg:
            raise ProviderDeclarationError(
                class_def.name, "must not take variadic parameters"
            )
        parameters = arguments.posonlyargs + arguments.args
        if not _is_static(method):
            if not parameters:
                raise ProviderDeclarationError(
                    class_def.name,
                    f"{self._provide_method} must be a staticmethod or take self or cls",
                )
            parameters = parameters[1:]
        parameters = parameters + arguments.kwonlyargs

        for parameter in parameters:
            if parameter.annotation is None:
                raise ProviderDeclarationError(
                    class_def.name, f"parameter {parameter.arg} is not annotated"
                )
        if method.returns is None:
            raise ProviderDeclarationError(
                class_def.name, "does not annotate its return type"
            )

        signature = "({}) -> {}".format(
            ", ".join(
                f"{parameter.arg}: {ast.unparse(parameter.annotation)}"
                for parameter in parameters
            ),
            ast.unparse(method.returns),
        )
        if isinstance(method, ast.AsyncFunctionDef):
            signature = "async " + signature

        return ProviderDescriptor(
            class_def.name,
            signature,
            tuple(_type_of(node.module, parameter.annotation) for parameter in parameters),
            _type_of(node.module, method.returns),
        )

    def describe_builder(self, node: SourceNode) -> BuilderDescriptor:
        return BuilderDescriptor(node.node.name, TypeId(node.module.qualify(node.node.name)))


def _module_bindings(module: SourceModule, statements: list[ast.stmt]) -> dict[str, str]:
    """Map module-level names to what they refer to, later bindings replacing earlier ones.

    Statements nested in ``if``, ``try`` and ``with`` blocks count, so that imports
    guarded by ``if TYPE_CHECKING:`` are seen.
    """
    bindings = {}
    for statement in statements:
        if isinstance(statement, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            bindings[statement.name] = module.qualify(statement.name)
        elif isinstance(statement, ast.Import):
            for alias in statement.names:
                if alias.asname:
                    bindings[alias.asname] = alias.name
                else:
                    head = alias.name.partition(".")[0]
                    bindings[head] = head
        elif isinstance(statement, ast.ImportFrom):
            source = _imported_module(module, statement)
            for alias in statement.names:
                if alias.name == "*":
                    continue
                target = f"{source}.{alias.name}" if source else alias.name
                bindings[alias.asname or alias.name] = target
        elif isinstance(statement, (ast.Assign, ast.AnnAssign)):
            targets = statement.targets if isinstance(statement, ast.Assign) else [statement.target]
            for target in targets:
                if isinstance(target, ast.Name):
                    bindings[target.id] = module.qualify(target.id)
        elif isinstance(statement, ast.If):
            bindings.update(_module_bindings(module, statement.body + statement.orelse))
        elif isinstance(statement, ast.Try):
            bindings.update(
                _module_bindings(
                    module,
                    statement.body
                    + [s for handler in statement.handlers for s in handler.body]
                    + statement.orelse
                    + statement.finalbody,
                )
            )
        elif isinstance(statement, ast.With):
            bindings.update(_module_bindings(module, statement.body))
    return bindings


def _imported_module(module: SourceModule, statement: ast.ImportFrom) -> str:
    if statement.level == 0:
        return statement.module or ""
    parts = module.package.split(".") if module.package else []
    if statement.level > 1:
        parts = parts[: len(parts) - (statement.level - 1)]
    if statement.module:
        parts.append(statement.module)
    return ".".join(parts)


def _type_of(module: SourceModule, expression: ast.expr) -> TypeId:
    """Resolve a type expression to its fully-qualified name.

    Example:
        >>> # with "from typing import Optional" and "from .models import User" in app.services
        >>> _type_of(module, ast.parse("Optional[User]", mode="eval").body)
        'typing.Optional[app.models.User]'
    """
    return TypeId(_render(module, expression))


def _render(module: SourceModule, expression: ast.expr) -> str:
    if isinstance(expression, ast.Name):
        return _resolve_name(module, expression.id)
    if isinstance(expression, ast.Attribute):
        return f"{_render(module, expression.value)}.{expression.attr}"
    if isinstance(expression, ast.Constant):
        if isinstance(expression.value, str):
            return _render_forward_reference(module, expression.value)
        if expression.value is None:
            return "builtins.None"
        if expression.value is Ellipsis:
            return "..."
        return repr(expression.value)
    if isinstance(expression, ast.Subscript):
        index = expression.slice
        arguments = index.elts if isinstance(index, ast.Tuple) else [index]
        origin = _render(module, expression.value)
        if origin.rpartition(".")[2] == "Literal":
            rendered = ", ".join(ast.unparse(argument) for argument in arguments)
        else:
            rendered = ", ".join(_render(module, argument) for argument in arguments)
        return f"{origin}[{rendered}]"
    if isinstance(expression, ast.List):
        return "[{}]".format(", ".join(_render(module, element) for element in expression.elts))
    if isinstance(expression, ast.BinOp) and isinstance(expression.op, ast.BitOr):
        return f"{_render(module, expression.left)} | {_render(module, expression.right)}"
    return ast.unparse(expression)


def _render_forward_reference(module: SourceModule, reference: str) -> str:
    try:
        parsed = ast.parse(reference.strip(), mode="eval")
    except SyntaxError:
        return reference
    return _render(module, parsed.body)


def _resolve_name(module: SourceModule, name: str) -> str:
    if name in module.bindings:
        return module.bindings[name]
    if name in _BUILTIN_NAMES:
        return f"builtins.{name}"
    return module.qualify(name)


def _base_name(expression: ast.expr) -> Optional[str]:
    if isinstance(expression, ast.Name):
        return expression.id
    if isinstance(expression, ast.Attribute):
        return expression.attr
    return None


def _extends_by_name(node: SourceNode, marker: str) -> bool:
    """Whether a base of the class is named ``marker``, as written or once imports are resolved."""
    class_def = node.node
    return isinstance(class_def, ast.ClassDef) and any(
        _base_name(base) == marker or _render(node.module, base).rpartition(".")[2] == marker
        for base in class_def.bases
    )


def _extends_exactly(node: SourceNode, marker_type: TypeId) -> bool:
    return any(_type_of(node.module, base) == marker_type for base in node.node.bases)


def _as_marker(node: SourceNode, marker: str) -> Optional[TypeId]:
    class_def = node.node
    if not isinstance(class_def, ast.ClassDef) or class_def.name != marker:
        return None
    if not all(_is_empty_statement(statement) for statement in class_def.body):
        return None
    return TypeId(node.module.qualify(class_def.name))


def _is_empty_statement(statement: ast.stmt) -> bool:
    # pass, ... or a docstring
    return isinstance(statement, ast.Pass) or (
        isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Constant)
    )


def _is_static(method: ast.AST) -> bool:
    return any(_base_name(decorator) == "staticmethod" for decorator in method.decorator_list)
