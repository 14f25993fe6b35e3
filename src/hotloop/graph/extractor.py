"""Import discovery for a single module."""

import ast
import logging
from pathlib import Path
from typing import Protocol

from hotloop.graph.resolver import ResolutionError

logger = logging.getLogger(__name__)

# Calls treated as dynamic imports when given a single string literal
DYNAMIC_IMPORT_CALLS = frozenset({"importlib.import_module", "import_module", "__import__"})


class Resolver(Protocol):
    def resolve(self, specifier: str, from_directory: Path) -> Path: ...


def _call_name(func: ast.expr) -> str | None:
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name):
        return f"{func.value.id}.{func.attr}"
    return None


def dotted_prefixes(specifier: str) -> list[str]:
    """Expand ``"a.b.c"`` to ``["a", "a.b", "a.b.c"]``.

    Importing a submodule executes every parent package first. Leading dots
    of relative specifiers are kept on each prefix.
    """
    stripped = specifier.lstrip(".")
    dots = specifier[: len(specifier) - len(stripped)]
    if not stripped:
        return []
    parts = stripped.split(".")
    return [dots + ".".join(parts[: i + 1]) for i in range(len(parts))]


class ImportCollector(ast.NodeVisitor):
    """Collects import specifiers in pre-order."""

    def __init__(self) -> None:
        self.specifiers: list[str] = []

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.specifiers.extend(dotted_prefixes(alias.name))

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        base = "." * (node.level or 0) + (node.module or "")
        if node.module:
            self.specifiers.extend(dotted_prefixes(base))
        for alias in node.names:
            if alias.name == "*":
                continue
            # Either a submodule or an attribute; attributes fail to resolve
            separator = "." if node.module else ""
            self.specifiers.append(f"{base}{separator}{alias.name}")

    def visit_Call(self, node: ast.Call) -> None:
        if (
            _call_name(node.func) in DYNAMIC_IMPORT_CALLS
            and len(node.args) == 1
            and not node.keywords
            and isinstance(node.args[0], ast.Constant)
            and isinstance(node.args[0].value, str)
        ):
            self.specifiers.extend(dotted_prefixes(node.args[0].value))
        self.generic_visit(node)


def collect_specifiers(source: str) -> list[str]:
    """Return the import specifiers of ``source`` in discovery order.

    Raises:
        SyntaxError: If the source does not parse.
    """
    tree = ast.parse(source)
    collector = ImportCollector()
    collector.visit(tree)
    return collector.specifiers


def extract_imports(source: str, module_path: Path, resolver: Resolver) -> list[Path]:
    """Return the resolved paths of everything ``module_path`` imports.

    Unparseable source yields no imports. Specifiers that do not resolve
    are dropped.
    """
    if not source:
        return []

    try:
        specifiers = collect_specifiers(source)
    except (SyntaxError, ValueError) as e:
        logger.debug(f"Cannot parse {module_path}: {e}")
        return []

    containing_dir = module_path.parent
    resolved_paths: list[Path] = []
    for specifier in specifiers:
        try:
            resolved = resolver.resolve(specifier, containing_dir)
        except ResolutionError:
            logger.debug(f"Unresolved import '{specifier}' in {module_path}")
            continue
        if resolved == module_path or resolved in resolved_paths:
            continue
        resolved_paths.append(resolved)

    return resolved_paths
