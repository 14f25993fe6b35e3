"""Import specifier resolution.

Maps Python import names to the source files that define them. Only files
under the configured search paths (or reachable through relative imports)
are resolvable; stdlib and installed packages never are, so they stay out
of the dependency graph.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from hotloop.config import DEFAULT_EXCLUDE_PATTERNS

logger = logging.getLogger(__name__)


class ResolutionError(LookupError):
    """Raised when an import specifier cannot be mapped to a source file."""

    def __init__(self, specifier: str, from_directory: Path | None = None):
        self.specifier = specifier
        self.from_directory = from_directory
        where = f" from {from_directory}" if from_directory else ""
        super().__init__(f"Cannot resolve '{specifier}'{where}")


def import_root(entry_path: Path) -> Path:
    """Directory the entry module is imported from.

    A package entry (``pkg/__init__.py``) is imported as ``pkg``, so its
    root is the directory holding the package.
    """
    if entry_path.name == "__init__.py":
        return entry_path.parent.parent
    return entry_path.parent


def split_specifier(specifier: str) -> tuple[int, list[str]]:
    """Split ``"..pkg.mod"`` into ``(2, ["pkg", "mod"])``."""
    stripped = specifier.lstrip(".")
    level = len(specifier) - len(stripped)
    parts = [part for part in stripped.split(".") if part] if stripped else []
    return level, parts


class PathResolver:
    """Resolves import specifiers to canonical module paths.

    Relative specifiers (leading dots) are resolved against the importing
    module's directory. Absolute specifiers are looked up in each search
    path in order.
    """

    def __init__(
        self,
        search_paths: Iterable[Path] = (),
        exclude_patterns: Iterable[str] | None = None,
    ):
        self.search_paths: list[Path] = []
        for path in search_paths:
            resolved = Path(path).resolve()
            if resolved not in self.search_paths:
                self.search_paths.append(resolved)
        self.exclude_patterns = list(
            DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns
        )

    def _is_excluded(self, path: Path) -> bool:
        path_str = path.as_posix()
        return any(pattern in path_str for pattern in self.exclude_patterns)

    def _locate(self, base: Path, parts: list[str]) -> Path | None:
        """Find the file for ``parts`` below ``base``.

        A module file wins over a package of the same name.
        """
        if not parts:
            candidates = [base / "__init__.py"]
        else:
            target = base.joinpath(*parts)
            candidates = [target.with_name(f"{target.name}.py"), target / "__init__.py"]

        for candidate in candidates:
            if candidate.is_file():
                resolved = candidate.resolve()
                if self._is_excluded(resolved):
                    return None
                return resolved
        return None

    def resolve(self, specifier: str, from_directory: Path) -> Path:
        """Resolve an import specifier to a module path.

        Args:
            specifier: Dotted import name, e.g. ``"pkg.mod"`` or ``"..util"``.
            from_directory: Directory of the importing module.

        Returns:
            Absolute, resolved path of the module's source file.

        Raises:
            ResolutionError: If no matching source file exists.
        """
        level, parts = split_specifier(specifier)
        if not level and not parts:
            raise ResolutionError(specifier, from_directory)

        if level:
            base = Path(from_directory)
            for _ in range(level - 1):
                if base.parent == base:
                    raise ResolutionError(specifier, from_directory)
                base = base.parent
            located = self._locate(base, parts)
        else:
            located = None
            for root in self.search_paths:
                located = self._locate(root, parts)
                if located is not None:
                    break

        if located is None:
            raise ResolutionError(specifier, from_directory)
        return located

    def resolve_entry(self, target: str, cwd: Path) -> Path:
        """Resolve the watched entry given on the command line.

        Accepts a path to a ``.py`` file, a path to a package directory, or
        a dotted module name importable from ``cwd``.

        Raises:
            ResolutionError: If the target names no existing Python source.
        """
        if not target:
            raise ResolutionError(target)

        candidate = (cwd / target).resolve()
        if candidate.is_file() and candidate.suffix == ".py":
            return candidate
        if candidate.is_dir() and (candidate / "__init__.py").is_file():
            return (candidate / "__init__.py").resolve()

        level, parts = split_specifier(target)
        if level or not parts or not all(part.isidentifier() for part in parts):
            raise ResolutionError(target, cwd)

        located = self._locate(cwd.resolve(), parts)
        if located is None:
            raise ResolutionError(target, cwd)
        return located
