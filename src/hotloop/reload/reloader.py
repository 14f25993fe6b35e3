"""Module reloading.

Handles:
- Evicting modules from the module cache
- Re-executing changed modules from source
- Reloading importer chains child-first, once per cycle
"""

import importlib
import importlib.machinery
import importlib.util
import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from hotloop.reload.session import WatchSession

logger = logging.getLogger(__name__)


class ModuleStatusMissingError(RuntimeError):
    """Raised when a module scheduled for reload has no tracked status.

    Means the pass ran its steps out of order; not an external condition.
    """

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"No module status tracked for {path}")


class ModuleExecutionError(RuntimeError):
    """Raised when a reloaded module's own code fails."""

    def __init__(self, path: Path, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Executing {path} failed: {type(cause).__name__}: {cause}")


class ModuleCache(Protocol):
    """Cache of executed modules, keyed by module path."""

    def evict(self, path: Path) -> None: ...

    def load_fresh(self, path: Path) -> None: ...


class _SourceOnlyLoader(importlib.machinery.SourceFileLoader):
    """Source loader that ignores cached bytecode.

    Bytecode caches are validated by whole-second mtime and size, which
    misses quick same-length edits.
    """

    def get_code(self, fullname):
        path = self.get_filename(fullname)
        return self.source_to_code(self.get_data(path), path)


class ImportlibModuleCache:
    """ModuleCache backed by ``sys.modules``.

    Module names are derived from the file's location below the most
    specific search path that contains it, matching how the watched code
    imports itself when one root is nested in another (e.g. "src").
    """

    def __init__(self, search_paths: Iterable[Path], update_sys_path: bool = True):
        self.search_paths = [Path(p).resolve() for p in search_paths]
        if update_sys_path:
            for root in reversed(self.search_paths):
                if str(root) not in sys.path:
                    sys.path.insert(0, str(root))

    def module_name_for(self, path: Path) -> str:
        """Convert a module path to a dotted module name.

        Args:
            path: Path to a Python file.

        Returns:
            Module name (e.g., "app.handlers.users").
        """
        for root in sorted(self.search_paths, key=lambda p: len(p.parts), reverse=True):
            try:
                rel_path = path.relative_to(root)
            except ValueError:
                continue

            parts = rel_path.parts
            if parts[-1] == "__init__.py":
                parts = parts[:-1]
            else:
                parts = (*parts[:-1], Path(parts[-1]).stem)
            if parts:
                return ".".join(parts)

        return path.parent.name if path.name == "__init__.py" else path.stem

    def evict(self, path: Path) -> None:
        module_name = self.module_name_for(path)
        if sys.modules.pop(module_name, None) is not None:
            logger.debug(f"Evicted module: {module_name}")

    def load_fresh(self, path: Path) -> None:
        """Execute ``path`` from source and register the result.

        Raises:
            ModuleExecutionError: If the module raises while executing.
        """
        module_name = self.module_name_for(path)
        importlib.invalidate_caches()

        parent_name, _, child_name = module_name.rpartition(".")
        package_dir = path.parent.parent if path.name == "__init__.py" else path.parent
        if parent_name and parent_name not in sys.modules and (package_dir / "__init__.py").is_file():
            # A package executes before its submodules
            self.load_fresh(package_dir / "__init__.py")

        loader = _SourceOnlyLoader(module_name, str(path))
        spec = importlib.util.spec_from_file_location(module_name, str(path), loader=loader)
        if spec is None:
            raise ModuleExecutionError(path, ImportError(f"No module spec for {path}"))

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        if path.name == "__init__.py":
            # Submodules loaded before their package stay reachable as attributes
            prefix = f"{module_name}."
            for name, submodule in list(sys.modules.items()):
                if name.startswith(prefix) and "." not in name[len(prefix) :] and submodule is not None:
                    setattr(module, name[len(prefix) :], submodule)

        try:
            loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ModuleExecutionError(path, e) from e

        parent = sys.modules.get(parent_name) if parent_name else None
        if parent is not None:
            setattr(parent, child_name, module)

        logger.debug(f"Loaded module: {module_name}")


class ReloadScheduler:
    """Reloads changed modules and their importers.

    Each changed module is reloaded first, then its importer, then that
    module's importer, up to the entry. A module is reloaded at most once
    per cycle no matter how many changed modules lead to it.
    """

    def __init__(self, session: WatchSession, cache: ModuleCache):
        self.session = session
        self.cache = cache

    @staticmethod
    def importer_chain(path: Path, importers: dict[Path, Path | None]) -> list[Path]:
        """Return ``[path, importer, importer's importer, ..., entry]``."""
        chain: list[Path] = []
        current: Path | None = path
        while current is not None and current not in chain:
            chain.append(current)
            current = importers.get(current)
        return chain

    def reload_module(self, path: Path) -> bool:
        """Reload one module unless already reloaded this cycle.

        Returns:
            True if the module was re-executed.

        Raises:
            ModuleStatusMissingError: If ``path`` has no tracked status.
            ModuleExecutionError: If the module's code raises.
        """
        status = self.session.get_status(path)
        if status is None:
            raise ModuleStatusMissingError(path)

        if status.last_reloaded_cycle >= self.session.current_cycle:
            return False

        self.cache.evict(path)
        self.cache.load_fresh(path)
        status.last_reloaded_cycle = self.session.current_cycle
        logger.info(f"Reloaded module: {path}")
        return True

    def reload(self, changed: list[Path], importers: dict[Path, Path | None]) -> list[Path]:
        """Reload ``changed`` and everything on their importer chains.

        Args:
            changed: Changed modules in detection order.
            importers: Module to importer mapping of the current pass.

        Returns:
            Modules re-executed, in reload order.
        """
        if not changed:
            return []

        cycle = self.session.advance_cycle()
        logger.debug(f"Starting reload cycle {cycle} for {len(changed)} changed modules")

        reloaded: list[Path] = []
        for changed_path in reversed(changed):
            for path in self.importer_chain(changed_path, importers):
                if self.reload_module(path):
                    reloaded.append(path)

        return reloaded
