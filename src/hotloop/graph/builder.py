"""Dependency graph construction.

Walks the import graph depth-first from the entry module and returns one
edge per reachable module, naming the module that first imported it.
Sibling imports are explored concurrently; the walk joins before
returning.
"""

import asyncio
import logging
from pathlib import Path
from typing import NamedTuple

from hotloop.filesystem import FileSystem
from hotloop.graph.extractor import Resolver, extract_imports

logger = logging.getLogger(__name__)


class DependencyEdge(NamedTuple):
    """A module and the module that imports it (None for the entry)."""

    module: Path
    importer: Path | None


class DependencyGraphBuilder:
    """Builds the list of dependency edges reachable from an entry module."""

    def __init__(self, filesystem: FileSystem, resolver: Resolver):
        self.filesystem = filesystem
        self.resolver = resolver

    async def build(self, entry_path: Path | None) -> list[DependencyEdge]:
        """Walk the import graph from ``entry_path``.

        Args:
            entry_path: Resolved path of the entry module. None yields an
                empty graph.

        Returns:
            Edges in first-discovery order. Order among siblings depends on
            I/O completion.
        """
        edges: list[DependencyEdge] = []
        if entry_path is None:
            return edges

        await self._visit(entry_path, None, edges, set())
        logger.debug(f"Dependency walk from {entry_path} found {len(edges)} modules")
        return edges

    async def _visit(
        self,
        module_path: Path,
        importer: Path | None,
        edges: list[DependencyEdge],
        visited: set[Path],
    ) -> None:
        # Marked before the first await: the event loop runs one visit at a
        # time up to here, so no sibling can claim the same module.
        if module_path in visited:
            return
        visited.add(module_path)
        edges.append(DependencyEdge(module_path, importer))

        try:
            source = await self.filesystem.read_text(module_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Cannot read {module_path}, treating as leaf: {e}")
            return

        dependencies = extract_imports(source, module_path, self.resolver)
        await asyncio.gather(
            *(self._visit(dependency, module_path, edges, visited) for dependency in dependencies)
        )


def active_module_paths(edges: list[DependencyEdge]) -> list[Path]:
    """Unique module paths of ``edges`` in first-seen order."""
    return list(dict.fromkeys(edge.module for edge in edges))


def importer_map(edges: list[DependencyEdge]) -> dict[Path, Path | None]:
    """Map each module to its importer. The last edge for a module wins."""
    return {edge.module: edge.importer for edge in edges}
