"""Dependency graph discovery.

- Import specifier resolution
- Import extraction from Python source
- Concurrent depth-first graph walk from the entry module
"""

from hotloop.graph.builder import DependencyEdge, DependencyGraphBuilder, active_module_paths, importer_map
from hotloop.graph.extractor import extract_imports
from hotloop.graph.resolver import PathResolver, ResolutionError

__all__ = [
    "DependencyEdge",
    "DependencyGraphBuilder",
    "PathResolver",
    "ResolutionError",
    "active_module_paths",
    "extract_imports",
    "importer_map",
]
