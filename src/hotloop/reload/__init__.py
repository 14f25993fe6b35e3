"""Hot-reload passes.

- Per-session module status and reload cycle tracking
- Modification-time change detection
- Pruning of modules that left the graph
- Child-first reloading of importer chains
- The poll loop tying them together
"""

from hotloop.reload.engine import HotReloadEngine, PassReport
from hotloop.reload.pruner import prune_stale_modules
from hotloop.reload.reloader import (
    ImportlibModuleCache,
    ModuleCache,
    ModuleExecutionError,
    ModuleStatusMissingError,
    ReloadScheduler,
)
from hotloop.reload.session import ModuleStatus, WatchSession
from hotloop.reload.watcher import ChangeDetector

__all__ = [
    "ChangeDetector",
    "HotReloadEngine",
    "ImportlibModuleCache",
    "ModuleCache",
    "ModuleExecutionError",
    "ModuleStatus",
    "ModuleStatusMissingError",
    "PassReport",
    "ReloadScheduler",
    "WatchSession",
    "prune_stale_modules",
]
