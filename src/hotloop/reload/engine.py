"""Watch loop driving detect-and-reload passes.

Flow of one pass:
1. Re-walk the dependency graph from the entry module
2. Prune modules that are no longer reachable
3. Detect modules whose modification time changed
4. Reload changed modules and their importer chains
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from hotloop import __version__
from hotloop.config import WatchConfig
from hotloop.filesystem import FileSystem, LocalFileSystem
from hotloop.graph.builder import DependencyGraphBuilder, active_module_paths, importer_map
from hotloop.graph.resolver import PathResolver, import_root
from hotloop.reload.pruner import prune_stale_modules
from hotloop.reload.reloader import ImportlibModuleCache, ModuleCache, ModuleStatusMissingError, ReloadScheduler
from hotloop.reload.session import WatchSession
from hotloop.reload.watcher import ChangeDetector

logger = logging.getLogger(__name__)


@dataclass
class PassReport:
    """Outcome of one detect-and-reload pass."""

    cycle: int
    active: list[Path] = field(default_factory=list)
    pruned: list[Path] = field(default_factory=list)
    changed: list[Path] = field(default_factory=list)
    reloaded: list[Path] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class HotReloadEngine:
    """Runs detect-and-reload passes for one watch session.

    Owns no graph state of its own: everything that survives between
    passes lives on the session.
    """

    def __init__(
        self,
        session: WatchSession,
        builder: DependencyGraphBuilder,
        detector: ChangeDetector,
        cache: ModuleCache,
        config: WatchConfig | None = None,
    ):
        self.session = session
        self.builder = builder
        self.detector = detector
        self.cache = cache
        self.config = config or WatchConfig()
        self.scheduler = ReloadScheduler(session, cache)

    @classmethod
    def create(
        cls,
        entry_path: Path,
        config: WatchConfig | None = None,
        filesystem: FileSystem | None = None,
        cache: ModuleCache | None = None,
    ) -> "HotReloadEngine":
        """Build an engine with the default collaborators.

        Absolute imports are resolved against the entry's import root first
        (the directory holding it, or holding its package), then the
        configured search paths.
        """
        config = config or WatchConfig()
        filesystem = filesystem or LocalFileSystem()
        search_paths = [import_root(entry_path), *config.search_paths]

        resolver = PathResolver(search_paths, config.exclude_patterns)
        return cls(
            session=WatchSession(entry_path),
            builder=DependencyGraphBuilder(filesystem, resolver),
            detector=ChangeDetector(filesystem),
            cache=cache or ImportlibModuleCache(search_paths),
            config=config,
        )

    async def process_module_updates(self) -> PassReport:
        """Run one full pass."""
        edges = await self.builder.build(self.session.entry_path)
        active = active_module_paths(edges)
        importers = importer_map(edges)

        pruned = prune_stale_modules(self.session, active, self.cache)
        changed = await self.detector.detect(self.session, active)
        reloaded = self.scheduler.reload(changed, importers)

        report = PassReport(
            cycle=self.session.current_cycle,
            active=active,
            pruned=pruned,
            changed=changed,
            reloaded=reloaded,
        )
        if changed or pruned:
            logger.info(
                f"Cycle {report.cycle}: {len(changed)} changed, {len(reloaded)} reloaded, "
                f"{len(pruned)} pruned ({len(active)} tracked)"
            )
        else:
            logger.debug(f"No changes in {len(active)} tracked modules")
        return report

    async def watch_loop(self, max_passes: int | None = None) -> None:
        """Run passes forever, sleeping ``poll_interval`` after each.

        A failed pass is logged and the next one runs after the usual
        delay.

        Args:
            max_passes: Stop after this many passes. None runs forever.
        """
        logger.info(f"hotloop v{__version__} watching {self.session.entry_path}")
        passes = 0
        while max_passes is None or passes < max_passes:
            try:
                await self.process_module_updates()
            except ModuleStatusMissingError:
                logger.exception("Reload pass broke session invariants")
            except Exception:
                logger.exception("Reload pass failed")

            passes += 1
            if max_passes is not None and passes >= max_passes:
                break
            await asyncio.sleep(self.config.poll_interval)
