"""Modification-time change detection for tracked modules."""

import asyncio
import logging
from pathlib import Path

from hotloop.filesystem import FileSystem
from hotloop.reload.session import NEVER_RELOADED, ModuleStatus, WatchSession

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Detects modules whose modification time changed since the last pass.

    Timestamps are compared for equality, so a file whose mtime moves
    backwards (e.g. restored from a backup) still counts as changed.
    """

    def __init__(self, filesystem: FileSystem):
        self.filesystem = filesystem

    async def _stat(self, path: Path) -> int | None:
        try:
            return await self.filesystem.stat_mtime(path)
        except OSError as e:
            logger.debug(f"Cannot stat {path}, skipping this pass: {e}")
            return None

    async def detect(self, session: WatchSession, active: list[Path]) -> list[Path]:
        """Return the modules of ``active`` that changed, in ``active`` order.

        Modules seen for the first time count as changed. Modules that
        cannot be stat'ed count as unchanged and keep their status.
        Changed modules have their recorded timestamp updated.
        """
        timestamps = await asyncio.gather(*(self._stat(path) for path in active))

        changed: list[Path] = []
        for path, timestamp in zip(active, timestamps, strict=True):
            if timestamp is None:
                continue

            status = session.get_status(path)
            if status is not None and status.timestamp == timestamp:
                continue

            session.statuses[path] = ModuleStatus(
                path=path,
                timestamp=timestamp,
                last_reloaded_cycle=status.last_reloaded_cycle if status else NEVER_RELOADED,
            )
            changed.append(path)

        if changed:
            logger.debug(f"{len(changed)} of {len(active)} modules changed")
        return changed
