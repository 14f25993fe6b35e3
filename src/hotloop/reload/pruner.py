"""Removal of modules that fell out of the dependency graph."""

import logging
from pathlib import Path
from typing import Protocol

from hotloop.reload.session import WatchSession

logger = logging.getLogger(__name__)


class Evictor(Protocol):
    def evict(self, path: Path) -> None: ...


def prune_stale_modules(session: WatchSession, active: list[Path], cache: Evictor) -> list[Path]:
    """Forget every tracked module that is not in ``active``.

    Stale modules lose their status and are evicted from the module cache.

    Returns:
        The pruned paths.
    """
    if not session.statuses:
        return []

    active_set = set(active)
    stale = [path for path in session.statuses if path not in active_set]

    for path in stale:
        del session.statuses[path]
        cache.evict(path)
        logger.info(f"Stopped tracking {path}")

    return stale
