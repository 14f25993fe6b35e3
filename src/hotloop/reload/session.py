"""Per-session reload state."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

# Cycle numbers wrap here
MAX_CYCLE: Final = 2**53 - 1

# last_reloaded_cycle of a module never reloaded
NEVER_RELOADED: Final = -1


@dataclass
class ModuleStatus:
    """Tracked state of one module."""

    path: Path
    timestamp: int  # st_mtime_ns at last observation
    last_reloaded_cycle: int = NEVER_RELOADED


@dataclass
class WatchSession:
    """State owned by one watch of one entry module.

    Holds the module status table and the reload cycle counter. Sessions
    are independent; passes of a session must not overlap.
    """

    entry_path: Path | None
    statuses: dict[Path, ModuleStatus] = field(default_factory=dict)
    current_cycle: int = 0

    def get_status(self, path: Path) -> ModuleStatus | None:
        return self.statuses.get(path)

    def advance_cycle(self) -> int:
        """Start a new reload cycle and return its number."""
        self.current_cycle = (self.current_cycle + 1) % MAX_CYCLE
        if self.current_cycle == 0:
            # Old stamps would compare >= every new cycle after the wrap
            logger.debug("Reload cycle counter wrapped, resetting reload stamps")
            for status in self.statuses.values():
                status.last_reloaded_cycle = NEVER_RELOADED
        return self.current_cycle
