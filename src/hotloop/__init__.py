"""hotloop - incremental hot-reload for Python source trees."""

__version__ = "0.1.0"

from hotloop.config import WatchConfig, load_config  # noqa: E402
from hotloop.reload.engine import HotReloadEngine, PassReport  # noqa: E402
from hotloop.reload.session import ModuleStatus, WatchSession  # noqa: E402

__all__ = [
    "HotReloadEngine",
    "ModuleStatus",
    "PassReport",
    "WatchConfig",
    "WatchSession",
    "__version__",
    "load_config",
]
