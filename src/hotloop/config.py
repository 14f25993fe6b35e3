"""Watch configuration.

Settings are read from the ``[tool.hotloop]`` table of a ``pyproject.toml``:

    [tool.hotloop]
    poll_interval = 0.5
    search_paths = ["src"]
    exclude_patterns = ["site-packages", "migrations"]
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import tomli

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL: Final = 0.5

DEFAULT_EXCLUDE_PATTERNS: Final = (
    "site-packages",
    "dist-packages",
    "__pycache__",
    ".venv",
    ".git",
)


class ConfigError(ValueError):
    """Raised when the ``[tool.hotloop]`` table is malformed."""

    def __init__(self, source: Path, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid hotloop configuration in {source}: {reason}")


@dataclass
class WatchConfig:
    """Configuration for a watch session."""

    # Seconds to sleep between passes
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Extra roots for absolute imports, searched after the entry's directory
    search_paths: list[Path] = field(default_factory=list)

    # Path fragments that are never tracked
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))

    # File the settings came from, if any
    source: Path | None = None


def find_pyproject(start: Path) -> Path | None:
    """Find the nearest pyproject.toml walking up from ``start``."""
    directory = start if start.is_dir() else start.parent
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def _expect_list_of_str(source: Path, key: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(source, f"'{key}' must be a list of strings")
    return value


def _from_table(source: Path, table: dict[str, Any]) -> WatchConfig:
    known = {"poll_interval", "search_paths", "exclude_patterns"}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ConfigError(source, f"unknown keys: {', '.join(unknown)}")

    config = WatchConfig(source=source)

    if "poll_interval" in table:
        interval = table["poll_interval"]
        if isinstance(interval, bool) or not isinstance(interval, int | float):
            raise ConfigError(source, "'poll_interval' must be a number")
        if interval <= 0:
            raise ConfigError(source, "'poll_interval' must be positive")
        config.poll_interval = float(interval)

    if "search_paths" in table:
        base = source.parent
        config.search_paths = [
            (base / p).resolve() for p in _expect_list_of_str(source, "search_paths", table["search_paths"])
        ]

    if "exclude_patterns" in table:
        config.exclude_patterns = list(_expect_list_of_str(source, "exclude_patterns", table["exclude_patterns"]))

    return config


def load_config(path: Path | None = None, start: Path | None = None) -> WatchConfig:
    """Load watch settings.

    Args:
        path: Explicit config file. Takes precedence over discovery.
        start: File or directory to start the pyproject.toml search from.

    Returns:
        The parsed WatchConfig, or defaults when no file or table exists.

    Raises:
        ConfigError: If the file cannot be parsed or the table is invalid.
    """
    source = path or (find_pyproject(start) if start else None)
    if source is None:
        return WatchConfig()

    try:
        data = tomli.loads(source.read_text())
    except OSError as e:
        raise ConfigError(source, f"cannot read file: {e}") from e
    except tomli.TOMLDecodeError as e:
        raise ConfigError(source, str(e)) from e

    table = data.get("tool", {}).get("hotloop")
    if table is None:
        logger.debug(f"No [tool.hotloop] table in {source}, using defaults")
        return WatchConfig()
    if not isinstance(table, dict):
        raise ConfigError(source, "[tool.hotloop] must be a table")

    config = _from_table(source, table)
    logger.debug(f"Loaded configuration from {source}")
    return config
