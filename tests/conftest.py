"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_module(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a source file below tmp_path and return its resolved path."""

    def _write(relative: str, source: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        return path.resolve()

    return _write


@pytest.fixture
def isolated_imports(monkeypatch: pytest.MonkeyPatch):
    """Restore sys.path and drop modules imported during the test."""
    monkeypatch.setattr(sys, "path", list(sys.path))
    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        del sys.modules[name]


class RecordingCache:
    """ModuleCache that records calls instead of executing code."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Path]] = []

    def evict(self, path: Path) -> None:
        self.calls.append(("evict", path))

    def load_fresh(self, path: Path) -> None:
        self.calls.append(("load", path))

    @property
    def loaded(self) -> list[Path]:
        return [path for op, path in self.calls if op == "load"]

    @property
    def evicted(self) -> list[Path]:
        return [path for op, path in self.calls if op == "evict"]


class MemoryFileSystem:
    """FileSystem over a dict, with explicit modification times."""

    def __init__(self) -> None:
        self.files: dict[Path, tuple[str, int]] = {}
        self.reads: list[Path] = []

    def write(self, path: Path, source: str, mtime: int | None = None) -> None:
        if mtime is None:
            previous = self.files.get(path)
            mtime = previous[1] + 1 if previous else 1
        self.files[path] = (source, mtime)

    def touch(self, path: Path, mtime: int | None = None) -> None:
        source, previous = self.files[path]
        self.files[path] = (source, previous + 1 if mtime is None else mtime)

    def delete(self, path: Path) -> None:
        del self.files[path]

    async def read_text(self, path: Path) -> str:
        self.reads.append(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path][0]

    async def stat_mtime(self, path: Path) -> int:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path][1]


@pytest.fixture
def recording_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def bump_mtime() -> Callable[[Path], int]:
    """Move a file's mtime one second forward; returns the new st_mtime_ns."""

    def _bump(path: Path) -> int:
        stat = path.stat()
        new_mtime = stat.st_mtime_ns + 1_000_000_000
        os.utime(path, ns=(stat.st_atime_ns, new_mtime))
        return new_mtime

    return _bump
