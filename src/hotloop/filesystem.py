"""Async filesystem access for the graph builder and change detector."""

import asyncio
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Filesystem operations used by a watch pass.

    Both methods raise OSError (FileNotFoundError when the file is gone).
    """

    async def read_text(self, path: Path) -> str: ...

    async def stat_mtime(self, path: Path) -> int: ...


class LocalFileSystem:
    """FileSystem backed by the local disk.

    Blocking calls run in worker threads so sibling reads and stats of a
    pass proceed concurrently.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    async def read_text(self, path: Path) -> str:
        return await asyncio.to_thread(path.read_text, encoding=self.encoding)

    async def stat_mtime(self, path: Path) -> int:
        stat = await asyncio.to_thread(path.stat)
        return stat.st_mtime_ns
