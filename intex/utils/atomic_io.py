"""Atomic file writes for file-backed conversation storage.

Writes go to a temp file in the target directory and are moved into place
with ``Path.replace``; per-path asyncio locks serialize writers in-process.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

from loguru import logger


class AtomicFileWriter:
    """Per-path locked, temp-then-rename file writer.

    Usage::

        writer = AtomicFileWriter()
        await writer.write_jsonl(path, records)
        records = await writer.read_jsonl(path)
    """

    def __init__(self) -> None:
        self._locks: dict[Path, asyncio.Lock] = {}

    def lock_for(self, path: Path) -> asyncio.Lock:
        resolved = path.resolve()
        if resolved not in self._locks:
            self._locks[resolved] = asyncio.Lock()
        return self._locks[resolved]

    async def write_text(self, path: Path, content: str, encoding: str = "utf-8") -> None:
        """Atomically replace *path* with *content*.

        Raises ``OSError`` on failure after removing the temp file.
        """
        async with self.lock_for(path):
            self._replace(path, content.encode(encoding))

    async def write_jsonl(self, path: Path, records: Iterable[Any]) -> None:
        """Atomically rewrite *path* with one JSON document per line."""
        content = "".join(json.dumps(r, ensure_ascii=False, default=str) + "\n" for r in records)
        await self.write_text(path, content)

    async def read_jsonl(self, path: Path) -> list[Any]:
        """Read every non-blank line of *path* as JSON; a missing file reads as empty."""
        async with self.lock_for(path):
            if not path.exists():
                return []
            records = []
            with open(path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        records.append(json.loads(line))
            return records

    async def delete(self, path: Path) -> bool:
        async with self.lock_for(path):
            if path.exists():
                path.unlink()
                return True
            return False

    def cleanup_stale_locks(self, max_locks: int = 100) -> None:
        """Drop lock references to bound memory in long-running processes."""
        if len(self._locks) > max_locks:
            count = len(self._locks)
            self._locks = {p: lock for p, lock in self._locks.items() if lock.locked()}
            logger.debug(f"Cleared {count - len(self._locks)} idle file locks")

    @staticmethod
    def _replace(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            try:
                os.write(fd, data)
            finally:
                os.close(fd)
            Path(temp_path).replace(path)
        except OSError:
            Path(temp_path).unlink(missing_ok=True)
            raise
