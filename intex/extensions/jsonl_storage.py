"""File-backed conversation storage: one JSONL file per conversation."""

from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from intex.core.types import Message
from intex.extensions.storage import StorageExtension
from intex.utils.atomic_io import AtomicFileWriter

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\s]')


def safe_filename(name: str) -> str:
    """Map a conversation id to a filesystem-safe stem."""
    return _UNSAFE_CHARS.sub("_", name).strip(".") or "_"


class JsonlStorageExtension(StorageExtension):
    """
    Stores each transcript as ``<dir>/<conversation>.jsonl``.

    The first line is a metadata record (``{"_type": "metadata", ...}``) and
    every following line is one message. Updates rewrite the whole file via
    a temp file and atomic rename, so readers never see a partial transcript.
    """

    def __init__(
        self,
        directory: str | Path,
        id: str = "jsonl-storage",
        name: str = "JSONL Storage",
        description: str = "Conversation history persisted as JSON Lines files",
    ) -> None:
        self.id = id
        self.name = name
        self.description = description
        self.directory = Path(directory).expanduser()
        self._writer = AtomicFileWriter()

    def path_for(self, conversation_id: str) -> Path:
        return self.directory / f"{safe_filename(conversation_id)}.jsonl"

    async def initialize(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"JSONL storage ready at {self.directory}")

    async def get_conversation_history(self, conversation_id: str) -> list[Message]:
        records = await self._writer.read_jsonl(self.path_for(conversation_id))
        return [r for r in records if not (isinstance(r, dict) and r.get("_type") == "metadata")]

    async def update_conversation_history(self, conversation_id: str, messages: list[Message]) -> None:
        path = self.path_for(conversation_id)
        metadata: dict[str, Any] = {
            "_type": "metadata",
            "conversation_id": conversation_id,
            "created_at": await self._created_at(path),
            "updated_at": datetime.now().isoformat(),
            "message_count": len(messages),
        }
        await self._writer.write_jsonl(path, [metadata, *messages])

    async def clear_conversation_history(self, conversation_id: str) -> None:
        await self._writer.delete(self.path_for(conversation_id))

    async def shutdown(self) -> None:
        self._writer.cleanup_stale_locks(max_locks=0)

    def list_conversations(self) -> list[dict[str, Any]]:
        """Metadata of every stored conversation, most recently updated first."""
        conversations = []
        for path in self.directory.glob("*.jsonl"):
            try:
                with open(path, encoding="utf-8") as f:
                    first_line = f.readline().strip()
                data = json.loads(first_line) if first_line else {}
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable conversation file {path}: {e}")
                continue
            if data.get("_type") == "metadata":
                conversations.append({
                    "conversation_id": data.get("conversation_id", path.stem),
                    "created_at": data.get("created_at"),
                    "updated_at": data.get("updated_at"),
                    "message_count": data.get("message_count", 0),
                    "path": str(path),
                })
        return sorted(conversations, key=lambda c: c.get("updated_at") or "", reverse=True)

    async def _created_at(self, path: Path) -> str:
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    first = json.loads(f.readline() or "{}")
                if isinstance(first, dict) and first.get("created_at"):
                    return first["created_at"]
            except (OSError, json.JSONDecodeError):
                logger.debug(f"No readable metadata in {path}; starting fresh")
        return datetime.now().isoformat()
