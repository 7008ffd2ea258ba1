"""Storage extensions for conversation history."""

from intex.extensions.jsonl_storage import JsonlStorageExtension
from intex.extensions.storage import InMemoryStorageExtension, StorageExtension
from intex.extensions.storage_manager import StorageManager

__all__ = [
    "StorageExtension",
    "InMemoryStorageExtension",
    "JsonlStorageExtension",
    "StorageManager",
]
