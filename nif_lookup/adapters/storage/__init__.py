"""Persistent record stores.

Merged records are written once per NIF and served verbatim afterwards.
"""

from nif_lookup.adapters.storage.base import (
    AbstractRecordStore,
    DirectoryMemo,
    ShardPath,
    shard_path,
)
from nif_lookup.adapters.storage.filesystem import ShardedFileStore

__all__ = [
    "AbstractRecordStore",
    "DirectoryMemo",
    "ShardPath",
    "ShardedFileStore",
    "shard_path",
]
