"""Record store interfaces and the sharded key layout.

Records are addressed by relative POSIX paths derived from the NIF, so a store
backed by something other than the local filesystem only needs to map those
paths onto its own keys.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True)
class ShardPath:
    """Location of one cached record.

    Attributes:
        directory: Two-level prefix directory, e.g. ``503/709``.
        file: Record path inside it, e.g. ``503/709/730.json``.
    """

    directory: PurePosixPath
    file: PurePosixPath


def shard_path(nif: str) -> ShardPath:
    """Split a NIF into ``<3 digits>/<3 digits>/<rest>.json``."""
    directory = PurePosixPath(nif[:3], nif[3:6])
    return ShardPath(directory=directory, file=directory / f"{nif[6:]}.json")


class DirectoryMemo:
    """Remembers which directories were already created.

    Populated lazily and never cleared. Owned by one lookup service, so tests
    get a fresh memo with every service.
    """

    def __init__(self) -> None:
        self._ensured: set[PurePosixPath] = set()

    def __contains__(self, directory: PurePosixPath) -> bool:
        return directory in self._ensured

    def __len__(self) -> int:
        return len(self._ensured)

    def add(self, directory: PurePosixPath) -> None:
        self._ensured.add(directory)


class AbstractRecordStore(ABC):
    """Byte-oriented persistent store for serialized records."""

    @abstractmethod
    async def read(self, path: PurePosixPath) -> bytes | None:
        """Read the bytes stored at ``path``.

        Returns:
            The stored bytes, or None when nothing is stored there.

        Raises:
            StoreAppError: If the store fails for any other reason.
        """
        raise NotImplementedError

    @abstractmethod
    async def write(self, path: PurePosixPath, data: bytes) -> None:
        """Store ``data`` at ``path``, replacing any previous content.

        Raises:
            StoreAppError: If the write fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def ensure_directory(self, path: PurePosixPath) -> None:
        """Create ``path`` and its parents; a no-op when it already exists.

        Raises:
            StoreAppError: If the directory cannot be created.
        """
        raise NotImplementedError
