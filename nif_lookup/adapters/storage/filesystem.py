"""Local filesystem record store.

Blocking file operations run in the default thread pool so the event loop
keeps serving other lookups while the disk works.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Callable, TypeVar

from nif_lookup.adapters.storage.base import AbstractRecordStore
from nif_lookup.core.errors import StoreAppError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _write_bytes_atomic(path: Path, data: bytes) -> None:
    # Readers see either no file or the complete record, never a partial one.
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ShardedFileStore(AbstractRecordStore):
    """Stores each record as one file under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def resolve(self, path: PurePosixPath) -> Path:
        return self.root.joinpath(*path.parts)

    async def _run(self, func: Callable[..., T], *args: object) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def read(self, path: PurePosixPath) -> bytes | None:
        try:
            return await self._run(_read_bytes, self.resolve(path))
        except OSError as exc:
            raise StoreAppError(
                code="store_read_failed",
                message=f"Failed to read cached record: {exc}",
                details={"path": str(path)},
            ) from exc

    async def write(self, path: PurePosixPath, data: bytes) -> None:
        try:
            await self._run(_write_bytes_atomic, self.resolve(path), data)
        except OSError as exc:
            raise StoreAppError(
                code="store_write_failed",
                message=f"Failed to write cached record: {exc}",
                details={"path": str(path)},
            ) from exc

    async def ensure_directory(self, path: PurePosixPath) -> None:
        target = self.resolve(path)
        try:
            await self._run(partial(target.mkdir, parents=True, exist_ok=True))
        except OSError as exc:
            raise StoreAppError(
                code="store_mkdir_failed",
                message=f"Failed to create cache directory: {exc}",
                details={"path": str(path)},
            ) from exc
        logger.debug("store.directory_ensured", extra={"path": str(target)})
