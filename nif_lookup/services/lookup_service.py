"""Read-through record lookup.

Serves merged records from the persistent store and, on a miss, queries every
source concurrently, merges what came back and persists the result. Records
are never refreshed once written.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from pydantic import ValidationError

from nif_lookup.adapters.sources.base import AbstractSourceAdapter
from nif_lookup.adapters.storage.base import AbstractRecordStore, DirectoryMemo, ShardPath, shard_path
from nif_lookup.core.errors import SourceUnavailableError, StoreAppError
from nif_lookup.schemas.record import CanonicalRecord, PartialRecord
from nif_lookup.services.merge_service import combine

logger = logging.getLogger(__name__)


class RecordLookupService:
    """Look up NIFs through the record cache and the external sources.

    Args:
        sources: The racius, portugalio and europa adapters, in that order.
        store: Persistent store holding serialized records.
        memo: Directories already created in ``store``. A fresh memo is
            created when omitted.
    """

    def __init__(
        self,
        sources: Sequence[AbstractSourceAdapter],
        store: AbstractRecordStore,
        memo: DirectoryMemo | None = None,
    ) -> None:
        if len(sources) != 3:
            raise ValueError("RecordLookupService needs exactly three sources")
        self.sources = tuple(sources)
        self.store = store
        self.memo = memo if memo is not None else DirectoryMemo()

    async def get(self, nif: str) -> CanonicalRecord:
        """Return the merged record for an already validated NIF.

        Raises:
            NotFoundAppError: If no source knows the NIF.
        """
        record, _ = await self._lookup(nif)
        return record

    async def get_response(self, nif: str) -> bytes:
        """Return the serialized record exactly as it is stored."""
        _, payload = await self._lookup(nif)
        return payload

    async def _lookup(self, nif: str) -> tuple[CanonicalRecord, bytes]:
        path = shard_path(nif)

        cached = await self._read_cached(nif, path)
        if cached is not None:
            return cached

        racius, portugalio, europa = await asyncio.gather(
            *(self._fetch_or_empty(source, nif) for source in self.sources)
        )
        logger.debug(
            "lookup.source_results",
            extra={
                "nif": nif,
                "racius": racius.model_dump(by_alias=True, exclude_none=True),
                "portugalio": portugalio.model_dump(by_alias=True, exclude_none=True),
                "europa": europa.model_dump(by_alias=True, exclude_none=True),
            },
        )

        record = combine(racius, portugalio, europa)
        payload = record.to_json_bytes()
        await self._persist(nif, path, payload)
        return record, payload

    async def _read_cached(self, nif: str, path: ShardPath) -> tuple[CanonicalRecord, bytes] | None:
        try:
            payload = await self.store.read(path.file)
        except StoreAppError as exc:
            logger.warning(
                "lookup.cache_read_failed",
                extra={"nif": nif, "path": str(path.file), "error_code": exc.code, "error_msg": exc.message},
            )
            return None
        if payload is None:
            return None

        try:
            record = CanonicalRecord.from_json_bytes(payload)
        except ValidationError as exc:
            logger.warning(
                "lookup.cache_corrupt",
                extra={"nif": nif, "path": str(path.file), "error_count": exc.error_count()},
            )
            return None

        logger.info("lookup.cache_hit", extra={"nif": nif})
        return record, payload

    async def _fetch_or_empty(self, source: AbstractSourceAdapter, nif: str) -> PartialRecord:
        try:
            return await source.fetch(nif)
        except SourceUnavailableError as exc:
            logger.warning(
                "lookup.source_failed",
                extra={"nif": nif, "source": source.name, "error_msg": exc.message},
            )
            return PartialRecord()
        except Exception as exc:
            logger.error(
                "lookup.source_failed",
                exc_info=exc,
                extra={"nif": nif, "source": source.name, "error_type": type(exc).__name__},
            )
            return PartialRecord()

    async def _persist(self, nif: str, path: ShardPath, payload: bytes) -> None:
        try:
            if path.directory not in self.memo:
                await self.store.ensure_directory(path.directory)
                self.memo.add(path.directory)
            await self.store.write(path.file, payload)
        except StoreAppError as exc:
            logger.error(
                "lookup.persist_failed",
                extra={"nif": nif, "path": str(path.file), "error_code": exc.code, "error_msg": exc.message},
            )
            return
        logger.info("lookup.persisted", extra={"nif": nif, "path": str(path.file)})
