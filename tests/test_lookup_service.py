"""Tests for the read-through lookup service.

Sources and stores are replaced by the doubles from conftest, except for the
end-to-end cases which persist to a real temporary directory.
"""

import asyncio
import json
import logging
from pathlib import PurePosixPath
from unittest.mock import AsyncMock

import pytest

from nif_lookup.adapters.sources import ThrottledSourceAdapter
from nif_lookup.adapters.storage import DirectoryMemo, ShardedFileStore, shard_path
from nif_lookup.core.errors import NotFoundAppError
from nif_lookup.schemas.record import CanonicalRecord
from nif_lookup.services.lookup_service import RecordLookupService


@pytest.fixture
def sources(make_source):
    return (
        make_source("racius", name="Foo Lda", address={"postalCode": "1000-001"}),
        make_source("portugalio", fail=True),
        make_source("europa", name="Foo Lda Europa"),
    )


def test_requires_three_sources(make_source, memory_store):
    with pytest.raises(ValueError):
        RecordLookupService(sources=(make_source("racius"),), store=memory_store)


class TestCacheMiss:
    @pytest.mark.asyncio
    async def test_merges_sources_and_substitutes_failures(self, sources, memory_store):
        service = RecordLookupService(sources=sources, store=memory_store)

        record = await service.get("503709730")

        assert record.name == "Foo Lda"
        assert record.address.postal_code == "1000-001"
        assert record.address.address_country == "PORTUGAL"
        assert [source.calls for source in sources] == [["503709730"]] * 3

    @pytest.mark.asyncio
    async def test_persists_under_sharded_path(self, sources, memory_store):
        service = RecordLookupService(sources=sources, store=memory_store)

        payload = await service.get_response("503709730")

        assert memory_store.directories == [PurePosixPath("503/709")]
        assert memory_store.files[PurePosixPath("503/709/730.json")] == payload
        assert json.loads(payload)["name"] == "Foo Lda"

    @pytest.mark.asyncio
    async def test_not_found_propagates_and_is_not_cached(self, make_source, memory_store):
        service = RecordLookupService(
            sources=(make_source("racius"), make_source("portugalio"), make_source("europa", fail=True)),
            store=memory_store,
        )

        with pytest.raises(NotFoundAppError):
            await service.get("503709730")

        assert memory_store.files == {}
        assert memory_store.directories == []

    @pytest.mark.asyncio
    async def test_unexpected_source_error_falls_back_to_other_sources(self, sources, memory_store, caplog):
        racius = sources[0]
        racius.fetch = AsyncMock(side_effect=RuntimeError("bug"))
        service = RecordLookupService(sources=sources, store=memory_store)

        with caplog.at_level(logging.ERROR, logger="nif_lookup.services.lookup_service"):
            record = await service.get("503709730")

        assert record.name == "Foo Lda Europa"
        failed = [r for r in caplog.records if r.getMessage() == "lookup.source_failed"]
        assert [r.source for r in failed] == ["racius"]
        assert failed[0].exc_info is not None

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_one_throttled_request(self, make_source, memory_store):
        racius = make_source("racius", name="Foo Lda")
        portugalio = make_source("portugalio", name="Foo Portugalio")
        europa = make_source("europa")
        gate = asyncio.Event()
        fetch_racius = racius.fetch

        async def gated_fetch(nif: str):
            await gate.wait()
            return await fetch_racius(nif)

        racius.fetch = gated_fetch
        throttled = ThrottledSourceAdapter(racius, cooldown_seconds=0)
        service = RecordLookupService(sources=(throttled, portugalio, europa), store=memory_store)

        first = asyncio.create_task(service.get("503709730"))
        second = asyncio.create_task(service.get("503709730"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert throttled.lane.pending_keys == ["503709730"]

        gate.set()
        records = await asyncio.gather(first, second)

        assert records[0] == records[1]
        assert records[0].name == "Foo Lda"
        assert racius.calls == ["503709730"]
        assert len(portugalio.calls) == 2

    @pytest.mark.asyncio
    async def test_directory_is_created_once_per_service(self, make_source, memory_store):
        memo = DirectoryMemo()
        service = RecordLookupService(
            sources=(make_source("racius", name="A"), make_source("portugalio"), make_source("europa")),
            store=memory_store,
            memo=memo,
        )

        await service.get("503709730")
        await service.get("503709810")

        assert memory_store.directories == [PurePosixPath("503/709")]
        assert PurePosixPath("503/709") in memo

    @pytest.mark.asyncio
    async def test_write_failure_still_returns_record(self, sources, memory_store, caplog):
        memory_store.fail_writes = True
        service = RecordLookupService(sources=sources, store=memory_store)

        with caplog.at_level(logging.ERROR, logger="nif_lookup.services.lookup_service"):
            record = await service.get("503709730")

        assert record.name == "Foo Lda"
        assert any(r.getMessage() == "lookup.persist_failed" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_source_failure_is_logged(self, sources, memory_store, caplog):
        service = RecordLookupService(sources=sources, store=memory_store)

        with caplog.at_level(logging.WARNING, logger="nif_lookup.services.lookup_service"):
            await service.get("503709730")

        failed = [r for r in caplog.records if r.getMessage() == "lookup.source_failed"]
        assert len(failed) == 1
        assert failed[0].source == "portugalio"


class TestCacheHit:
    @pytest.mark.asyncio
    async def test_second_lookup_is_byte_identical_and_skips_sources(self, sources, memory_store):
        service = RecordLookupService(sources=sources, store=memory_store)

        first = await service.get_response("503709730")
        second = await service.get_response("503709730")

        assert first == second
        assert [len(source.calls) for source in sources] == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_get_returns_stored_record(self, make_source, memory_store):
        stored = CanonicalRecord(name="Stored Lda", tax_id="503709735")
        memory_store.files[shard_path("503709735").file] = stored.to_json_bytes()
        racius = make_source("racius", name="Fresh Lda")
        service = RecordLookupService(
            sources=(racius, make_source("portugalio"), make_source("europa")),
            store=memory_store,
        )

        record = await service.get("503709735")

        assert record == stored
        assert racius.calls == []

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_treated_as_miss(self, sources, memory_store):
        path = shard_path("503709730").file
        memory_store.files[path] = b"{not json"
        service = RecordLookupService(sources=sources, store=memory_store)

        record = await service.get("503709730")

        assert record.name == "Foo Lda"
        assert CanonicalRecord.from_json_bytes(memory_store.files[path]) == record

    @pytest.mark.asyncio
    async def test_read_failure_is_treated_as_miss(self, sources, memory_store):
        memory_store.fail_reads = True
        service = RecordLookupService(sources=sources, store=memory_store)

        record = await service.get("503709730")

        assert record.name == "Foo Lda"
        assert sources[0].calls == ["503709730"]


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_lookup_persists_to_disk(self, sources, tmp_path):
        service = RecordLookupService(sources=sources, store=ShardedFileStore(tmp_path))

        record = await service.get("503709730")

        assert record.name == "Foo Lda"
        assert record.address.postal_code == "1000-001"
        assert record.address.address_country == "PORTUGAL"
        on_disk = (tmp_path / "503" / "709" / "730.json").read_bytes()
        assert on_disk == record.to_json_bytes()

    @pytest.mark.asyncio
    async def test_new_service_serves_existing_file(self, sources, tmp_path):
        first = RecordLookupService(sources=sources, store=ShardedFileStore(tmp_path))
        payload = await first.get_response("503709730")

        second = RecordLookupService(sources=sources, store=ShardedFileStore(tmp_path))
        assert await second.get_response("503709730") == payload
        assert [len(source.calls) for source in sources] == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_not_found_leaves_no_file(self, make_source, tmp_path):
        service = RecordLookupService(
            sources=(make_source("racius"), make_source("portugalio"), make_source("europa")),
            store=ShardedFileStore(tmp_path),
        )

        with pytest.raises(NotFoundAppError):
            await service.get("503709730")

        assert not (tmp_path / "503" / "709" / "730.json").exists()

    @pytest.mark.asyncio
    async def test_unwritable_cache_still_answers(self, sources, tmp_path):
        # The cache root is a file, so no shard directory can be created
        root = tmp_path / "cache"
        root.write_bytes(b"")
        service = RecordLookupService(sources=sources, store=ShardedFileStore(root))

        record = await service.get("503709730")

        assert record.name == "Foo Lda"
        assert len(service.memo) == 0
